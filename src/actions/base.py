"""Base action types - the contract between the executor and action handlers."""

from typing import Any, Awaitable, Callable, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ActionInputDef(BaseModel):
    """Schema entry for one action input parameter."""

    type: str = Field(default="any", description="Expected value type")
    required: bool = Field(default=False, description="Whether the input must be given")
    default: Optional[Any] = Field(None, description="Value used when input is absent")
    description: str = Field(default="", description="Human-readable description")


class ActionOutputDef(BaseModel):
    """Schema entry for one action output field (informational only)."""

    type: str = Field(default="any")
    description: str = Field(default="")


class ActionContext(BaseModel):
    """
    Read-only environment handed to every action handler.

    ``variables`` is a snapshot of the ``store_as`` bindings made by the
    steps that ran before the current one.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cwd: str
    session_id: str
    variables: Dict[str, Any] = Field(default_factory=dict)
    abort_signal: Optional[Any] = Field(
        None, description="Object with is_set(), e.g. asyncio.Event"
    )

    @property
    def aborted(self) -> bool:
        """True if the abort signal has been set."""
        return self.abort_signal is not None and self.abort_signal.is_set()


class ActionResult(BaseModel):
    """Outcome returned by an action handler."""

    success: bool
    message: str = ""
    data: Optional[Any] = None
    error: Optional[str] = None
    elapsed_ms: Optional[float] = None


HandlerReturn = Union[ActionResult, Awaitable[ActionResult]]
ActionHandler = Callable[[Dict[str, Any], ActionContext], HandlerReturn]


class ActionDefinition(BaseModel):
    """
    Static descriptor of a named action.

    Example:
        async def echo(inputs, context):
            return ActionResult(success=True, message="Echoed", data=inputs)

        definition = ActionDefinition(
            name="test.echo",
            description="Echoes its inputs",
            handler=echo,
        )
    """

    name: str = Field(..., description="Unique action name")
    description: str = Field(default="")
    inputs: Dict[str, ActionInputDef] = Field(default_factory=dict)
    outputs: Dict[str, ActionOutputDef] = Field(default_factory=dict)
    handler: ActionHandler

    def __repr__(self) -> str:
        return f"<ActionDefinition name='{self.name}' inputs={list(self.inputs)}>"
