"""Pydantic models for playbook structure and execution results."""

import os
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..actions.base import ActionResult


class PlaybookStep(BaseModel):
    """A single action invocation in a playbook."""

    action: str = Field(..., description="Name of the registered action to run")
    name: Optional[str] = Field(None, description="Human-readable step label")
    inputs: Dict[str, Any] = Field(
        default_factory=dict, description="Inputs, may contain {{ }} templates"
    )
    store_as: Optional[str] = Field(
        None, description="Variable name to bind the step's data under"
    )
    condition: Optional[str] = Field(
        None, description="Expression; the step is skipped when it is falsy"
    )
    continue_on_error: bool = Field(
        default=False, description="Keep running the playbook if this step fails"
    )
    on_failure: List["PlaybookStep"] = Field(
        default_factory=list, description="Steps to run when this step fails"
    )

    @field_validator("action")
    @classmethod
    def validate_action_not_blank(cls, v: str) -> str:
        """Ensure the action name is not empty."""
        if not v.strip():
            raise ValueError("Step 'action' must not be empty")
        return v

    @field_validator("condition", mode="before")
    @classmethod
    def coerce_condition(cls, v: Any) -> Any:
        """Accept unquoted YAML scalars such as ``false`` or ``0``."""
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v

    @property
    def label(self) -> str:
        """Name shown in results and logs."""
        return self.name or self.action


PlaybookStep.model_rebuild()


class PlaybookInputDef(BaseModel):
    """Declaration of an external input the playbook expects."""

    type: Optional[str] = Field(None, description="string, number, boolean, array or object")
    required: bool = Field(default=False)
    default: Optional[Any] = Field(None)
    description: Optional[str] = Field(None)


class Playbook(BaseModel):
    """
    A complete playbook definition.

    A playbook is an ordered list of steps, each naming a registered
    action. Steps run one after another and may pass data forward through
    ``store_as`` variables.
    """

    name: str = Field(..., description="Name of the playbook")
    description: Optional[str] = Field(None, description="Human-readable description")
    version: Optional[str] = Field(None, description="Playbook version")
    inputs: Dict[str, PlaybookInputDef] = Field(
        default_factory=dict, description="Expected external inputs"
    )
    variables: Dict[str, Any] = Field(
        default_factory=dict, description="Initial variable bindings"
    )
    steps: List[PlaybookStep] = Field(..., description="Sequential steps to execute")

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> Any:
        """Accept unquoted YAML versions such as ``1.0``."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    def input_defaults(self, provided: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Merge caller inputs over the declared input defaults."""
        result = {
            key: definition.default
            for key, definition in self.inputs.items()
            if definition.default is not None
        }
        result.update(provided or {})
        return result

    def __repr__(self) -> str:
        return f"<Playbook name='{self.name}' steps={len(self.steps)}>"


class StepExecutionResult(BaseModel):
    """Outcome of one attempted step, appended to the run ledger."""

    step: str
    action: str
    success: bool
    message: str = ""
    data: Optional[Any] = None
    error: Optional[str] = None
    skipped: Optional[bool] = None
    skip_reason: Optional[str] = None
    elapsed_ms: float = 0.0


class ActionExecutionResult(ActionResult):
    """ActionResult annotated with the action that produced it."""

    action: str


class PlaybookExecutionResult(BaseModel):
    """Summary of a complete playbook run."""

    model_config = ConfigDict(frozen=True)

    playbook: str
    success: bool
    aborted: bool = False
    total_steps: int
    successful_steps: int
    failed_steps: int
    skipped_steps: int
    step_results: List[StepExecutionResult] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)
    elapsed_ms: float = 0.0


StepStartHook = Callable[[PlaybookStep, int], Any]
StepCompleteHook = Callable[[StepExecutionResult, int], Any]


class ExecutionOptions(BaseModel):
    """Options for a single execute_action/execute_playbook call."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cwd: str = Field(default_factory=os.getcwd)
    session_id: str = ""
    variables: Dict[str, Any] = Field(default_factory=dict)
    inputs: Dict[str, Any] = Field(default_factory=dict)
    abort_signal: Optional[Any] = None
    on_step_start: Optional[StepStartHook] = None
    on_step_complete: Optional[StepCompleteHook] = None

    @property
    def aborted(self) -> bool:
        """True if the abort signal has been set."""
        return self.abort_signal is not None and self.abort_signal.is_set()
