"""Input handling for actions: schema defaults, required checks, pydantic validation."""

from functools import wraps
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar, cast

from pydantic import BaseModel, ValidationError

from ..errors import InvalidInputError
from .base import ActionContext, ActionInputDef, ActionResult

F = TypeVar("F", bound=Callable[..., Any])


def apply_input_defaults(
    inputs: Dict[str, Any], schema: Mapping[str, ActionInputDef]
) -> Dict[str, Any]:
    """
    Fill in schema defaults for inputs that were not provided.

    Args:
        inputs: Inputs as given by the caller
        schema: The action's input schema

    Returns:
        New dictionary with defaults applied
    """
    result = dict(inputs)
    for key, definition in schema.items():
        if key not in result and definition.default is not None:
            result[key] = definition.default
    return result


def find_missing_inputs(
    inputs: Dict[str, Any], schema: Mapping[str, ActionInputDef]
) -> List[str]:
    """Return the names of required inputs absent from ``inputs``."""
    return [
        key
        for key, definition in schema.items()
        if definition.required and key not in inputs
    ]


def validate_input(
    schema: Type[BaseModel], action_name: Optional[str] = None
) -> Callable[[F], F]:
    """
    Decorator to validate action handler inputs against a Pydantic schema.

    The handler receives the validated data as a dict. A validation failure
    does not raise: the handler is skipped and a failed ActionResult is
    returned whose error lists every offending field.

    Args:
        schema: Pydantic BaseModel class to validate against
        action_name: Name used in the error text (defaults to the handler name)

    Returns:
        Decorated handler

    Example:
        ```python
        class WaitInputs(BaseModel):
            seconds: float = Field(default=1.0, ge=0)

        @validate_input(WaitInputs, action_name="wait")
        async def handle_wait(inputs, context):
            await asyncio.sleep(inputs["seconds"])
            return ActionResult(success=True, message="Waited")
        ```
    """

    def decorator(func: F) -> F:
        name = action_name or func.__name__

        @wraps(func)
        async def wrapper(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
            try:
                validated = schema.model_validate(inputs)
            except ValidationError as e:
                error = InvalidInputError(
                    action_name=name,
                    schema=schema,
                    input_data=inputs,
                    validation_error=e,
                )
                return ActionResult(
                    success=False,
                    message=f"Invalid input for '{name}'",
                    error=str(error),
                )

            result: ActionResult = await func(validated.model_dump(), context)
            return result

        return cast(F, wrapper)

    return decorator
