"""Exception hierarchy for action lookup, templating and input validation."""

from difflib import get_close_matches
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError


class PlaybookExecutionError(Exception):
    """Base exception for playbook execution errors."""

    pass


class ActionNotFoundError(PlaybookExecutionError):
    """
    Raised when an action is not found in the registry.

    The message always contains ``'<name>' is not registered`` and, when
    the registry holds similar names, a short list of suggestions.
    """

    def __init__(
        self,
        action_name: str,
        available_actions: List[str],
        step_name: Optional[str] = None,
    ):
        """
        Initialize ActionNotFoundError.

        Args:
            action_name: The action name that was not found
            available_actions: List of all registered action names
            step_name: The step where the error occurred, if any
        """
        self.action_name = action_name
        self.available_actions = available_actions
        self.step_name = step_name
        self.suggestions = get_close_matches(
            action_name, available_actions, n=3, cutoff=0.6
        )

        message = f"Action '{action_name}' is not registered"
        if self.suggestions:
            message += f" (did you mean: {', '.join(self.suggestions)}?)"

        super().__init__(message)


class TemplateError(PlaybookExecutionError):
    """
    Raised when a template expression or step condition cannot be evaluated.

    Provides template context and available variables to aid debugging.
    """

    def __init__(
        self,
        template_str: str,
        error: Exception,
        step_name: str,
        field_name: str,
        available_vars: Dict[str, Any],
    ):
        """
        Initialize TemplateError.

        Args:
            template_str: The template string that failed
            error: The original exception
            step_name: The step where the error occurred
            field_name: The field name containing the template
            available_vars: Dictionary of variables available for templating
        """
        self.template_str = template_str
        self.original_error = error
        self.step_name = step_name
        self.field_name = field_name
        self.available_vars = available_vars

        message = f"Template error in step '{step_name}', field '{field_name}'\n"
        message += f"  Template: {template_str}\n"
        message += f"  Error: {type(error).__name__}: {error}\n"

        message += "Available variables:"
        if available_vars:
            for key, value in sorted(available_vars.items()):
                if isinstance(value, dict):
                    message += f"\n  - {key}: dict with {len(value)} keys"
                elif isinstance(value, list):
                    message += f"\n  - {key}: list with {len(value)} items"
                else:
                    value_str = str(value)
                    if len(value_str) > 80:
                        value_str = value_str[:77] + "..."
                    message += f"\n  - {key}: {value_str}"
        else:
            message += " (none)"

        super().__init__(message)


class InvalidInputError(PlaybookExecutionError):
    """
    Raised when action input validation fails.

    Provides detailed Pydantic validation errors.
    """

    def __init__(
        self,
        action_name: str,
        schema: Type[BaseModel],
        input_data: Dict[str, Any],
        validation_error: ValidationError,
    ):
        """
        Initialize InvalidInputError.

        Args:
            action_name: The action that failed validation
            schema: The Pydantic schema used for validation
            input_data: The input data that failed validation
            validation_error: The Pydantic ValidationError
        """
        self.action_name = action_name
        self.schema = schema
        self.input_data = input_data
        self.validation_error = validation_error
        self.fields = [
            ".".join(str(loc) for loc in error["loc"])
            for error in validation_error.errors()
        ]

        message = f"Invalid input for action '{action_name}' ({schema.__name__})"
        for error in validation_error.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            message += f"\n  - {field}: {error['msg']}"

        super().__init__(message)
