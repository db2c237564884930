"""Actions - named units of work that playbook steps invoke."""

from .base import (
    ActionContext,
    ActionDefinition,
    ActionInputDef,
    ActionOutputDef,
    ActionResult,
)
from .coercion import is_truthy
from .registry import (
    ActionRegistry,
    clear_registry,
    define_action,
    get_action,
    list_actions,
    register_action,
)
from .validation import apply_input_defaults, find_missing_inputs, validate_input

__all__ = [
    "ActionContext",
    "ActionDefinition",
    "ActionInputDef",
    "ActionOutputDef",
    "ActionResult",
    "ActionRegistry",
    "define_action",
    "register_action",
    "get_action",
    "clear_registry",
    "list_actions",
    "is_truthy",
    "apply_input_defaults",
    "find_missing_inputs",
    "validate_input",
]
