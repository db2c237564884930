"""Built-in actions available to every playbook."""

from typing import List, Optional

from ..base import ActionDefinition
from ..registry import ActionRegistry
from .assert_action import assert_action
from .log import log_action
from .wait import wait_action

BUILTIN_ACTIONS: List[ActionDefinition] = [assert_action, log_action, wait_action]


def register_builtin_actions(registry: Optional[ActionRegistry] = None) -> ActionRegistry:
    """Register every built-in action (defaults to the process-wide registry)."""
    registry = registry if registry is not None else ActionRegistry.get_instance()
    for definition in BUILTIN_ACTIONS:
        registry.register(definition)
    return registry


__all__ = [
    "BUILTIN_ACTIONS",
    "assert_action",
    "log_action",
    "wait_action",
    "register_builtin_actions",
]
