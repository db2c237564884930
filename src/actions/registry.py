"""Action Registry - registration and lookup of playbook actions."""

import logging
from typing import Any, Dict, List, Optional

from .base import ActionDefinition, ActionHandler, ActionInputDef, ActionOutputDef

logger = logging.getLogger(__name__)


class ActionRegistry:
    """
    Registry of action definitions keyed by action name.

    Registering a name that already exists replaces the previous entry,
    so test setup and hot reloads can re-register freely.

    Example:
        registry = ActionRegistry()
        registry.register(define_action(
            name="test.success",
            description="Always succeeds",
            handler=succeed,
        ))

        # Later
        definition = registry.get("test.success")
    """

    _instance: Optional["ActionRegistry"] = None

    def __init__(self) -> None:
        self._actions: Dict[str, ActionDefinition] = {}

    @classmethod
    def get_instance(cls) -> "ActionRegistry":
        """Get the process-wide registry instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    def register(self, definition: ActionDefinition) -> ActionDefinition:
        """Register an action definition, replacing any entry with the same name."""
        if not isinstance(definition, ActionDefinition):
            raise TypeError(f"{definition!r} must be an ActionDefinition")

        if definition.name in self._actions:
            logger.debug("Replacing registered action '%s'", definition.name)

        self._actions[definition.name] = definition
        return definition

    def get(self, name: str) -> Optional[ActionDefinition]:
        """Get an action definition by name."""
        return self._actions.get(name)

    def list_actions(self) -> List[str]:
        """List all registered action names."""
        return list(self._actions.keys())

    def clear(self) -> None:
        """Remove every registered action (mainly for testing)."""
        self._actions.clear()

    def __contains__(self, name: str) -> bool:
        return name in self._actions

    def __len__(self) -> int:
        return len(self._actions)


def define_action(
    name: str,
    handler: ActionHandler,
    description: str = "",
    inputs: Optional[Dict[str, Any]] = None,
    outputs: Optional[Dict[str, Any]] = None,
) -> ActionDefinition:
    """
    Build an ActionDefinition from plain keyword arguments.

    ``inputs`` and ``outputs`` may hold dicts or already-built
    ActionInputDef/ActionOutputDef instances.
    """
    return ActionDefinition(
        name=name,
        description=description,
        inputs={
            key: value if isinstance(value, ActionInputDef) else ActionInputDef(**value)
            for key, value in (inputs or {}).items()
        },
        outputs={
            key: value if isinstance(value, ActionOutputDef) else ActionOutputDef(**value)
            for key, value in (outputs or {}).items()
        },
        handler=handler,
    )


def register_action(definition: ActionDefinition) -> ActionDefinition:
    """Register an action with the global registry."""
    return ActionRegistry.get_instance().register(definition)


def get_action(name: str) -> Optional[ActionDefinition]:
    """Get an action from the global registry."""
    return ActionRegistry.get_instance().get(name)


def clear_registry() -> None:
    """Clear the global registry."""
    ActionRegistry.get_instance().clear()


def list_actions() -> List[str]:
    """List all actions in the global registry."""
    return ActionRegistry.get_instance().list_actions()
