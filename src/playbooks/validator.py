"""PlaybookValidator - validates playbook definitions before execution."""

import re
from dataclasses import dataclass
from difflib import get_close_matches
from enum import Enum
from typing import Any, Iterable, List, Optional, Set, Tuple

from jinja2 import TemplateSyntaxError

from ..actions.registry import ActionRegistry
from .context import PlaybookEnvironment
from .models import Playbook, PlaybookStep

_VARIABLE_REFERENCE = re.compile(r"\bvariables\.([A-Za-z_][A-Za-z0-9_]*)")


class ValidationLevel(Enum):
    """Validation message severity levels."""

    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    SUCCESS = "SUCCESS"


@dataclass
class ValidationMessage:
    """A validation message with level and context."""

    level: ValidationLevel
    message: str
    step_name: Optional[str] = None
    field: Optional[str] = None

    def format(self, color: bool = True) -> str:
        """Format message, optionally with ANSI color codes."""
        colors = {
            ValidationLevel.ERROR: "\033[91m",  # Red
            ValidationLevel.WARNING: "\033[93m",  # Yellow
            ValidationLevel.INFO: "\033[94m",  # Blue
            ValidationLevel.SUCCESS: "\033[92m",  # Green
        }

        prefix = f"[{self.level.value}]"
        if self.step_name:
            prefix += f" Step '{self.step_name}'"
        if self.field:
            prefix += f" ({self.field})"

        if not color:
            return f"{prefix}: {self.message}"
        return f"{colors.get(self.level, '')}{prefix}: {self.message}\033[0m"

    def __str__(self) -> str:
        return self.format(color=True)


class PlaybookValidator:
    """
    Validate playbook definitions before execution.

    Checks:
    - Name and step presence
    - Action registration and required inputs (when a registry is given)
    - Condition and template syntax
    - Variable references against earlier ``store_as`` bindings
    - Unused ``store_as`` outputs
    """

    def __init__(
        self,
        registry: Optional[ActionRegistry] = None,
        known_variables: Optional[Iterable[str]] = None,
    ) -> None:
        """
        Initialize validator.

        Args:
            registry: Optional action registry to validate against
            known_variables: Variable names the caller will supply at run time
        """
        self.registry = registry
        self.known_variables: Set[str] = set(known_variables or [])
        self.messages: List[ValidationMessage] = []
        self._jinja_env = PlaybookEnvironment()

    def validate(self, playbook: Playbook) -> bool:
        """
        Validate a playbook.

        Args:
            playbook: The playbook to validate

        Returns:
            True if valid (no errors), False otherwise
        """
        self.messages = []

        self._validate_metadata(playbook)
        self._validate_inputs(playbook)
        self._validate_steps(playbook)
        self._validate_templates(playbook)
        self._validate_variables(playbook)
        self._validate_data_flow(playbook)

        has_errors = any(m.level == ValidationLevel.ERROR for m in self.messages)

        if not has_errors and not self.messages:
            self.messages.append(
                ValidationMessage(
                    level=ValidationLevel.SUCCESS,
                    message="Playbook validation passed",
                )
            )

        return not has_errors

    def _add(
        self,
        level: ValidationLevel,
        message: str,
        step_name: Optional[str] = None,
        field: Optional[str] = None,
    ) -> None:
        self.messages.append(
            ValidationMessage(level=level, message=message, step_name=step_name, field=field)
        )

    def _validate_metadata(self, playbook: Playbook) -> None:
        """Validate playbook name, description and step count."""
        if not playbook.name.strip():
            self._add(ValidationLevel.ERROR, "Playbook name is required", field="name")

        if not playbook.description or not playbook.description.strip():
            self._add(
                ValidationLevel.WARNING,
                "Playbook description is missing",
                field="description",
            )

        if not playbook.steps:
            self._add(
                ValidationLevel.ERROR,
                "Playbook must have at least one step",
                field="steps",
            )

    def _validate_inputs(self, playbook: Playbook) -> None:
        """Flag input declarations that contradict themselves."""
        for key, definition in playbook.inputs.items():
            if definition.required and definition.default is not None:
                self._add(
                    ValidationLevel.WARNING,
                    f"Input '{key}' is marked required but has a default value",
                    field=f"inputs.{key}",
                )

    def _validate_steps(self, playbook: Playbook) -> None:
        """Validate step naming, action registration and required inputs."""
        for step_id, step in self._get_all_steps(playbook.steps):
            if not step.name:
                self._add(
                    ValidationLevel.WARNING,
                    "Consider adding a 'name' field for better readability",
                    step_name=step_id,
                )

            if self.registry is None:
                continue

            definition = self.registry.get(step.action)
            if definition is None:
                message = f"Action '{step.action}' is not registered"
                suggestions = get_close_matches(
                    step.action, self.registry.list_actions(), n=3, cutoff=0.6
                )
                if suggestions:
                    message += f" (did you mean: {', '.join(suggestions)}?)"
                self._add(ValidationLevel.ERROR, message, step_name=step_id, field="action")
                continue

            for key, input_def in definition.inputs.items():
                if input_def.required and input_def.default is None and key not in step.inputs:
                    self._add(
                        ValidationLevel.ERROR,
                        f"Missing required input '{key}' for action '{step.action}'",
                        step_name=step_id,
                        field=f"inputs.{key}",
                    )

    def _validate_templates(self, playbook: Playbook) -> None:
        """Validate condition and input template syntax."""
        for step_id, step in self._get_all_steps(playbook.steps):
            if step.condition:
                source = step.condition
                if "{{" not in source:
                    source = "{{ " + source + " }}"
                self._check_syntax(source, step_id, "condition")

            for field_name, text in self._iter_strings(step.inputs, "inputs"):
                if "{{" in text or "{%" in text:
                    self._check_syntax(text, step_id, field_name)

    def _validate_variables(self, playbook: Playbook) -> None:
        """Warn about references to variables no earlier step binds."""
        defined: Set[str] = set(playbook.variables) | self.known_variables

        for i, step in enumerate(playbook.steps):
            step_id = step.name or f"Step {i + 1}"
            self._check_references(step, step_id, defined)
            if step.store_as:
                defined.add(step.store_as)

            for j, handler in enumerate(step.on_failure):
                handler_id = handler.name or f"{step_id} > Failure Step {j + 1}"
                self._check_references(handler, handler_id, defined)
                if handler.store_as:
                    defined.add(handler.store_as)

    def _validate_data_flow(self, playbook: Playbook) -> None:
        """Report ``store_as`` bindings that nothing reads."""
        stored: List[Tuple[str, str]] = []
        referenced: Set[str] = set()

        for step_id, step in self._get_all_steps(playbook.steps):
            if step.store_as:
                stored.append((step.store_as, step_id))
            referenced.update(self._extract_references(step))

        for var_name, step_id in stored:
            if var_name not in referenced:
                self._add(
                    ValidationLevel.INFO,
                    f"Output variable '{var_name}' is never used",
                    step_name=step_id,
                    field="store_as",
                )

    def _check_syntax(self, source: str, step_id: str, field_name: str) -> None:
        try:
            self._jinja_env.parse(source)
        except TemplateSyntaxError as e:
            self._add(
                ValidationLevel.ERROR,
                f"Invalid template syntax: {e}",
                step_name=step_id,
                field=field_name,
            )

    def _check_references(self, step: PlaybookStep, step_id: str, defined: Set[str]) -> None:
        for var_name in sorted(self._extract_references(step)):
            if var_name not in defined:
                self._add(
                    ValidationLevel.WARNING,
                    f"Variable '{var_name}' is referenced before any step stores it",
                    step_name=step_id,
                )

    def _extract_references(self, step: PlaybookStep) -> Set[str]:
        """Names used as ``variables.<name>`` in a step's condition and inputs."""
        refs: Set[str] = set()
        if step.condition:
            refs.update(_VARIABLE_REFERENCE.findall(step.condition))
        for _, text in self._iter_strings(step.inputs, "inputs"):
            refs.update(_VARIABLE_REFERENCE.findall(text))
        return refs

    def _iter_strings(self, value: Any, path: str) -> Iterable[Tuple[str, str]]:
        if isinstance(value, str):
            yield path, value
        elif isinstance(value, dict):
            for key, item in value.items():
                yield from self._iter_strings(item, f"{path}.{key}")
        elif isinstance(value, list):
            for i, item in enumerate(value):
                yield from self._iter_strings(item, f"{path}[{i}]")

    def _get_all_steps(self, steps: List[PlaybookStep]) -> List[Tuple[str, PlaybookStep]]:
        """Top-level steps and their failure handlers, with display ids."""
        all_steps: List[Tuple[str, PlaybookStep]] = []

        for i, step in enumerate(steps):
            step_id = step.name or f"Step {i + 1}"
            all_steps.append((step_id, step))
            for j, handler in enumerate(step.on_failure):
                all_steps.append((handler.name or f"{step_id} > Failure Step {j + 1}", handler))

        return all_steps

    def print_messages(self, show_info: bool = True, color: bool = True) -> None:
        """
        Print validation messages to console.

        Args:
            show_info: Whether to show INFO level messages
            color: Whether to use ANSI colors
        """
        for msg in self.messages:
            if not show_info and msg.level == ValidationLevel.INFO:
                continue
            print(msg.format(color=color))

    def get_error_count(self) -> int:
        """Get count of error messages."""
        return sum(1 for m in self.messages if m.level == ValidationLevel.ERROR)

    def get_warning_count(self) -> int:
        """Get count of warning messages."""
        return sum(1 for m in self.messages if m.level == ValidationLevel.WARNING)
