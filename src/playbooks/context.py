"""ExecutionContext - variable scope, template substitution and condition evaluation."""

import copy
import json
import re
from collections.abc import Mapping
from typing import Any, Dict, Optional

from jinja2 import ChainableUndefined, Environment, TemplateSyntaxError, Undefined, meta

from ..actions.coercion import is_truthy
from ..errors import TemplateError

# A string made of exactly one {{ ... }} expression
_SINGLE_EXPRESSION = re.compile(r"\{\{((?:(?!\{\{|\}\}).)*)\}\}", re.DOTALL)

# A condition made of a single plain word, e.g. "yes" or "deploy-prod"
_PLAIN_WORD = re.compile(r"[\w-]+")


def stringify(value: Any) -> str:
    """Render a resolved value for interpolation inside a larger string."""
    if value is None or isinstance(value, Undefined):
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (Mapping, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


class PlaybookEnvironment(Environment):
    """
    Jinja2 environment tuned for playbook expressions.

    Dotted access on mappings reads keys only, so a stored variable
    named ``items`` or ``values`` is never shadowed by a dict method.
    """

    def __init__(self) -> None:
        super().__init__(
            autoescape=False,
            undefined=ChainableUndefined,
            finalize=stringify,
        )
        self.globals["null"] = None

    def getattr(self, obj: Any, attribute: str) -> Any:
        if isinstance(obj, Mapping):
            try:
                return obj[attribute]
            except KeyError:
                return self.undefined(obj=obj, name=attribute)
        return super().getattr(obj, attribute)


class ExecutionContext:
    """
    Scope for one playbook run.

    Tracks the live variable bindings and resolves ``{{ ... }}``
    expressions against them. Expressions can reference ``variables``,
    ``inputs``, ``cwd`` and ``session_id``; bare names fall back to
    variables.
    """

    def __init__(
        self,
        variables: Optional[Dict[str, Any]] = None,
        inputs: Optional[Dict[str, Any]] = None,
        cwd: str = "",
        session_id: str = "",
    ) -> None:
        """Initialize execution context with optional initial variables and inputs."""
        self.variables: Dict[str, Any] = dict(variables or {})
        self.inputs: Dict[str, Any] = dict(inputs or {})
        self.cwd = cwd
        self.session_id = session_id
        self._jinja_env = PlaybookEnvironment()

    def set_variable(self, name: str, value: Any) -> None:
        """Set a variable in the context."""
        self.variables[name] = value

    def get_variable(self, name: str) -> Any:
        """Get a variable from the context."""
        return self.variables.get(name)

    def snapshot(self) -> Dict[str, Any]:
        """Deep copy of the current variables."""
        return copy.deepcopy(self.variables)

    def scope(self) -> Dict[str, Any]:
        """Names visible to template expressions."""
        return {
            **self.variables,
            "variables": self.variables,
            "inputs": self.inputs,
            "cwd": self.cwd,
            "session_id": self.session_id,
        }

    def evaluate_expression(
        self, expression: str, step_name: str = "unknown", field_name: str = "inputs"
    ) -> Any:
        """
        Evaluate a bare Jinja2 expression (no braces) to a native value.

        Missing variables and paths evaluate to None.

        Raises:
            TemplateError: If the expression is malformed or fails
        """
        try:
            compiled = self._jinja_env.compile_expression(
                expression.strip(), undefined_to_none=True
            )
            return compiled(**self.scope())
        except Exception as e:
            raise TemplateError(
                template_str=expression,
                error=e,
                step_name=step_name,
                field_name=field_name,
                available_vars=self.variables,
            ) from e

    def resolve_value(
        self, value: Any, step_name: str = "unknown", field_name: str = "inputs"
    ) -> Any:
        """
        Substitute template expressions throughout a value.

        Containers are walked recursively. A string that is exactly one
        ``{{ expr }}`` becomes the expression's value with its type kept;
        expressions embedded in a longer string are stringified in place.

        Raises:
            TemplateError: If any expression is malformed or fails
        """
        if isinstance(value, str):
            return self._resolve_string(value, step_name, field_name)
        if isinstance(value, Mapping):
            return {
                key: self.resolve_value(item, step_name, f"{field_name}.{key}")
                for key, item in value.items()
            }
        if isinstance(value, list):
            return [
                self.resolve_value(item, step_name, f"{field_name}[{i}]")
                for i, item in enumerate(value)
            ]
        if isinstance(value, tuple):
            return tuple(self.resolve_value(item, step_name, field_name) for item in value)
        return value

    def evaluate_condition(self, condition: str, step_name: str = "unknown") -> bool:
        """
        Evaluate a step condition.

        The condition may be a bare expression (``variables.build.success``)
        or a template (``{{ variables.count }}``). A single word that names
        nothing in scope (``yes``, ``False``, ``deploy``) is taken as a
        literal string. The result is coerced with the same rules as the
        assert action, so ``"false"``, ``"0"`` and ``{"success": false}``
        are all falsy.

        Raises:
            TemplateError: If the condition cannot be evaluated or refers
                to names that are not in scope
        """
        if "{{" in condition:
            result = self.resolve_value(condition, step_name, "condition")
        else:
            result = self._evaluate_bare_condition(condition, step_name)
        return is_truthy(result)

    def _evaluate_bare_condition(self, condition: str, step_name: str) -> Any:
        text = condition.strip()
        try:
            names = meta.find_undeclared_variables(self._jinja_env.parse("{{ " + text + " }}"))
        except TemplateSyntaxError as e:
            raise TemplateError(
                template_str=condition,
                error=e,
                step_name=step_name,
                field_name="condition",
                available_vars=self.variables,
            ) from e

        known = set(self.scope()) | set(self._jinja_env.globals)
        if _PLAIN_WORD.fullmatch(text) and not names & known:
            return text

        unknown = sorted(names - known)
        if unknown:
            error = NameError(f"undefined name(s): {', '.join(unknown)}")
            raise TemplateError(
                template_str=condition,
                error=error,
                step_name=step_name,
                field_name="condition",
                available_vars=self.variables,
            )
        return self.evaluate_expression(text, step_name, "condition")

    def _resolve_string(self, value: str, step_name: str, field_name: str) -> Any:
        if "{{" not in value and "{%" not in value:
            return value

        match = _SINGLE_EXPRESSION.fullmatch(value)
        if match:
            return self.evaluate_expression(match.group(1), step_name, field_name)

        try:
            template = self._jinja_env.from_string(value)
            return template.render(**self.scope())
        except Exception as e:
            raise TemplateError(
                template_str=value,
                error=e,
                step_name=step_name,
                field_name=field_name,
                available_vars=self.variables,
            ) from e
