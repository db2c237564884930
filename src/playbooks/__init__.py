"""Playbook engine - core execution logic."""

from ..errors import (
    ActionNotFoundError,
    InvalidInputError,
    PlaybookExecutionError,
    TemplateError,
)
from .context import ExecutionContext
from .engine import PlaybookEngine, execute_action, execute_playbook
from .loader import PlaybookInfo, PlaybookLoader, PlaybookLoadError
from .metrics import MetricsCollector, PrometheusExporter
from .models import (
    ActionExecutionResult,
    ExecutionOptions,
    Playbook,
    PlaybookExecutionResult,
    PlaybookInputDef,
    PlaybookStep,
    StepExecutionResult,
)
from .report import (
    format_duration,
    format_result_compact,
    format_result_json,
    format_result_markdown,
    format_result_text,
)
from .validator import PlaybookValidator, ValidationLevel, ValidationMessage

__all__ = [
    "PlaybookLoader",
    "PlaybookLoadError",
    "PlaybookInfo",
    "Playbook",
    "PlaybookStep",
    "PlaybookInputDef",
    "StepExecutionResult",
    "ActionExecutionResult",
    "PlaybookExecutionResult",
    "ExecutionOptions",
    "PlaybookEngine",
    "execute_action",
    "execute_playbook",
    "ExecutionContext",
    "PlaybookExecutionError",
    "ActionNotFoundError",
    "TemplateError",
    "InvalidInputError",
    "PlaybookValidator",
    "ValidationLevel",
    "ValidationMessage",
    "MetricsCollector",
    "PrometheusExporter",
    "format_duration",
    "format_result_markdown",
    "format_result_text",
    "format_result_compact",
    "format_result_json",
]
