"""Human and machine readable renderings of a PlaybookExecutionResult."""

import json
from typing import List

from .models import PlaybookExecutionResult, StepExecutionResult


def format_duration(ms: float) -> str:
    """
    Format a duration in milliseconds.

    Examples: ``850ms``, ``1.5s``, ``2m 5s``.
    """
    if ms < 1000:
        return f"{round(ms)}ms"
    if ms < 60000:
        return f"{ms / 1000:.1f}s"
    minutes = int(ms // 60000)
    seconds = (ms % 60000) / 1000
    return f"{minutes}m {seconds:.0f}s"


def _status(result: PlaybookExecutionResult) -> str:
    if result.aborted:
        return "ABORTED"
    return "PASSED" if result.success else "FAILED"


def _step_status(step: StepExecutionResult) -> str:
    if step.skipped:
        return "SKIP"
    return "PASS" if step.success else "FAIL"


def format_result_markdown(result: PlaybookExecutionResult) -> str:
    """Render a run as a Markdown summary table followed by step results."""
    lines: List[str] = []

    icon = "✅" if result.success else "❌"
    lines.append(f"## {icon} Playbook: {result.playbook}")
    lines.append("")

    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Status | {_status(result)} |")
    lines.append(f"| Steps Executed | {result.total_steps} |")
    lines.append(f"| Steps Passed | {result.successful_steps} |")
    lines.append(f"| Steps Failed | {result.failed_steps} |")
    lines.append(f"| Steps Skipped | {result.skipped_steps} |")
    lines.append(f"| Duration | {format_duration(result.elapsed_ms)} |")
    lines.append("")

    if result.step_results:
        lines.append("### Step Results")
        lines.append("")
        for step in result.step_results:
            if step.skipped:
                step_icon, info = "⏭️", f"(skipped: {step.skip_reason})"
            elif step.success:
                step_icon, info = "✅", f"({format_duration(step.elapsed_ms)})"
            else:
                step_icon, info = "❌", f"({step.error or step.message})"
            lines.append(f"- {step_icon} **{step.step}** {info}")
        lines.append("")

    return "\n".join(lines)


def format_result_text(result: PlaybookExecutionResult) -> str:
    """Render a run as plain text for terminals and logs."""
    lines: List[str] = []

    lines.append("=" * 60)
    lines.append(f"PLAYBOOK: {result.playbook}")
    lines.append("=" * 60)
    lines.append("")

    lines.append(f"Status: {_status(result)}")
    lines.append(f"Duration: {format_duration(result.elapsed_ms)}")
    lines.append("")

    lines.append("-" * 40)
    lines.append("STEPS")
    lines.append("-" * 40)
    lines.append(f"  Executed: {result.total_steps}")
    lines.append(f"  Passed: {result.successful_steps}")
    lines.append(f"  Failed: {result.failed_steps}")
    lines.append(f"  Skipped: {result.skipped_steps}")
    lines.append("")

    if result.step_results:
        lines.append("-" * 40)
        lines.append("STEP DETAILS")
        lines.append("-" * 40)
        for step in result.step_results:
            lines.append(f"  [{_step_status(step)}] {step.step}")
            if step.error:
                for i, error_line in enumerate(step.error.splitlines()):
                    label = "Error: " if i == 0 else "       "
                    lines.append(f"         {label}{error_line}")
            if step.skip_reason:
                lines.append(f"         Reason: {step.skip_reason}")
        lines.append("")

    return "\n".join(lines)


def format_result_compact(result: PlaybookExecutionResult) -> str:
    """One-line summary, e.g. ``[PASS] deploy: 3/3 steps, 1.2s``."""
    status = "PASS" if result.success else "FAIL"
    steps = f"{result.successful_steps}/{result.total_steps}"
    return f"[{status}] {result.playbook}: {steps} steps, {format_duration(result.elapsed_ms)}"


def format_result_json(result: PlaybookExecutionResult, indent: int = 2) -> str:
    """Serialize the full result, including step data and final variables."""
    return json.dumps(result.model_dump(), indent=indent, default=str)
