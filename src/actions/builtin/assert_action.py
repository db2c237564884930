"""Assert action - fails the step unless a value is truthy.

Example YAML usage:

    - action: assert
      inputs:
        condition: "{{ variables.build }}"
        message: Build should succeed

    - action: assert
      inputs:
        condition: "{{ variables.errors }}"
        message: There should be no errors
        not: true
"""

import json
import time
from typing import Any, Dict

from ..base import ActionContext, ActionResult
from ..coercion import is_truthy
from ..registry import define_action


def format_value(value: Any) -> str:
    """Render a value the way it would appear in a YAML/JSON playbook."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return json.dumps(value)
    try:
        return json.dumps(value, default=str)
    except (TypeError, ValueError):
        return repr(value)


async def handle_assert(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    started = time.perf_counter()

    message = inputs.get("message")
    if not isinstance(message, str) or not message.strip():
        return ActionResult(
            success=False,
            message="Invalid assertion",
            error="Input 'message' is required and must be a non-empty string",
            elapsed_ms=(time.perf_counter() - started) * 1000,
        )

    raw_value = inputs.get("condition")
    negate = is_truthy(inputs.get("not", False))
    expected = not negate
    actual = is_truthy(raw_value)
    passed = actual == expected

    data = {
        "passed": passed,
        "condition": actual,
        "expected": expected,
        "message": message,
        "raw_value": raw_value,
    }
    elapsed_ms = (time.perf_counter() - started) * 1000

    if passed:
        return ActionResult(
            success=True,
            message=f"✓ {message}",
            data=data,
            elapsed_ms=elapsed_ms,
        )

    return ActionResult(
        success=False,
        message=f"✗ {message}",
        data=data,
        error=(
            f"Assertion failed: {message}\n"
            f"  Expected: {format_value(expected)}\n"
            f"  Actual: {format_value(actual)} (value: {format_value(raw_value)})"
        ),
        elapsed_ms=elapsed_ms,
    )


assert_action = define_action(
    name="assert",
    description="Fail the step unless a condition is truthy (or falsy with not: true)",
    inputs={
        "condition": {
            "type": "any",
            "required": True,
            "description": "Value to check; result objects are judged by success/passed",
        },
        "message": {
            "type": "string",
            "required": True,
            "description": "What the assertion verifies",
        },
        "not": {
            "type": "boolean",
            "required": False,
            "default": False,
            "description": "Expect the condition to be falsy instead",
        },
    },
    outputs={
        "passed": {"type": "boolean", "description": "Whether the assertion held"},
        "condition": {"type": "boolean", "description": "Coerced truthiness of the value"},
        "expected": {"type": "boolean", "description": "Truthiness that was expected"},
        "message": {"type": "string", "description": "The assertion message"},
        "raw_value": {"type": "any", "description": "The value as given"},
    },
    handler=handle_assert,
)
