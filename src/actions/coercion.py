"""Truthiness coercion shared by the assert action and step conditions."""

import math
from collections.abc import Mapping
from typing import Any

FALSY_STRINGS = ("", "false", "0")


def is_truthy(value: Any, negate: bool = False) -> bool:
    """
    Coerce an arbitrary value to a pass/fail boolean.

    None, NaN, False, 0, "", "false", "0" and empty lists are falsy.
    A mapping carrying a boolean ``success`` (or, failing that, ``passed``)
    field is judged by that field; any other mapping is truthy.

    Args:
        value: Value to coerce
        negate: Invert the final result

    Returns:
        Coerced boolean
    """
    result = _coerce(value)
    return not result if negate else result


def _coerce(value: Any) -> bool:
    if value is None:
        return False

    if isinstance(value, bool):
        return value

    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return False
        return value != 0

    if isinstance(value, str):
        return value not in FALSY_STRINGS

    if isinstance(value, list):
        return len(value) > 0

    if isinstance(value, Mapping):
        # Result-like objects carry their own verdict
        if isinstance(value.get("success"), bool):
            return value["success"]
        if isinstance(value.get("passed"), bool):
            return value["passed"]
        return True

    return bool(value)
