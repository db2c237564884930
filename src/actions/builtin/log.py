"""Log action - write a message to the playbook log."""

import logging
from typing import Any, Dict

from ..base import ActionContext, ActionResult
from ..registry import define_action

playbook_logger = logging.getLogger("maestro.playbook")

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


async def handle_log(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    message = inputs.get("message")
    level_name = str(inputs.get("level", "info")).lower()

    if level_name not in LEVELS:
        return ActionResult(
            success=False,
            message="Invalid log level",
            error=f"Input 'level' must be one of: {', '.join(LEVELS)}",
        )

    text = message if isinstance(message, str) else str(message)
    playbook_logger.log(LEVELS[level_name], "[%s] %s", context.session_id, text)

    return ActionResult(
        success=True,
        message=text,
        data={"message": text, "level": level_name},
    )


log_action = define_action(
    name="log",
    description="Write a message to the playbook log",
    inputs={
        "message": {
            "type": "string",
            "required": True,
            "description": "Text to log; templates are resolved before logging",
        },
        "level": {
            "type": "string",
            "required": False,
            "default": "info",
            "description": "debug, info, warning or error",
        },
    },
    outputs={
        "message": {"type": "string", "description": "The logged text"},
        "level": {"type": "string", "description": "The level used"},
    },
    handler=handle_log,
)
