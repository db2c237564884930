"""Wait action - pause a playbook, stopping early if the run is aborted."""

import asyncio
import time
from typing import Any, Dict

from pydantic import BaseModel, Field

from ..base import ActionContext, ActionResult
from ..registry import define_action
from ..validation import validate_input

POLL_INTERVAL_SECONDS = 0.05


class WaitInputs(BaseModel):
    seconds: float = Field(default=1.0, ge=0, description="How long to wait")


@validate_input(WaitInputs, action_name="wait")
async def handle_wait(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    seconds = inputs["seconds"]
    started = time.perf_counter()
    deadline = started + seconds

    while True:
        if context.aborted:
            return ActionResult(
                success=False,
                message="Wait interrupted",
                error="Aborted",
                data={"waited_ms": (time.perf_counter() - started) * 1000},
            )
        remaining = deadline - time.perf_counter()
        if remaining <= 0:
            break
        await asyncio.sleep(min(remaining, POLL_INTERVAL_SECONDS))

    waited_ms = (time.perf_counter() - started) * 1000
    return ActionResult(
        success=True,
        message=f"Waited {seconds:g}s",
        data={"waited_ms": waited_ms},
    )


wait_action = define_action(
    name="wait",
    description="Pause for a number of seconds",
    inputs={
        "seconds": {
            "type": "number",
            "required": False,
            "default": 1,
            "description": "Seconds to wait (fractions allowed)",
        },
    },
    outputs={
        "waited_ms": {"type": "number", "description": "Actual time waited"},
    },
    handler=handle_wait,
)
