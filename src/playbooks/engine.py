"""PlaybookEngine - runs actions and playbooks against an action registry."""

import inspect
import logging
import time
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Union

from ..actions.base import ActionContext, ActionResult
from ..actions.registry import ActionRegistry
from ..actions.validation import apply_input_defaults, find_missing_inputs
from ..errors import ActionNotFoundError, TemplateError
from .context import ExecutionContext
from .metrics import MetricsCollector
from .models import (
    ActionExecutionResult,
    ExecutionOptions,
    Playbook,
    PlaybookExecutionResult,
    PlaybookStep,
    StepExecutionResult,
)

logger = logging.getLogger(__name__)

ABORTED = "Aborted"

OptionsArg = Optional[Union[ExecutionOptions, Dict[str, Any]]]


class PlaybookEngine:
    """
    Executes single actions and whole playbooks.

    The engine handles:
    - Looking up actions in an ActionRegistry
    - Substituting ``{{ }}`` templates in step inputs via ExecutionContext
    - Skipping steps whose condition is falsy
    - Running ``on_failure`` steps and honouring ``continue_on_error``
    - Stopping at the next step boundary once the abort signal is set

    Expected failures (unknown action, handler exception, bad template,
    abort) never raise; they are reported in the returned result.
    """

    def __init__(
        self,
        registry: Optional[ActionRegistry] = None,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """
        Initialize the PlaybookEngine.

        Args:
            registry: Optional ActionRegistry. If not provided, uses the
                      process-wide instance.
            metrics: Optional MetricsCollector for tracking execution metrics
        """
        self.registry = registry if registry is not None else ActionRegistry.get_instance()
        self.metrics = metrics

    async def execute_action(
        self,
        action_name: str,
        inputs: Optional[Dict[str, Any]] = None,
        options: OptionsArg = None,
        **kwargs: Any,
    ) -> ActionExecutionResult:
        """
        Run one named action outside of a playbook.

        Args:
            action_name: Registered action name
            inputs: Inputs passed to the handler as-is (no template substitution)
            options: ExecutionOptions or a dict of its fields
            **kwargs: ExecutionOptions fields, overriding ``options``

        Returns:
            The action's result, tagged with the action name
        """
        opts = _coerce_options(options, kwargs)
        context = ActionContext(
            cwd=opts.cwd,
            session_id=opts.session_id,
            variables=dict(opts.variables),
            abort_signal=opts.abort_signal,
        )
        return await self._invoke(action_name, dict(inputs or {}), context)

    async def execute_playbook(
        self,
        playbook: Playbook,
        options: OptionsArg = None,
        **kwargs: Any,
    ) -> PlaybookExecutionResult:
        """
        Run every step of a playbook in order.

        Args:
            playbook: The playbook to execute
            options: ExecutionOptions or a dict of its fields
            **kwargs: ExecutionOptions fields, overriding ``options``

        Returns:
            PlaybookExecutionResult with the per-step ledger and final variables
        """
        opts = _coerce_options(options, kwargs)
        started = time.perf_counter()

        context = ExecutionContext(
            variables={**playbook.variables, **opts.variables},
            inputs=playbook.input_defaults(opts.inputs),
            cwd=opts.cwd,
            session_id=opts.session_id,
        )
        results: List[StepExecutionResult] = []
        aborted = False

        logger.info(
            "Running playbook '%s' (%d steps, session=%s)",
            playbook.name,
            len(playbook.steps),
            opts.session_id,
        )

        for index, step in enumerate(playbook.steps):
            if opts.aborted:
                results.append(_aborted_result(step))
                aborted = True
                break

            result = await self._run_step(step, index, context, opts, results)
            if result.success:
                continue

            if step.on_failure:
                aborted = await self._run_failure_steps(step, index, context, opts, results)
                if aborted:
                    break

            if not step.continue_on_error:
                logger.info(
                    "Stopping playbook '%s' after failed step '%s'",
                    playbook.name,
                    step.label,
                )
                break

        skipped = sum(1 for r in results if r.skipped)
        failed = sum(1 for r in results if not r.success)
        elapsed_ms = (time.perf_counter() - started) * 1000

        summary = PlaybookExecutionResult(
            playbook=playbook.name,
            success=failed == 0 and not aborted,
            aborted=aborted,
            total_steps=len(results),
            successful_steps=len(results) - failed - skipped,
            failed_steps=failed,
            skipped_steps=skipped,
            step_results=results,
            variables=context.snapshot(),
            elapsed_ms=elapsed_ms,
        )

        status = "aborted" if aborted else ("success" if summary.success else "failure")
        logger.info(
            "Playbook '%s' finished: %s (%d ok, %d failed, %d skipped) in %.0fms",
            playbook.name,
            status,
            summary.successful_steps,
            summary.failed_steps,
            summary.skipped_steps,
            elapsed_ms,
        )

        if self.metrics:
            self.metrics.increment_counter(
                "playbook_executions_total",
                {"playbook": playbook.name, "status": status},
                help_text="Total playbook executions",
            )
            self.metrics.observe_histogram(
                "playbook_duration_seconds",
                elapsed_ms / 1000,
                {"playbook": playbook.name},
                help_text="Playbook execution duration",
            )
            if skipped:
                self.metrics.increment_counter(
                    "playbook_steps_skipped_total",
                    {"playbook": playbook.name},
                    value=float(skipped),
                    help_text="Steps skipped because their condition was falsy",
                )

        return summary

    async def _run_failure_steps(
        self,
        step: PlaybookStep,
        index: int,
        context: ExecutionContext,
        opts: ExecutionOptions,
        results: List[StepExecutionResult],
    ) -> bool:
        """
        Run the ``on_failure`` steps of a failed step.

        Handler steps are not themselves failure-handled, and a failing
        handler step does not stop the remaining ones.

        Returns:
            True if the run was aborted while handlers were running
        """
        logger.debug("Running %d failure handler(s) for '%s'", len(step.on_failure), step.label)

        for handler_step in step.on_failure:
            if opts.aborted:
                results.append(_aborted_result(handler_step))
                return True
            await self._run_step(handler_step, index, context, opts, results)

        return False

    async def _run_step(
        self,
        step: PlaybookStep,
        index: int,
        context: ExecutionContext,
        opts: ExecutionOptions,
        results: List[StepExecutionResult],
    ) -> StepExecutionResult:
        """Evaluate, run and record one step."""
        await _notify(opts.on_step_start, step, index)

        result = await self._evaluate_step(step, context, opts)

        results.append(result)
        await _notify(opts.on_step_complete, result, index)
        return result

    async def _evaluate_step(
        self,
        step: PlaybookStep,
        context: ExecutionContext,
        opts: ExecutionOptions,
    ) -> StepExecutionResult:
        if step.condition:
            try:
                should_run = context.evaluate_condition(step.condition, step.label)
            except TemplateError as e:
                logger.warning("Condition of step '%s' failed: %s", step.label, e)
                return StepExecutionResult(
                    step=step.label,
                    action=step.action,
                    success=False,
                    message="Condition could not be evaluated",
                    error=str(e),
                )

            if not should_run:
                logger.debug("Skipping step '%s': condition not met", step.label)
                return StepExecutionResult(
                    step=step.label,
                    action=step.action,
                    success=True,
                    message="Skipped",
                    skipped=True,
                    skip_reason=f"Condition not met: {step.condition}",
                )

        try:
            inputs = context.resolve_value(step.inputs, step.label)
        except TemplateError as e:
            logger.warning("Inputs of step '%s' failed to render: %s", step.label, e)
            return StepExecutionResult(
                step=step.label,
                action=step.action,
                success=False,
                message="Inputs could not be resolved",
                error=str(e),
            )

        action_context = ActionContext(
            cwd=context.cwd,
            session_id=context.session_id,
            variables=context.snapshot(),
            abort_signal=opts.abort_signal,
        )

        logger.debug("Running step '%s' (action=%s)", step.label, step.action)
        outcome = await self._invoke(step.action, inputs, action_context)

        if step.store_as:
            context.set_variable(step.store_as, outcome.data)

        return StepExecutionResult(
            step=step.label,
            action=step.action,
            success=outcome.success,
            message=outcome.message,
            data=outcome.data,
            error=outcome.error,
            elapsed_ms=outcome.elapsed_ms or 0.0,
        )

    async def _invoke(
        self,
        action_name: str,
        inputs: Dict[str, Any],
        context: ActionContext,
    ) -> ActionExecutionResult:
        """Look up an action and call its handler, converting every failure to a result."""
        definition = self.registry.get(action_name)
        if definition is None:
            error = ActionNotFoundError(action_name, self.registry.list_actions())
            logger.warning("%s", error)
            self._record_action(action_name, "not_found")
            return ActionExecutionResult(
                action=action_name,
                success=False,
                message=f"Unknown action: {action_name}",
                error=str(error),
                elapsed_ms=0.0,
            )

        inputs = apply_input_defaults(inputs, definition.inputs)
        missing = find_missing_inputs(inputs, definition.inputs)
        if missing:
            self._record_action(action_name, "invalid_input")
            return ActionExecutionResult(
                action=action_name,
                success=False,
                message=f"Invalid inputs for '{action_name}'",
                error=f"Missing required input(s): {', '.join(missing)}",
                elapsed_ms=0.0,
            )

        started = time.perf_counter()
        try:
            outcome = definition.handler(inputs, context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
            result = _coerce_result(outcome)
        except Exception as e:
            logger.exception("Action '%s' raised", action_name)
            result = ActionResult(
                success=False,
                message=f"Action '{action_name}' raised {type(e).__name__}",
                error=str(e) or type(e).__name__,
            )
        elapsed_ms = (time.perf_counter() - started) * 1000

        self._record_action(action_name, "success" if result.success else "failure", elapsed_ms)

        return ActionExecutionResult(
            action=action_name,
            success=result.success,
            message=result.message,
            data=result.data,
            error=result.error,
            elapsed_ms=elapsed_ms,
        )

    def _record_action(
        self, action_name: str, status: str, elapsed_ms: Optional[float] = None
    ) -> None:
        if not self.metrics:
            return
        self.metrics.increment_counter(
            "action_executions_total",
            {"action": action_name, "status": status},
            help_text="Total action executions",
        )
        if elapsed_ms is not None:
            self.metrics.observe_histogram(
                "action_duration_seconds",
                elapsed_ms / 1000,
                {"action": action_name},
                help_text="Action handler duration",
            )


def _coerce_options(options: OptionsArg, overrides: Dict[str, Any]) -> ExecutionOptions:
    if options is None:
        return ExecutionOptions(**overrides)
    if isinstance(options, ExecutionOptions):
        return options.model_copy(update=overrides) if overrides else options
    return ExecutionOptions(**{**options, **overrides})


def _coerce_result(outcome: Any) -> ActionResult:
    if isinstance(outcome, ActionResult):
        return outcome
    if isinstance(outcome, Mapping):
        return ActionResult.model_validate(dict(outcome))
    raise TypeError(
        f"Action handler returned {type(outcome).__name__}, expected ActionResult"
    )


def _aborted_result(step: PlaybookStep) -> StepExecutionResult:
    return StepExecutionResult(
        step=step.label,
        action=step.action,
        success=False,
        message=ABORTED,
        error=ABORTED,
    )


async def _notify(hook: Any, *args: Any) -> None:
    """Call an observer hook; observer errors are logged, never propagated."""
    if hook is None:
        return
    try:
        outcome = hook(*args)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception:
        logger.exception("Step observer %r raised", hook)


async def execute_action(
    action_name: str,
    inputs: Optional[Dict[str, Any]] = None,
    options: OptionsArg = None,
    **kwargs: Any,
) -> ActionExecutionResult:
    """Run one action using the process-wide registry."""
    return await PlaybookEngine().execute_action(action_name, inputs, options, **kwargs)


async def execute_playbook(
    playbook: Playbook,
    options: OptionsArg = None,
    **kwargs: Any,
) -> PlaybookExecutionResult:
    """Run a playbook using the process-wide registry."""
    return await PlaybookEngine().execute_playbook(playbook, options, **kwargs)
