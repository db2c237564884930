"""Unit tests for PlaybookEngine."""

import asyncio
from typing import Any, Dict, List

import pytest

from src.actions.base import ActionContext, ActionResult
from src.actions.builtin import register_builtin_actions
from src.actions.registry import ActionRegistry, define_action
from src.playbooks.engine import PlaybookEngine
from src.playbooks.metrics import MetricsCollector
from src.playbooks.models import (
    ExecutionOptions,
    Playbook,
    PlaybookStep,
    StepExecutionResult,
)

BASE_OPTIONS = {"cwd": "/test/project", "session_id": "test-session"}


async def succeed(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    return ActionResult(success=True, message="Success", data={"result": "ok"})


async def fail(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    return ActionResult(success=False, message="Failed", error="Test failure")


async def echo(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    return ActionResult(success=True, message="Echoed", data=inputs)


async def throw(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    raise RuntimeError("Test exception")


async def slow(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    await asyncio.sleep(0.05)
    return ActionResult(success=True, message="Completed")


def sync_success(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    return ActionResult(success=True, message="Sync")


def sync_throw(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
    raise ValueError("Sync exception")


@pytest.fixture
def registry() -> ActionRegistry:
    """Create a registry with test actions."""
    registry = ActionRegistry()
    registry.register(define_action("test.success", succeed, "Always succeeds"))
    registry.register(define_action("test.fail", fail, "Always fails"))
    registry.register(define_action("test.echo", echo, "Echoes inputs"))
    registry.register(define_action("test.throw", throw, "Throws an error"))
    registry.register(define_action("test.slow", slow, "Takes time"))
    registry.register(define_action("test.sync", sync_success, "Synchronous handler"))
    registry.register(define_action("test.sync_throw", sync_throw, "Raises synchronously"))
    return registry


@pytest.fixture
def engine(registry: ActionRegistry) -> PlaybookEngine:
    """Create a PlaybookEngine instance."""
    return PlaybookEngine(registry)


def make_playbook(*steps: Dict[str, Any], **fields: Any) -> Playbook:
    return Playbook.model_validate({"name": "Test Playbook", "steps": list(steps), **fields})


class TestExecutePlaybook:
    """Test suite for running playbooks end to end."""

    @pytest.mark.asyncio
    async def test_single_step(self, engine: PlaybookEngine) -> None:
        """Test a single successful step."""
        playbook = make_playbook({"action": "test.success"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert result.total_steps == 1
        assert result.successful_steps == 1
        assert result.failed_steps == 0
        assert len(result.step_results) == 1

    @pytest.mark.asyncio
    async def test_steps_run_in_order(self, registry: ActionRegistry) -> None:
        """Test that steps run in declaration order."""
        order: List[str] = []

        def recorder(label: str):
            async def handler(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
                order.append(label)
                return ActionResult(success=True)

            return handler

        registry.register(define_action("test.first", recorder("first")))
        registry.register(define_action("test.second", recorder("second")))
        registry.register(define_action("test.third", recorder("third")))

        playbook = make_playbook(
            {"action": "test.first"},
            {"action": "test.second"},
            {"action": "test.third"},
        )
        result = await PlaybookEngine(registry).execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert order == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_stops_on_failure(self, engine: PlaybookEngine) -> None:
        """Test that a failed step stops the playbook."""
        playbook = make_playbook(
            {"action": "test.fail"},
            {"action": "test.success"},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert result.failed_steps == 1
        assert len(result.step_results) == 1
        assert result.step_results[0].error == "Test failure"

    @pytest.mark.asyncio
    async def test_continue_on_error(self, engine: PlaybookEngine) -> None:
        """Test that continue_on_error keeps the playbook running."""
        playbook = make_playbook(
            {"action": "test.fail", "continue_on_error": True},
            {"action": "test.success"},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert result.total_steps == 2
        assert result.failed_steps == 1
        assert result.successful_steps == 1

    @pytest.mark.asyncio
    async def test_store_as(self, engine: PlaybookEngine) -> None:
        """Test that step data is bound under store_as."""
        playbook = make_playbook(
            {"action": "test.echo", "inputs": {"value": 42}, "store_as": "echo_result"}
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert result.variables["echo_result"] == {"value": 42}

    @pytest.mark.asyncio
    async def test_store_as_binds_failed_step_data(self, registry: ActionRegistry) -> None:
        """Test that a failed step's data is still stored."""

        async def fail_with_data(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
            return ActionResult(success=False, error="nope", data={"code": 2})

        registry.register(define_action("test.fail_data", fail_with_data))
        playbook = make_playbook({"action": "test.fail_data", "store_as": "outcome"})

        result = await PlaybookEngine(registry).execute_playbook(playbook, BASE_OPTIONS)

        assert result.variables["outcome"] == {"code": 2}

    @pytest.mark.asyncio
    async def test_variable_substitution(self, engine: PlaybookEngine) -> None:
        """Test that inputs reference earlier step data."""
        playbook = make_playbook(
            {"action": "test.success", "store_as": "first_result"},
            {"action": "test.echo", "inputs": {"result": "{{ variables.first_result.result }}"}},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert result.step_results[1].data == {"result": "ok"}

    @pytest.mark.asyncio
    async def test_whole_expression_keeps_type(self, engine: PlaybookEngine) -> None:
        """Test that a lone expression substitutes the native value."""
        playbook = make_playbook(
            {"action": "test.echo", "inputs": {"value": {"n": 3}}, "store_as": "first"},
            {
                "action": "test.echo",
                "inputs": {
                    "whole": "{{ variables.first }}",
                    "number": "{{ variables.first.value.n }}",
                },
            },
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        data = result.step_results[1].data
        assert data["whole"] == {"value": {"n": 3}}
        assert data["number"] == 3

    @pytest.mark.asyncio
    async def test_embedded_expression_is_stringified(self, engine: PlaybookEngine) -> None:
        """Test interpolation inside a longer string."""
        playbook = make_playbook(
            {
                "action": "test.echo",
                "inputs": {
                    "text": "count={{ variables.count }} ok={{ variables.ok }}",
                    "nested": ["{{ variables.count }}", {"deep": "{{ variables.count }}"}],
                },
            },
            variables={"count": 5, "ok": True},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        data = result.step_results[0].data
        assert data["text"] == "count=5 ok=true"
        assert data["nested"] == [5, {"deep": 5}]

    @pytest.mark.asyncio
    async def test_missing_variable_resolves_to_none(self, engine: PlaybookEngine) -> None:
        """Test that unknown paths substitute None rather than failing."""
        playbook = make_playbook(
            {
                "action": "test.echo",
                "inputs": {"value": "{{ variables.missing.deeper }}", "text": "x{{ variables.missing }}y"},
            }
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert result.step_results[0].data == {"value": None, "text": "xy"}

    @pytest.mark.asyncio
    async def test_context_names_available(self, engine: PlaybookEngine) -> None:
        """Test that cwd, session_id and inputs can be referenced."""
        playbook = make_playbook(
            {
                "action": "test.echo",
                "inputs": {
                    "cwd": "{{ cwd }}",
                    "session": "{{ session_id }}",
                    "target": "{{ inputs.target }}",
                },
            }
        )

        result = await engine.execute_playbook(
            playbook, BASE_OPTIONS, inputs={"target": "prod"}
        )

        assert result.step_results[0].data == {
            "cwd": "/test/project",
            "session": "test-session",
            "target": "prod",
        }

    @pytest.mark.asyncio
    async def test_playbook_input_defaults(self, engine: PlaybookEngine) -> None:
        """Test that declared input defaults apply when not provided."""
        playbook = make_playbook(
            {"action": "test.echo", "inputs": {"env": "{{ inputs.env }}", "n": "{{ inputs.n }}"}},
            inputs={"env": {"type": "string", "default": "staging"}, "n": {"default": 1}},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS, inputs={"n": 7})

        assert result.step_results[0].data == {"env": "staging", "n": 7}

    @pytest.mark.asyncio
    async def test_playbook_variables_overlaid_by_options(self, engine: PlaybookEngine) -> None:
        """Test that caller variables override playbook variables."""
        playbook = make_playbook(
            {"action": "test.echo", "inputs": {"a": "{{ variables.a }}", "b": "{{ variables.b }}"}},
            variables={"a": 1, "b": 2},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS, variables={"b": 20})

        assert result.step_results[0].data == {"a": 1, "b": 20}

    @pytest.mark.asyncio
    async def test_template_error_fails_step(self, engine: PlaybookEngine) -> None:
        """Test that a malformed template fails the step instead of raising."""
        playbook = make_playbook({"action": "test.echo", "inputs": {"value": "{{ variables. }}"}})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert "Template error" in result.step_results[0].error


class TestConditions:
    """Test suite for step conditions."""

    @pytest.mark.asyncio
    async def test_skip_when_false(self, engine: PlaybookEngine) -> None:
        """Test that a false condition skips the step."""
        playbook = make_playbook({"action": "test.success", "condition": "false"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert result.skipped_steps == 1
        assert result.step_results[0].skipped is True
        assert result.step_results[0].skip_reason == "Condition not met: false"

    @pytest.mark.asyncio
    async def test_run_when_true(self, engine: PlaybookEngine) -> None:
        """Test that a true condition runs the step."""
        playbook = make_playbook({"action": "test.success", "condition": "true"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is True
        assert result.successful_steps == 1
        assert result.step_results[0].skipped is None

    @pytest.mark.asyncio
    async def test_condition_on_stored_result(self, engine: PlaybookEngine) -> None:
        """Test conditions that read result-like variables."""
        playbook = make_playbook(
            {"action": "test.echo", "inputs": {"success": False}, "store_as": "build"},
            {"action": "test.success", "name": "deploy", "condition": "variables.build"},
            {"action": "test.success", "name": "notify", "condition": "{{ variables.build.success == false }}"},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.step_results[1].skipped is True
        assert result.step_results[2].skipped is None
        assert result.skipped_steps == 1

    @pytest.mark.asyncio
    async def test_string_false_condition_is_falsy(self, engine: PlaybookEngine) -> None:
        """Test that a template rendering to "0" skips the step."""
        playbook = make_playbook(
            {"action": "test.success", "condition": "{{ variables.count }}"},
            variables={"count": 0},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.step_results[0].skipped is True

    @pytest.mark.asyncio
    async def test_invalid_condition_fails_step(self, engine: PlaybookEngine) -> None:
        """Test that an unparsable condition fails the step."""
        playbook = make_playbook({"action": "test.success", "condition": "variables.x ==="})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert result.step_results[0].skipped is None
        assert "condition" in result.step_results[0].error

    @pytest.mark.asyncio
    @pytest.mark.parametrize("condition", ["yes", "enabled", "False", "deploy"])
    async def test_plain_word_condition_runs(self, engine: PlaybookEngine, condition: str) -> None:
        """Test that a word naming no variable is a truthy literal."""
        playbook = make_playbook({"action": "test.success", "condition": condition})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.step_results[0].skipped is None
        assert result.successful_steps == 1


class TestFailureHandling:
    """Test suite for on_failure steps, errors and abort."""

    @pytest.mark.asyncio
    async def test_on_failure_steps_run(self, registry: ActionRegistry) -> None:
        """Test that on_failure steps run after a failure."""
        handled: List[str] = []

        async def handler(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
            handled.append("handled")
            return ActionResult(success=True, message="Handled")

        registry.register(define_action("test.failure_handler", handler))
        playbook = make_playbook(
            {"action": "test.fail", "on_failure": [{"action": "test.failure_handler"}]},
            {"action": "test.success"},
        )

        result = await PlaybookEngine(registry).execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert handled == ["handled"]
        assert len(result.step_results) == 2
        assert result.step_results[1].action == "test.failure_handler"

    @pytest.mark.asyncio
    async def test_on_failure_then_continue(self, engine: PlaybookEngine) -> None:
        """Test on_failure together with continue_on_error."""
        playbook = make_playbook(
            {
                "action": "test.fail",
                "continue_on_error": True,
                "on_failure": [{"action": "test.echo", "inputs": {"x": 1}}],
            },
            {"action": "test.success"},
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        actions = [r.action for r in result.step_results]
        assert actions == ["test.fail", "test.echo", "test.success"]

    @pytest.mark.asyncio
    async def test_on_failure_not_run_on_success(self, engine: PlaybookEngine) -> None:
        """Test that on_failure steps are ignored for successful steps."""
        playbook = make_playbook(
            {"action": "test.success", "on_failure": [{"action": "test.echo"}]}
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert len(result.step_results) == 1

    @pytest.mark.asyncio
    async def test_on_failure_is_one_level_deep(self, engine: PlaybookEngine) -> None:
        """Test that failing handler steps do not run their own handlers."""
        playbook = make_playbook(
            {
                "action": "test.fail",
                "on_failure": [
                    {"action": "test.fail", "on_failure": [{"action": "test.success"}]},
                    {"action": "test.echo"},
                ],
            }
        )

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        actions = [r.action for r in result.step_results]
        assert actions == ["test.fail", "test.fail", "test.echo"]

    @pytest.mark.asyncio
    async def test_unknown_action(self, engine: PlaybookEngine) -> None:
        """Test that an unknown action fails the step."""
        playbook = make_playbook({"action": "non.existent"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert "'non.existent' is not registered" in result.step_results[0].error

    @pytest.mark.asyncio
    async def test_handler_exception(self, engine: PlaybookEngine) -> None:
        """Test that handler exceptions become failed steps."""
        playbook = make_playbook({"action": "test.throw"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert result.step_results[0].error == "Test exception"

    @pytest.mark.asyncio
    async def test_sync_handler_exception(self, engine: PlaybookEngine) -> None:
        """Test that a plain function raising does not escape the run."""
        playbook = make_playbook({"action": "test.sync_throw"}, {"action": "test.success"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.success is False
        assert len(result.step_results) == 1
        assert result.step_results[0].error == "Sync exception"

    @pytest.mark.asyncio
    async def test_abort_before_start(self, engine: PlaybookEngine) -> None:
        """Test that a set abort signal stops the run before the first step."""
        abort = asyncio.Event()
        abort.set()
        playbook = make_playbook({"action": "test.slow"}, {"action": "test.success"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS, abort_signal=abort)

        assert result.success is False
        assert result.aborted is True
        assert len(result.step_results) == 1
        assert result.step_results[0].error == "Aborted"

    @pytest.mark.asyncio
    async def test_abort_between_steps(self, registry: ActionRegistry) -> None:
        """Test that abort takes effect at the next step boundary."""
        abort = asyncio.Event()

        async def trip(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
            abort.set()
            return ActionResult(success=True)

        registry.register(define_action("test.trip", trip))
        playbook = make_playbook(
            {"action": "test.trip"},
            {"action": "test.success"},
            {"action": "test.success"},
        )

        result = await PlaybookEngine(registry).execute_playbook(
            playbook, BASE_OPTIONS, abort_signal=abort
        )

        assert result.aborted is True
        assert [r.success for r in result.step_results] == [True, False]
        assert result.step_results[1].message == "Aborted"


class TestHooksAndTiming:
    """Test suite for observer hooks, timing and metrics."""

    @pytest.mark.asyncio
    async def test_step_hooks(self, engine: PlaybookEngine) -> None:
        """Test that start and complete hooks see each step index."""
        starts: List[int] = []
        completes: List[int] = []
        playbook = make_playbook({"action": "test.success"}, {"action": "test.success"})

        await engine.execute_playbook(
            playbook,
            BASE_OPTIONS,
            on_step_start=lambda step, index: starts.append(index),
            on_step_complete=lambda result, index: completes.append(index),
        )

        assert starts == [0, 1]
        assert completes == [0, 1]

    @pytest.mark.asyncio
    async def test_async_hooks_and_handler_indices(self, engine: PlaybookEngine) -> None:
        """Test async hooks; failure handlers report their parent's index."""
        seen: List[StepExecutionResult] = []
        indices: List[int] = []

        async def on_complete(result: StepExecutionResult, index: int) -> None:
            seen.append(result)
            indices.append(index)

        playbook = make_playbook(
            {"action": "test.success"},
            {"action": "test.fail", "on_failure": [{"action": "test.echo"}]},
        )

        await engine.execute_playbook(playbook, BASE_OPTIONS, on_step_complete=on_complete)

        assert indices == [0, 1, 1]
        assert [r.action for r in seen] == ["test.success", "test.fail", "test.echo"]

    @pytest.mark.asyncio
    async def test_hook_errors_are_ignored(self, engine: PlaybookEngine) -> None:
        """Test that a raising observer does not affect the run."""

        def broken(step: PlaybookStep, index: int) -> None:
            raise ValueError("observer bug")

        playbook = make_playbook({"action": "test.success"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS, on_step_start=broken)

        assert result.success is True

    @pytest.mark.asyncio
    async def test_elapsed_time(self, engine: PlaybookEngine) -> None:
        """Test that run and step durations are recorded."""
        playbook = make_playbook({"action": "test.slow"})

        result = await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert result.elapsed_ms > 0
        assert result.step_results[0].elapsed_ms > 0

    @pytest.mark.asyncio
    async def test_initial_variables(self, engine: PlaybookEngine) -> None:
        """Test that initial variables are available to templates."""
        playbook = make_playbook({"action": "test.echo", "inputs": {"value": "{{ variables.initial }}"}})

        result = await engine.execute_playbook(
            playbook, ExecutionOptions(variables={"initial": "test-value"}, **BASE_OPTIONS)
        )

        assert result.success is True
        assert result.step_results[0].data == {"value": "test-value"}

    @pytest.mark.asyncio
    async def test_handler_sees_variable_snapshot(self, registry: ActionRegistry) -> None:
        """Test that handlers get the variables bound so far."""
        captured: List[Dict[str, Any]] = []

        async def capture(inputs: Dict[str, Any], context: ActionContext) -> ActionResult:
            captured.append(dict(context.variables))
            return ActionResult(success=True, data="done")

        registry.register(define_action("test.capture", capture))
        playbook = make_playbook(
            {"action": "test.capture", "store_as": "one"},
            {"action": "test.capture"},
        )

        await PlaybookEngine(registry).execute_playbook(playbook, BASE_OPTIONS)

        assert captured == [{}, {"one": "done"}]

    @pytest.mark.asyncio
    async def test_repeat_runs_are_identical(self, engine: PlaybookEngine) -> None:
        """Test that a deterministic playbook gives the same ledger twice."""
        playbook = make_playbook(
            {"action": "test.echo", "inputs": {"v": 1}, "store_as": "a"},
            {"action": "test.success", "condition": "variables.a.v == 2"},
            {"action": "test.fail", "continue_on_error": True},
        )

        first = await engine.execute_playbook(playbook, BASE_OPTIONS)
        second = await engine.execute_playbook(playbook, BASE_OPTIONS)

        def strip(result: Any) -> List[Dict[str, Any]]:
            return [r.model_dump(exclude={"elapsed_ms"}) for r in result.step_results]

        assert strip(first) == strip(second)
        assert first.variables == second.variables

    @pytest.mark.asyncio
    async def test_metrics_recorded(self, registry: ActionRegistry) -> None:
        """Test that runs and actions are counted."""
        metrics = MetricsCollector()
        engine = PlaybookEngine(registry, metrics=metrics)
        playbook = make_playbook({"action": "test.success"}, {"action": "test.fail"})

        await engine.execute_playbook(playbook, BASE_OPTIONS)

        assert metrics.get_counter(
            "playbook_executions_total", {"playbook": "Test Playbook", "status": "failure"}
        ) == 1
        assert metrics.get_counter(
            "action_executions_total", {"action": "test.success", "status": "success"}
        ) == 1
        assert metrics.get_counter(
            "action_executions_total", {"action": "test.fail", "status": "failure"}
        ) == 1
        assert len(metrics.get_histogram_values("playbook_duration_seconds")) == 1


class TestExecuteAction:
    """Test suite for running single actions."""

    @pytest.mark.asyncio
    async def test_execute_action(self, engine: PlaybookEngine) -> None:
        """Test running a single action."""
        result = await engine.execute_action("test.success", {}, BASE_OPTIONS)

        assert result.success is True
        assert result.action == "test.success"
        assert result.data == {"result": "ok"}

    @pytest.mark.asyncio
    async def test_inputs_passed_verbatim(self, engine: PlaybookEngine) -> None:
        """Test that single-action inputs are not templated."""
        result = await engine.execute_action(
            "test.echo", {"foo": "bar", "raw": "{{ variables.x }}"}, BASE_OPTIONS
        )

        assert result.data == {"foo": "bar", "raw": "{{ variables.x }}"}

    @pytest.mark.asyncio
    async def test_action_failure(self, engine: PlaybookEngine) -> None:
        """Test a failing action."""
        result = await engine.execute_action("test.fail", {}, BASE_OPTIONS)

        assert result.success is False
        assert result.error == "Test failure"

    @pytest.mark.asyncio
    async def test_unknown_action(self, engine: PlaybookEngine) -> None:
        """Test an unknown action name."""
        result = await engine.execute_action("unknown.action", {}, BASE_OPTIONS)

        assert result.success is False
        assert "is not registered" in result.error

    @pytest.mark.asyncio
    async def test_sync_handler(self, engine: PlaybookEngine) -> None:
        """Test that synchronous handlers are supported."""
        result = await engine.execute_action("test.sync", {}, BASE_OPTIONS)

        assert result.success is True
        assert result.message == "Sync"

    @pytest.mark.asyncio
    async def test_missing_required_input(self, engine: PlaybookEngine) -> None:
        """Test that required inputs are checked before the handler runs."""
        register_builtin_actions(engine.registry)

        result = await engine.execute_action("assert", {"message": "m"}, BASE_OPTIONS)

        assert result.success is False
        assert "condition" in result.error

    @pytest.mark.asyncio
    async def test_mapping_result_accepted(self, registry: ActionRegistry) -> None:
        """Test that handlers may return a plain dict."""

        async def dict_handler(inputs: Dict[str, Any], context: ActionContext) -> Any:
            return {"success": True, "message": "from dict"}

        registry.register(define_action("test.dict", dict_handler))

        result = await PlaybookEngine(registry).execute_action("test.dict")

        assert result.success is True
        assert result.message == "from dict"

    @pytest.mark.asyncio
    async def test_bad_return_type(self, registry: ActionRegistry) -> None:
        """Test that a non-result return fails the action."""

        async def bad(inputs: Dict[str, Any], context: ActionContext) -> Any:
            return 42

        registry.register(define_action("test.bad", bad))

        result = await PlaybookEngine(registry).execute_action("test.bad")

        assert result.success is False
        assert "expected ActionResult" in result.error
