"""Step executor tests."""

import asyncio
import time

import pytest

from conftest import RecordingTool, tool_step, workflow_doc
from stepwise.contracts import Execution, WorkflowDefinition
from stepwise.errors import (
    ConditionEvaluationError,
    StepTimeoutError,
    ToolInvocationError,
    UnknownStepError,
)
from stepwise.execute import RunContext, StepExecutor


def _run(steps, variables=None, call_tool=None) -> RunContext:
    workflow = WorkflowDefinition.model_validate(workflow_doc("wf", steps))
    execution = Execution(id="exec_test", workflow_id="wf", variables=dict(variables or {}))
    return RunContext(workflow=workflow, execution=execution, call_tool=call_tool)


@pytest.mark.asyncio
async def test_tool_step_interpolates_parameters(tool):
    run = _run(
        [tool_step("deploy", "netlify_deploy_site", parameters={"path": "${dir}/dist", "prod": True})],
        variables={"dir": "/srv"},
        call_tool=tool,
    )
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)

    assert outcome.success is True
    assert outcome.result == {"echo": {"path": "/srv/dist", "prod": True}}
    assert tool.calls == [("netlify_deploy_site", {"path": "/srv/dist", "prod": True})]


@pytest.mark.asyncio
async def test_tool_step_failure_propagates():
    run = _run([tool_step("x", "bad")], call_tool=RecordingTool(fail_on=["bad"]))
    with pytest.raises(RuntimeError, match="bad failed"):
        await StepExecutor().execute(run.workflow.steps[0], run)


@pytest.mark.asyncio
async def test_tool_step_without_caller():
    run = _run([tool_step("x")])
    with pytest.raises(ToolInvocationError):
        await StepExecutor().execute(run.workflow.steps[0], run)


@pytest.mark.asyncio
async def test_condition_step_reports_truth_value():
    step = {"id": "c", "name": "c", "type": "condition", "condition": "arguments.runTests"}
    executor = StepExecutor()

    run = _run([step], variables={"runTests": True})
    assert (await executor.execute(run.workflow.steps[0], run)).success is True

    run = _run([step], variables={"runTests": False})
    assert (await executor.execute(run.workflow.steps[0], run)).success is False


@pytest.mark.asyncio
async def test_condition_step_interpolates_before_evaluating():
    step = {"id": "c", "name": "c", "type": "condition", "condition": "'${env}' == 'prod'"}
    run = _run([step], variables={"env": "prod"})
    assert (await StepExecutor().execute(run.workflow.steps[0], run)).success is True


@pytest.mark.asyncio
async def test_malformed_condition_raises():
    step = {"id": "c", "name": "c", "type": "condition", "condition": "a ==="}
    run = _run([step], variables={"a": 1})
    with pytest.raises(ConditionEvaluationError):
        await StepExecutor().execute(run.workflow.steps[0], run)


@pytest.mark.asyncio
async def test_delay_step_waits():
    run = _run([{"id": "d", "name": "d", "type": "delay", "delayMs": 50}])
    started = time.monotonic()
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)
    assert outcome.success is True
    assert time.monotonic() - started >= 0.05


@pytest.mark.asyncio
async def test_delay_step_uses_default(monkeypatch):
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr(asyncio, "sleep", fake_sleep)
    run = _run([{"id": "d", "name": "d", "type": "delay"}])
    await StepExecutor().execute(run.workflow.steps[0], run)
    assert slept == [1.0]


@pytest.mark.asyncio
async def test_prompt_step_renders_template():
    step = {"id": "p", "name": "p", "type": "prompt", "prompt": "Summarise ${siteId}"}
    run = _run([step], variables={"siteId": "abc"})
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)
    assert outcome.result == "Summarise abc"


@pytest.mark.asyncio
async def test_loop_step_binds_each_item(tool):
    step = {
        "id": "each",
        "name": "each",
        "type": "loop",
        "loopVariable": "site",
        "loopItems": ["a", "${extra}"],
        "tool": "netlify_get_site_info",
        "parameters": {"siteId": "${site}"},
    }
    run = _run([step], variables={"extra": "b", "site": "previous"}, call_tool=tool)
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)

    assert outcome.success is True
    assert [params for _, params in tool.calls] == [{"siteId": "a"}, {"siteId": "b"}]
    assert outcome.result == [{"echo": {"siteId": "a"}}, {"echo": {"siteId": "b"}}]
    assert run.variables["site"] == "previous"


@pytest.mark.asyncio
async def test_loop_variable_removed_when_previously_unset(tool):
    step = {
        "id": "each",
        "name": "each",
        "type": "loop",
        "loopVariable": "item",
        "loopItems": [1],
        "tool": "echo",
    }
    run = _run([step], call_tool=tool)
    await StepExecutor().execute(run.workflow.steps[0], run)
    assert "item" not in run.variables


@pytest.mark.asyncio
async def test_parallel_step_reports_every_branch():
    steps = [
        {"id": "fan", "name": "fan", "type": "parallel", "parallel": ["a", "b", "c"]},
        tool_step("a", "ok"),
        tool_step("b", "bad"),
        {"id": "c", "name": "c", "type": "condition", "condition": "true"},
    ]
    run = _run(steps, call_tool=RecordingTool(fail_on=["bad"]))
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)

    assert outcome.success is False
    assert [b.step_id for b in outcome.branches] == ["a", "b", "c"]
    assert [b.success for b in outcome.branches] == [True, False, True]
    assert outcome.branches[1].error == "bad failed"
    assert "b" in outcome.error


@pytest.mark.asyncio
async def test_false_condition_branch_does_not_fail_parallel(tool):
    steps = [
        {"id": "fan", "name": "fan", "type": "parallel", "parallel": ["c", "t"]},
        {"id": "c", "name": "c", "type": "condition", "condition": "arguments.flag"},
        tool_step("t"),
    ]
    run = _run(steps, variables={"flag": False}, call_tool=tool)
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)

    assert outcome.success is True
    assert outcome.branches[0].success is True
    assert outcome.branches[0].result is False
    assert outcome.error is None


@pytest.mark.asyncio
async def test_malformed_condition_branch_fails_parallel(tool):
    steps = [
        {"id": "fan", "name": "fan", "type": "parallel", "parallel": ["c", "t"]},
        {"id": "c", "name": "c", "type": "condition", "condition": "flag ==="},
        tool_step("t"),
    ]
    run = _run(steps, variables={"flag": False}, call_tool=tool)
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)

    assert outcome.success is False
    assert [b.success for b in outcome.branches] == [False, True]
    assert outcome.error == "Parallel branches failed: c"


@pytest.mark.asyncio
async def test_parallel_step_succeeds_when_all_branches_do(tool):
    steps = [
        {"id": "fan", "name": "fan", "type": "parallel", "parallel": ["a", "b"]},
        tool_step("a"),
        tool_step("b"),
    ]
    run = _run(steps, call_tool=tool)
    outcome = await StepExecutor().execute(run.workflow.steps[0], run)
    assert outcome.success is True
    assert len(outcome.branches) == 2
    assert outcome.error is None


@pytest.mark.asyncio
async def test_parallel_branches_run_concurrently():
    steps = [
        {"id": "fan", "name": "fan", "type": "parallel", "parallel": ["a", "b", "c"]},
        {"id": "a", "name": "a", "type": "delay", "delayMs": 100},
        {"id": "b", "name": "b", "type": "delay", "delayMs": 100},
        {"id": "c", "name": "c", "type": "delay", "delayMs": 100},
    ]
    run = _run(steps)
    started = time.monotonic()
    await StepExecutor().execute(run.workflow.steps[0], run)
    assert time.monotonic() - started < 0.25


@pytest.mark.asyncio
async def test_parallel_with_unknown_sibling():
    steps = [{"id": "fan", "name": "fan", "type": "parallel", "parallel": ["ghost"]}]
    run = _run(steps)
    with pytest.raises(UnknownStepError) as exc_info:
        await StepExecutor().execute(run.workflow.steps[0], run)
    assert exc_info.value.step_id == "ghost"


@pytest.mark.asyncio
async def test_step_timeout_is_enforced():
    async def slow_tool(name, parameters):
        await asyncio.sleep(1)

    run = _run([tool_step("slow", timeout=20)], call_tool=slow_tool)
    with pytest.raises(StepTimeoutError):
        await StepExecutor().execute(run.workflow.steps[0], run)
