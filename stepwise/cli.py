"""Command line interface for managing and running stepwise workflows."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
import yaml
from pydantic import ValidationError

from stepwise.config import StepwiseConfig, load_config
from stepwise.contracts import Execution, ExecutionStatus, WorkflowDefinition
from stepwise.dispatch import WorkflowDispatcher
from stepwise.errors import WorkflowError, WorkflowNotFoundError
from stepwise.tools import HttpToolCaller, ToolCaller, create_default_registry

app = typer.Typer(help="CLI for stepwise workflows")

workflow_app = typer.Typer(help="Commands for managing workflows")
app.add_typer(workflow_app, name="workflow")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", "-c", help="Path to a stepwise YAML configuration file"
    ),
) -> None:
    """stepwise CLI entry point."""
    try:
        settings = load_config(str(config) if config else None)
    except ValidationError as exc:
        _fail(f"Invalid configuration: {exc}")
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj = settings


def _fail(message: str) -> None:
    typer.secho(message, fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _dispatcher(config: StepwiseConfig) -> WorkflowDispatcher:
    return asyncio.run(WorkflowDispatcher.from_config(config))


def _summary(wf: WorkflowDefinition) -> str:
    tags = ", ".join(wf.tags) or "-"
    return f"{wf.id}\t{wf.name}\tv{wf.version}\t[{tags}]"


def _read_document(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if path.suffix == ".json":
        return json.loads(text)
    return yaml.safe_load(text) or {}


@workflow_app.command("list")
def workflow_list(ctx: typer.Context) -> None:
    """
    List all known workflow definitions.

    Example:
        stepwise workflow list
        # Output: site-health-check    Site Health Check    v1.0.0    [health, monitoring]
    """
    dispatcher = _dispatcher(ctx.obj)
    workflows = dispatcher.store.list()
    if not workflows:
        typer.echo("No workflows found")
        return
    for wf in workflows:
        typer.echo(_summary(wf))


@workflow_app.command("show")
def workflow_show(ctx: typer.Context, workflow_id: str) -> None:
    """Show a workflow's arguments and step graph."""
    dispatcher = _dispatcher(ctx.obj)
    wf = dispatcher.store.get(workflow_id)
    if wf is None:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)

    typer.echo(f"Workflow {wf.id}: {wf.name} (v{wf.version})")
    typer.echo(wf.description)
    typer.echo(f"Error handling: {wf.error_handling.strategy}")
    if wf.arguments:
        typer.echo("Arguments:")
        for arg in wf.arguments:
            flag = "required" if arg.required else f"default={arg.default_value!r}"
            typer.echo(f"  {arg.name} ({arg.type}, {flag})")
    typer.echo("Steps:")
    for step in wf.steps:
        edges = ", ".join(step.references()) or "end"
        typer.echo(f"  - {step.id} [{step.type}] -> {edges}")


@workflow_app.command("search")
def workflow_search(ctx: typer.Context, query: str) -> None:
    """Find workflows whose name, description or tags contain QUERY."""
    dispatcher = _dispatcher(ctx.obj)
    matches = dispatcher.store.search(query)
    if not matches:
        typer.echo("No workflows matched")
        return
    for wf in matches:
        typer.echo(_summary(wf))


@workflow_app.command("delete")
def workflow_delete(ctx: typer.Context, workflow_id: str) -> None:
    """Delete a workflow definition from storage."""

    async def _delete() -> None:
        dispatcher = await WorkflowDispatcher.from_config(ctx.obj)
        await dispatcher.store.delete(workflow_id)

    try:
        asyncio.run(_delete())
    except WorkflowNotFoundError:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    typer.echo(f"Deleted workflow {workflow_id}")


@workflow_app.command("import")
def workflow_import(ctx: typer.Context, path: Path) -> None:
    """
    Import a workflow definition from a JSON or YAML file.

    Example:
        stepwise workflow import ./deploy.json
    """
    if not path.exists():
        _fail(f"File not found: {path}")
    try:
        document = _read_document(path)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        _fail(f"Could not parse {path}: {exc}")

    async def _import() -> WorkflowDefinition:
        dispatcher = await WorkflowDispatcher.from_config(ctx.obj)
        return await dispatcher.store.import_workflow(document)

    try:
        definition = asyncio.run(_import())
    except WorkflowError as exc:
        _fail(str(exc))
    typer.echo(f"Imported workflow {definition.id}")


@workflow_app.command("export")
def workflow_export(
    ctx: typer.Context,
    workflow_id: str,
    output: Optional[Path] = typer.Option(None, "--output", "-o"),
) -> None:
    """Print a workflow document as JSON, or write it to --output."""
    dispatcher = _dispatcher(ctx.obj)
    document = dispatcher.store.export_workflow(workflow_id)
    if document is None:
        typer.echo("Workflow not found")
        raise typer.Exit(code=1)
    text = json.dumps(document, indent=2)
    if output:
        output.write_text(text, encoding="utf-8")
        typer.echo(f"Exported workflow {workflow_id} to {output}")
    else:
        typer.echo(text)


def _tool_caller(config: StepwiseConfig, tools_url: Optional[str]) -> ToolCaller:
    url = tools_url or config.tools.gateway_url
    if url:
        return HttpToolCaller(url, timeout=config.tools.timeout).call_tool
    return create_default_registry().call_tool


def _print_execution(execution: Execution) -> None:
    typer.echo(f"Execution {execution.id}: {execution.status.value}")
    for step_id, outcome in execution.results.items():
        state = "ok" if outcome.success else "failed"
        typer.echo(f"- {step_id}: {state} {json.dumps(outcome.result, default=str)}")
    for error in execution.errors:
        typer.secho(f"! {error.step}: {error.error}", fg=typer.colors.RED)


@workflow_app.command("run")
def workflow_run(
    ctx: typer.Context,
    workflow_id: str,
    args: Optional[str] = typer.Option(None, help="JSON object of run arguments"),
    tools_url: Optional[str] = typer.Option(
        None, help="Base URL of a tool gateway; defaults to the built-in tools"
    ),
    timeout: Optional[float] = typer.Option(None, help="Seconds to wait for the run"),
) -> None:
    """
    Run a workflow in-process and wait for it to finish.

    Example:
        stepwise workflow run site-health-check --args '{"siteId": "abc123"}'
        stepwise workflow run my-flow --tools-url http://localhost:8080
    """
    try:
        arguments = json.loads(args) if args else {}
    except json.JSONDecodeError as exc:
        _fail(f"--args is not valid JSON: {exc}")
    if not isinstance(arguments, dict):
        _fail("--args must be a JSON object")

    config: StepwiseConfig = ctx.obj
    call_tool = _tool_caller(config, tools_url)

    async def _run() -> Optional[Execution]:
        dispatcher = await WorkflowDispatcher.from_config(config)
        execution_id = await dispatcher.execute_workflow(workflow_id, arguments, call_tool)
        try:
            return await dispatcher.wait(execution_id, timeout=timeout)
        finally:
            await dispatcher.close()

    try:
        execution = asyncio.run(_run())
    except asyncio.TimeoutError:
        _fail("Timed out waiting for the workflow to finish")
    except WorkflowError as exc:
        _fail(str(exc))

    if execution is None:
        _fail("Execution record is no longer available")
    _print_execution(execution)
    if execution.status == ExecutionStatus.FAILED:
        raise typer.Exit(code=1)


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
