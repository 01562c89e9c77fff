"""CLI entrypoint for the NPC task planner."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich import print

from npc_planner.config import settings
from npc_planner.dispatcher import TaskDispatcher, default_registry
from npc_planner.planning.schema import PLAN_SCHEMA_VERSION, plan_schema_json
from npc_planner.telemetry import configure_logging

app = typer.Typer(help="NPC task planner")


def _load_json(path: Path) -> Any:
    try:
        return json.loads(path.expanduser().read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise typer.BadParameter(f"File not found: {path}")
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"{path} is not valid JSON: {exc.msg}")


@app.command()
def plan(
    task_file: Path = typer.Argument(..., help="JSON file holding the task request"),
    context_file: Path = typer.Option(None, "--context", help="JSON file holding the world context"),
    validate: bool = typer.Option(False, "--validate", help="Check the plan against the plan schema"),
) -> None:
    """Plan one task and print the resulting plan."""
    configure_logging(settings.log_level)
    task = _load_json(task_file)
    context = _load_json(context_file) if context_file else {}
    if not isinstance(context, dict):
        raise typer.BadParameter("Context file must hold a JSON object")

    dispatcher = TaskDispatcher(default_registry(), validate_plans=validate or settings.validate_plans)
    result = dispatcher.plan_task(task, context)
    if result is None:
        print({"plan": None, "action": task.get("action") if isinstance(task, dict) else None})
        raise typer.Exit(code=1)
    print(result.to_dict())


@app.command()
def planners() -> None:
    """List the registered planner actions."""
    print({"planners": default_registry().list_actions()})


@app.command()
def schema() -> None:
    """Print the plan JSON schema."""
    typer.echo(plan_schema_json())


@app.command()
def info() -> None:
    """Show effective planner settings."""
    print({**settings.model_dump(), "plan_schema_version": PLAN_SCHEMA_VERSION})


if __name__ == "__main__":
    app()
