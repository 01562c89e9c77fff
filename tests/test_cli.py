from __future__ import annotations

import importlib
import json

import pytest

typer = pytest.importorskip("typer")
from typer.testing import CliRunner  # noqa: E402

from npc_planner.main import app  # noqa: E402

runner = CliRunner()


def test_console_entrypoint_exposes_app() -> None:
    module = importlib.import_module("npc_planner.main")
    assert module.app is not None


def test_plan_command_prints_plan(tmp_path) -> None:
    task_file = tmp_path / "task.json"
    task_file.write_text(json.dumps({"action": "craft", "metadata": {"item": "torch", "quantity": 4}}))
    context_file = tmp_path / "context.json"
    context_file.write_text(json.dumps({"inventory": {"stick": 4, "coal": 4}}))

    result = runner.invoke(app, ["plan", str(task_file), "--context", str(context_file), "--validate"])

    assert result.exit_code == 0
    assert "Craft item" in result.output


def test_plan_command_fails_for_unknown_action(tmp_path) -> None:
    task_file = tmp_path / "task.json"
    task_file.write_text(json.dumps({"action": "teleport"}))

    result = runner.invoke(app, ["plan", str(task_file)])

    assert result.exit_code == 1
    assert "teleport" in result.output


def test_plan_command_rejects_bad_json(tmp_path) -> None:
    task_file = tmp_path / "task.json"
    task_file.write_text("{not json")

    result = runner.invoke(app, ["plan", str(task_file)])

    assert result.exit_code != 0


def test_planners_command_lists_builtin_actions() -> None:
    result = runner.invoke(app, ["planners"])
    assert result.exit_code == 0
    assert "scaffolding" in result.output
    assert "item_frame" in result.output


def test_schema_command_prints_json() -> None:
    result = runner.invoke(app, ["schema"])
    assert result.exit_code == 0
    assert json.loads(result.output)["title"] == "NPC Task Plan"


def test_info_command_shows_settings() -> None:
    result = runner.invoke(app, ["info"])
    assert result.exit_code == 0
    assert "max_subplan_depth" in result.output
    assert "plan_schema_version" in result.output
