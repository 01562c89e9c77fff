from __future__ import annotations

import json
from typing import Any

from jsonschema import Draft7Validator
from jsonschema import ValidationError as SchemaValidationError

from npc_planner.errors import PlanValidationError
from npc_planner.normalize import UNSPECIFIED_ITEM

PLAN_SCHEMA_VERSION = "1.0.0"

_NON_EMPTY_STRING = {"type": "string", "minLength": 1, "pattern": r"\S"}


def build_plan_schema() -> dict[str, Any]:
    step_schema = {
        "type": "object",
        "required": ["title", "type", "description", "metadata"],
        "properties": {
            "title": _NON_EMPTY_STRING,
            "type": _NON_EMPTY_STRING,
            "description": _NON_EMPTY_STRING,
            "command": {"type": "string"},
            "metadata": {"type": "object"},
        },
    }
    node_schema = {
        "type": "object",
        "required": ["id", "action", "summary", "parents", "children"],
        "properties": {
            "id": _NON_EMPTY_STRING,
            "action": _NON_EMPTY_STRING,
            "summary": {"type": "string"},
            "metadata": {"type": "object"},
            "requirements": {"type": "array"},
            "parents": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
            "children": {"type": "array", "items": {"type": "string"}, "uniqueItems": True},
        },
    }
    graph_schema = {
        "type": "object",
        "required": ["rootId", "nodes"],
        "properties": {
            "rootId": {"type": ["string", "null"]},
            "nodes": {"type": "array", "items": node_schema},
        },
    }
    return {
        "$schema": "http://json-schema.org/draft-07/schema#",
        "title": "NPC Task Plan",
        "type": "object",
        "required": ["action", "summary", "estimatedDuration", "resources", "steps", "risks", "notes"],
        "properties": {
            "action": _NON_EMPTY_STRING,
            "summary": _NON_EMPTY_STRING,
            "estimatedDuration": {"type": "integer", "minimum": 1},
            "resources": {
                "type": "array",
                "uniqueItems": True,
                "items": {"allOf": [_NON_EMPTY_STRING, {"not": {"const": UNSPECIFIED_ITEM}}]},
            },
            "steps": {"type": "array", "minItems": 1, "items": step_schema},
            "risks": {"type": "array", "uniqueItems": True, "items": _NON_EMPTY_STRING},
            "notes": {"type": "array", "uniqueItems": True, "items": _NON_EMPTY_STRING},
            "metadata": {"type": "object"},
            "taskGraph": graph_schema,
            "subTasks": {
                "type": "array",
                "items": {
                    "type": "object",
                    "required": ["id", "action", "task", "plan"],
                    "properties": {
                        "id": _NON_EMPTY_STRING,
                        "action": _NON_EMPTY_STRING,
                        "relation": {"type": "string", "enum": ["prerequisite", "follow_up"]},
                        "task": {"type": "object", "required": ["action"]},
                        "plan": {"anyOf": [{"type": "null"}, {"$ref": "#"}]},
                    },
                },
            },
        },
    }


PLAN_SCHEMA: dict[str, Any] = build_plan_schema()
Draft7Validator.check_schema(PLAN_SCHEMA)
_VALIDATOR = Draft7Validator(PLAN_SCHEMA)


def plan_schema_json(indent: int = 2) -> str:
    return json.dumps(PLAN_SCHEMA, indent=indent, sort_keys=True)


def _describe(error: SchemaValidationError) -> str:
    location = "/".join(str(part) for part in error.absolute_path) or "<root>"
    return f"{location}: {error.message}"


def validate_plan(plan: dict[str, Any]) -> None:
    """Validate a serialized plan (``Plan.to_dict()``), including nested sub-plans.

    Every violation is reported; ``path`` points at the first one.
    """
    errors = list(_VALIDATOR.iter_errors(plan))
    if errors:
        messages = [_describe(error) for error in errors]
        raise PlanValidationError("; ".join(messages), path=list(errors[0].absolute_path), errors=messages)
