"""Packaged JSON schemas for configuration files and command output."""

from __future__ import annotations

import json
from typing import Any

from ..core.errors import ScriptError
from .schemas import schema_path_for, schemas_root

__all__ = ["schema_path_for", "schemas_root", "validate"]


def validate(schema_name: str, payload: Any, error_cls: type[ScriptError] = ScriptError) -> None:
    import jsonschema

    schema = json.loads(schema_path_for(schema_name).read_text(encoding="utf-8"))
    try:
        jsonschema.validate(payload, schema)
    except jsonschema.ValidationError as exc:
        pointer = "/".join(str(p) for p in exc.absolute_path)
        loc = pointer or "<root>"
        raise error_cls(f"schema validation failed for {schema_name} at {loc}: {exc.message}") from exc
