"""CLI payload output helpers."""

from __future__ import annotations

import json

ERROR_SCHEMA = "contentlinks.error.v1"


def emit(payload: dict[str, object]) -> None:
    print(json.dumps(payload, sort_keys=True))


def render_error(*, as_json: bool, message: str, code: int, kind: str = "generic_error", run_id: str = "") -> str:
    if not as_json:
        return message
    return json.dumps(
        {
            "schema_name": ERROR_SCHEMA,
            "schema_version": 1,
            "tool": "content-link-sync",
            "status": "error",
            "run_id": run_id,
            "errors": [{"code": code, "kind": kind, "message": message}],
        },
        sort_keys=True,
    )
