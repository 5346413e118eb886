"""Centralized environment variable helpers."""

from __future__ import annotations

import os

EXTERNAL_OBJECT_STORES = "ExternalData_OBJECT_STORES"
ROOT_CID = "CONTENT_LINK_ROOT_CID"
LOG_JSON = "CONTENT_LINK_LOG_JSON"
RUN_ID = "RUN_ID"


def getenv(name: str, default: str | None = None) -> str | None:
    return os.environ.get(name, default)


def getenv_flag(name: str) -> bool:
    return (getenv(name) or "").strip().lower() in {"1", "true", "yes", "on"}
