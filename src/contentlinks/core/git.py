from __future__ import annotations

from pathlib import Path

from .errors import UsageError
from .process import run_command


def repo_top_level(start: Path | None = None) -> Path:
    res = run_command(["git", "rev-parse", "--show-toplevel"], start or Path.cwd())
    top = res.stdout.strip()
    if res.code != 0 or not top:
        detail = res.combined_output or "git rev-parse failed"
        raise UsageError(f"unable to resolve repository top-level directory: {detail}")
    return Path(top)
