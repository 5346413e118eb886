from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from .env import LOG_JSON, RUN_ID, getenv, getenv_flag


@dataclass(frozen=True)
class RunContext:
    run_id: str
    verbose: bool = False
    quiet: bool = False
    log_json: bool = False

    @classmethod
    def from_args(
        cls,
        run_id: str | None = None,
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        default_run = f"content-links-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"
        return cls(
            run_id=run_id or getenv(RUN_ID) or default_run,
            verbose=verbose,
            quiet=quiet,
            log_json=log_json or getenv_flag(LOG_JSON),
        )
