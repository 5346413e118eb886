"""Failure taxonomy of a reconcile run.

Every failure is a ``ScriptError`` carrying the exit code and a stable
``kind`` for reports. Per-link steps hand failures back as ``Err`` values so
the pass can stop at the first fatal one without unwinding; the CLI raises
whatever reaches it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from .exit_codes import ERR_FATAL, ERR_USAGE

T = TypeVar("T")
E = TypeVar("E")


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_FATAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message

    @property
    def fatal(self) -> bool:
        return True


@dataclass
class UsageError(ScriptError):
    code: int = ERR_USAGE
    kind: str = "usage"


@dataclass
class EmptyContentLinkError(ScriptError):
    kind: str = "empty_content_link"


@dataclass
class InvalidContentLinkError(ScriptError):
    kind: str = "invalid_content_link"


@dataclass
class MissingObjectError(ScriptError):
    kind: str = "missing_object"


@dataclass
class IntegrityMismatchError(ScriptError):
    kind: str = "integrity_mismatch"


@dataclass
class RemoteResolutionError(ScriptError):
    kind: str = "remote_resolution"


@dataclass
class StoreIOError(ScriptError):
    kind: str = "store_io"


@dataclass
class ToleratedGapError(ScriptError):
    """Legacy link whose object is unavailable everywhere; logged, never aborts a run."""

    kind: str = "tolerated_gap"

    @property
    def fatal(self) -> bool:
        return False


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Err(Generic[E]):
    error: E


Result = Ok[T] | Err[E]
