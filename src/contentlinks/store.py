"""Content-addressed object store laid out as ``<root>/<ALGO>/<hash>``.

Objects only ever appear under their final name complete: every write goes to
a staging file beside the target and is renamed into place once it finished.
"""

from __future__ import annotations

import os
import shutil
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

from .links import CURRENT, Algorithm


@contextmanager
def staged_write(target: Path) -> Iterator[Path]:
    """Yield a staging path; it replaces ``target`` only if the block completes."""
    target.parent.mkdir(parents=True, exist_ok=True)
    staging = target.with_name(f".{target.name}.tmp-{os.getpid()}")
    staging.unlink(missing_ok=True)
    try:
        yield staging
        os.replace(staging, target)
    finally:
        if staging.is_dir():
            shutil.rmtree(staging)
        else:
            staging.unlink(missing_ok=True)


@dataclass(frozen=True)
class ObjectStore:
    root: Path

    def ensure_layout(self) -> None:
        (self.root / CURRENT.upper).mkdir(parents=True, exist_ok=True)

    def object_path(self, algorithm: Algorithm, digest: str) -> Path:
        return self.root / algorithm.upper / digest

    def has(self, algorithm: Algorithm, digest: str) -> bool:
        return self.object_path(algorithm, digest).is_file()

    def import_file(self, source: Path, algorithm: Algorithm, digest: str) -> Path:
        target = self.object_path(algorithm, digest)
        with staged_write(target) as staging:
            shutil.copyfile(source, staging)
        return target

    def alias(self, algorithm: Algorithm, digest: str, to_algorithm: Algorithm, to_digest: str) -> bool:
        """Copy an object under another algorithm's key; False when it is already there."""
        if self.has(to_algorithm, to_digest):
            return False
        self.import_file(self.object_path(algorithm, digest), to_algorithm, to_digest)
        return True

    def materialize(self, algorithm: Algorithm, digest: str, destination: Path) -> bool:
        """Copy an object out to ``destination`` unless a file already exists there."""
        if destination.exists():
            return False
        with staged_write(destination) as staging:
            shutil.copyfile(self.object_path(algorithm, digest), staging)
        return True


@dataclass(frozen=True)
class ExternalObjectCache:
    """Read-only object store of a build tree, e.g. ``ExternalData_OBJECT_STORES``."""

    root: Path | None

    def find(self, algorithm: Algorithm, digest: str) -> Path | None:
        if self.root is None:
            return None
        candidate = self.root / algorithm.upper / digest
        return candidate if candidate.is_file() else None
