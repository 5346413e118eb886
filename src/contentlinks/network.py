"""Access to the distributed content-addressing network.

The reconciler only needs two capabilities, resolving a path under a
published root to an identifier and fetching an identifier to disk. They are
expressed as the ``ContentNetwork`` protocol so tests can substitute an
in-memory network; ``IpfsCli`` implements it with the ``ipfs`` executable.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Protocol

from .core.errors import RemoteResolutionError, UsageError
from .core.process import run_command
from .links import Algorithm
from .store import staged_write


class ContentNetwork(Protocol):
    def resolve(self, path: str) -> str:
        """Return the identifier ``path`` resolves to; raise ``RemoteResolutionError`` on failure."""
        ...

    def fetch(self, identifier: str, destination: Path) -> None:
        """Write the object ``identifier`` to ``destination``; raise ``RemoteResolutionError`` on failure.

        ``destination`` must not exist afterwards unless the whole object was written.
        """
        ...


def remote_object_path(root: str, algorithm: Algorithm, digest: str) -> str:
    return f"{root}/Objects/{algorithm.upper}/{digest}"


class IpfsCli:
    def __init__(self, binary: str = "ipfs") -> None:
        self.binary = binary

    def ensure_available(self) -> None:
        if shutil.which(self.binary) is None:
            raise UsageError(f"Please install the {Path(self.binary).name} executable.")

    def resolve(self, path: str) -> str:
        res = run_command([self.binary, "dag", "resolve", f"/ipfs/{path}"])
        if res.code != 0:
            raise RemoteResolutionError(f"Could not resolve /ipfs/{path}: {res.combined_output or f'exit {res.code}'}")
        value = res.stdout.strip()
        if not value:
            raise RemoteResolutionError(f"Empty resolution for /ipfs/{path}")
        return value

    def fetch(self, identifier: str, destination: Path) -> None:
        with staged_write(destination) as staging:
            res = run_command([self.binary, "get", "-o", str(staging), identifier])
            if res.code != 0 or not staging.is_file():
                raise RemoteResolutionError(
                    f"Could not fetch {identifier} from the network: {res.combined_output or f'exit {res.code}'}"
                )
