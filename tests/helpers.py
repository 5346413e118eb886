from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from contentlinks.config import ReconcilerConfig
from contentlinks.core.context import RunContext
from contentlinks.core.errors import RemoteResolutionError

ROOT_CID = "bafyroot"


@dataclass
class FakeNetwork:
    resolutions: dict[str, str] = field(default_factory=dict)
    objects: dict[str, bytes] = field(default_factory=dict)
    resolved: list[str] = field(default_factory=list)
    fetched: list[str] = field(default_factory=list)

    def publish(self, algo: str, digest: str, value: str | None = None, root: str = ROOT_CID) -> None:
        self.resolutions[f"{root}/Objects/{algo.upper()}/{digest}"] = value or digest

    def resolve(self, path: str) -> str:
        self.resolved.append(path)
        if path not in self.resolutions:
            raise RemoteResolutionError(f"Could not resolve /ipfs/{path}: no link named")
        return self.resolutions[path]

    def fetch(self, identifier: str, destination: Path) -> None:
        self.fetched.append(identifier)
        if identifier not in self.objects:
            raise RemoteResolutionError(f"Could not fetch {identifier} from the network")
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_bytes(self.objects[identifier])


@dataclass
class Workspace:
    source: Path
    store: Path
    data: Path
    cache: Path

    @classmethod
    def create(cls, base: Path) -> "Workspace":
        ws = cls(
            source=base / "ITK",
            store=base / "ITKData" / "Objects",
            data=base / "ITKData",
            cache=base / "build" / "ExternalData" / "Objects",
        )
        for path in (ws.source, ws.store, ws.cache):
            path.mkdir(parents=True)
        return ws

    def link(self, relpath: str, value: str) -> Path:
        path = self.source / relpath
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(value, encoding="utf-8")
        return path

    def obj(self, algo: str, digest: str, payload: bytes = b"payload", root: Path | None = None) -> Path:
        path = (root or self.store) / algo.upper() / digest
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(payload)
        return path

    def config(self, mode: str = "verify", root_cid: str | None = ROOT_CID, cache: bool = True) -> ReconcilerConfig:
        return ReconcilerConfig(
            source_tree_root=self.source,
            object_store_root=self.store,
            data_root=self.data,
            remote_root_identifier=root_cid,
            external_cache_root=self.cache if cache else None,
            mode=mode,  # type: ignore[arg-type]
        )

    def cli_args(self, *extra: str) -> list[str]:
        return [str(self.source), "--object-store", str(self.store), "--data-root", str(self.data), *extra]


def quiet_ctx() -> RunContext:
    return RunContext(run_id="pytest-run", quiet=True)


def snapshot(root: Path) -> dict[str, tuple[bytes, int]]:
    return {
        path.relative_to(root).as_posix(): (path.read_bytes(), path.stat().st_mtime_ns)
        for path in sorted(root.rglob("*"))
        if path.is_file()
    }
