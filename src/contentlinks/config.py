"""Reconciler configuration.

Values are layered, lowest precedence first: built-in defaults, an optional
YAML file, environment variables, then command-line flags. Relative paths in
a YAML file are taken relative to the file's directory.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from .contracts import validate
from .core.env import EXTERNAL_OBJECT_STORES, ROOT_CID, getenv
from .core.errors import UsageError
from .core.git import repo_top_level

Mode = Literal["verify", "create"]
MODES: tuple[str, ...] = ("verify", "create")
CONFIG_SCHEMA = "contentlinks.config.v1"


@dataclass(frozen=True)
class ReconcilerConfig:
    source_tree_root: Path
    object_store_root: Path
    data_root: Path
    remote_root_identifier: str | None = None
    external_cache_root: Path | None = None
    mode: Mode = "verify"
    ipfs_binary: str = "ipfs"

    @property
    def creating(self) -> bool:
        return self.mode == "create"

    def to_dict(self) -> dict[str, object]:
        return {
            "source_tree": str(self.source_tree_root),
            "object_store": str(self.object_store_root),
            "data_root": str(self.data_root),
            "root_cid": self.remote_root_identifier,
            "external_object_stores": str(self.external_cache_root) if self.external_cache_root else None,
            "mode": self.mode,
            "ipfs_binary": self.ipfs_binary,
        }


def load_config_file(path: Path) -> dict[str, Any]:
    import yaml

    if not path.is_file():
        raise UsageError(f"{path} does not exist!")
    with path.open("r", encoding="utf-8") as f:
        try:
            payload = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise UsageError(f"{path}: invalid YAML: {exc}") from exc
    payload = payload or {}
    validate(CONFIG_SCHEMA, payload, error_cls=UsageError)
    base = path.resolve().parent
    for key in ("source_tree", "object_store", "data_root", "external_object_stores"):
        if payload.get(key):
            payload[key] = str(base / Path(payload[key]).expanduser())
    return payload


def _first(*values: Any) -> Any:
    for value in values:
        if value not in (None, ""):
            return value
    return None


def resolve_config(
    source_tree: str | None = None,
    create: bool = False,
    root_cid: str | None = None,
    object_store: str | None = None,
    data_root: str | None = None,
    external_object_stores: str | None = None,
    ipfs_binary: str | None = None,
    config_file: str | None = None,
) -> ReconcilerConfig:
    file_values = load_config_file(Path(config_file)) if config_file else {}

    source = _first(source_tree, file_values.get("source_tree"))
    if source is None:
        raise UsageError("missing source tree path")
    source_path = Path(source).expanduser()
    if not source_path.exists():
        raise UsageError(f"{source} does not exist!")

    mode = "create" if create else _first(file_values.get("mode"), "verify")
    if mode not in MODES:
        raise UsageError(f"unsupported mode: {mode}")
    root = _first(root_cid, getenv(ROOT_CID), file_values.get("root_cid"))
    if mode == "verify" and root is None:
        raise UsageError("a root CID is required to verify content links")

    store = _first(object_store, file_values.get("object_store"))
    data = _first(data_root, file_values.get("data_root"))
    if store is None or data is None:
        top = repo_top_level()
        store = store or top / "Objects"
        data = data or top
    cache = _first(external_object_stores, getenv(EXTERNAL_OBJECT_STORES), file_values.get("external_object_stores"))

    return ReconcilerConfig(
        source_tree_root=source_path.resolve(),
        object_store_root=Path(store).expanduser().resolve(),
        data_root=Path(data).expanduser().resolve(),
        remote_root_identifier=root,
        external_cache_root=Path(cache).expanduser() if cache else None,
        mode=mode,
        ipfs_binary=_first(ipfs_binary, file_values.get("ipfs_binary"), "ipfs"),
    )
