"""Reconcile content links in a source tree against an object store.

In ``verify`` mode every link must name an object present in the local store
whose identifier the published root confirms; legacy ``sha512`` links are
migrated to ``cid`` on the way and the plain data files are copied into the
data repository. In ``create`` mode the store is populated from the external
object cache or the network, and legacy links are rewritten as ``cid`` links.

The pass stops at the first failure: every step returns a ``Result`` and the
first ``Err`` is handed back to the caller untouched. The one exception is a
legacy link whose object cannot be found anywhere in ``create`` mode, which is
recorded as a gap and skipped.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import ReconcilerConfig
from .core.context import RunContext
from .core.errors import (
    Err,
    IntegrityMismatchError,
    InvalidContentLinkError,
    MissingObjectError,
    Ok,
    RemoteResolutionError,
    Result,
    ScriptError,
    StoreIOError,
    ToleratedGapError,
    UsageError,
)
from .core.logging import log_event, progress
from .links import ALGORITHMS, CURRENT, Algorithm, ContentLink, discover_links, is_valid_digest, write_link
from .network import ContentNetwork, remote_object_path
from .store import ExternalObjectCache, ObjectStore

REPORT_SCHEMA = "contentlinks.report.v1"

Step = Result[None, ScriptError]


@dataclass
class ReconcileSummary:
    mode: str
    links: dict[str, int] = field(default_factory=lambda: {algo.value: 0 for algo in ALGORITHMS})
    objects_imported: int = 0
    objects_fetched: int = 0
    links_migrated: int = 0
    data_files_created: int = 0
    gaps: list[str] = field(default_factory=list)

    def to_payload(self, run_id: str, error: ScriptError | None = None) -> dict[str, object]:
        payload: dict[str, object] = {
            "schema_name": REPORT_SCHEMA,
            "schema_version": 1,
            "tool": "content-link-sync",
            "status": "ok" if error is None else "error",
            "run_id": run_id,
            "mode": self.mode,
            "counts": {
                **{f"links_{algo}": count for algo, count in self.links.items()},
                "objects_imported": self.objects_imported,
                "objects_fetched": self.objects_fetched,
                "links_migrated": self.links_migrated,
                "data_files_created": self.data_files_created,
            },
            "gaps": list(self.gaps),
        }
        if error is not None:
            payload["error"] = {"kind": error.kind, "message": error.message}
        return payload


class Reconciler:
    def __init__(self, config: ReconcilerConfig, network: ContentNetwork, ctx: RunContext | None = None) -> None:
        self.config = config
        self.network = network
        self.ctx = ctx or RunContext.from_args()
        self.store = ObjectStore(config.object_store_root)
        self.cache = ExternalObjectCache(config.external_cache_root)
        self.summary = ReconcileSummary(mode=config.mode)

    def run(self) -> Result[ReconcileSummary, ScriptError]:
        self.summary = ReconcileSummary(mode=self.config.mode)
        log_event(
            self.ctx,
            "info",
            "reconcile",
            "start",
            mode=self.config.mode,
            source_tree=self.config.source_tree_root,
            object_store=self.config.object_store_root,
        )
        try:
            self.store.ensure_layout()
        except OSError as exc:
            return self._fail(StoreIOError(f"Could not prepare object store {self.store.root}: {exc}"))
        for algorithm in ALGORITHMS:
            for link in discover_links(self.config.source_tree_root, algorithm):
                step = self.process(link)
                if isinstance(step, Err):
                    if not step.error.fatal:
                        self._tolerate(link, step.error)
                        continue
                    return self._fail(step.error)
        log_event(self.ctx, "info", "reconcile", "finish", mode=self.config.mode, gaps=len(self.summary.gaps))
        return Ok(self.summary)

    def process(self, link: ContentLink) -> Step:
        progress(self.ctx, f"Content link {link} ...")
        try:
            digest = link.read_hash()
            if isinstance(digest, Err):
                return digest
            self.summary.links[link.algorithm.value] += 1
            if self.config.creating:
                return self._create(link, digest.value)
            return self._verify(link, digest.value)
        except (OSError, UnicodeDecodeError) as exc:
            return Err(StoreIOError(f"{link}: {exc}"))

    def _tolerate(self, link: ContentLink, error: ScriptError) -> None:
        self.summary.gaps.append(str(link))
        log_event(self.ctx, "warning", "reconcile", "gap", kind=error.kind, message=error.message)

    def _fail(self, error: ScriptError) -> Err[ScriptError]:
        log_event(self.ctx, "error", "reconcile", "abort", kind=error.kind, message=error.message)
        return Err(error)

    def _resolve(self, link: ContentLink, algorithm: Algorithm, digest: str) -> Result[str, ScriptError]:
        root = self.config.remote_root_identifier
        if not root:
            return Err(UsageError(f"a root CID is required to resolve {link}"))
        path = remote_object_path(root, algorithm, digest)
        try:
            value = self.network.resolve(path)
        except RemoteResolutionError as exc:
            return Err(exc)
        if not is_valid_digest(value):
            return Err(InvalidContentLinkError(f"/ipfs/{path} resolved to an invalid identifier: {value!r}"))
        log_event(self.ctx, "debug", "network", "resolve", path=path, value=value)
        return Ok(value)

    def _verify(self, link: ContentLink, digest: str) -> Step:
        algorithm = link.algorithm
        progress(self.ctx, f"Verifying {digest} {link}...")
        if not self.store.has(algorithm, digest):
            return Err(MissingObjectError(f"Could not find data object in store for {link}!"))
        resolved = self._resolve(link, algorithm, digest)
        if isinstance(resolved, Err):
            return resolved
        cid = resolved.value
        if algorithm is CURRENT:
            if cid != digest:
                return Err(
                    IntegrityMismatchError(
                        f"CID value for {self.store.object_path(algorithm, digest)} does not equal hash in {link}!"
                    )
                )
        else:
            migrated = self._migrate(link, digest, cid, overwrite=False)
            if isinstance(migrated, Err):
                return migrated
        if self.store.materialize(CURRENT, cid, self.config.data_root / link.data_relpath):
            self.summary.data_files_created += 1
            log_event(self.ctx, "debug", "reconcile", "data-file", path=link.data_relpath)
        return Ok(None)

    def _migrate(self, link: ContentLink, digest: str, cid: str, overwrite: bool) -> Step:
        """Move a legacy link and its object over to the current algorithm."""
        sibling = link.as_algorithm(CURRENT)
        if sibling.path.exists() and not overwrite:
            existing = sibling.read_hash()
            if isinstance(existing, Err):
                return existing
            if existing.value != cid:
                return Err(
                    IntegrityMismatchError(
                        f"CID value {cid} for {link} does not equal hash in {sibling}!"
                    )
                )
        else:
            write_link(sibling.path, cid)
        self.store.alias(link.algorithm, digest, CURRENT, cid)
        for stale in [link.path, *link.stale_siblings()]:
            if stale.exists():
                stale.unlink()
        self.summary.links_migrated += 1
        log_event(self.ctx, "info", "reconcile", "migrate", link=link.relpath, cid=cid)
        return Ok(None)

    def _create(self, link: ContentLink, digest: str) -> Step:
        algorithm = link.algorithm
        progress(self.ctx, f"Creating {digest} {link}...")
        if self.store.has(algorithm, digest):
            if algorithm is CURRENT:
                return Ok(None)
            resolved = self._resolve(link, algorithm, digest)
            if isinstance(resolved, Err):
                return resolved
            return self._migrate(link, digest, resolved.value, overwrite=True)

        cached = self.cache.find(algorithm, digest)
        if cached is not None:
            self.store.import_file(cached, algorithm, digest)
            self.summary.objects_imported += 1
            log_event(self.ctx, "debug", "store", "import", source=cached, algorithm=algorithm.value, digest=digest)
            return Ok(None)

        if algorithm is CURRENT:
            try:
                self.network.fetch(digest, self.store.object_path(algorithm, digest))
            except RemoteResolutionError as exc:
                return Err(exc)
            self.summary.objects_fetched += 1
            log_event(self.ctx, "debug", "network", "fetch", cid=digest)
            return Ok(None)

        return Err(ToleratedGapError(f"Could not find data object for {link} in any store; skipping"))
