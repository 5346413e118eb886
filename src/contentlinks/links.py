"""Content links: small marker files holding the hash of an external data file.

A link ``Data/Input/brain.nii.gz.cid`` stands in for ``Data/Input/brain.nii.gz``;
the link's extension names the hashing scheme. Two schemes are supported and
always processed in the order of ``ALGORITHMS``: the legacy ``sha512`` links
first, then the current ``cid`` links they migrate to.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

from .core.errors import EmptyContentLinkError, Err, InvalidContentLinkError, Ok, Result, ScriptError


class Algorithm(str, Enum):
    SHA512 = "sha512"
    CID = "cid"

    @property
    def upper(self) -> str:
        return self.value.upper()

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @property
    def is_legacy(self) -> bool:
        return self is Algorithm.SHA512


ALGORITHMS: tuple[Algorithm, ...] = (Algorithm.SHA512, Algorithm.CID)
CURRENT = Algorithm.CID

# hash links older than sha512 that are dropped once a link reaches `cid`
STALE_LEGACY_EXTENSIONS = (".md5",)

# hex for sha512, base32/base58 for cid: a single path segment either way
_DIGEST_PATTERN = re.compile(r"[0-9A-Za-z]+")


def normalize_hash(text: str) -> str:
    return "".join(text.split())


def is_valid_digest(value: str) -> bool:
    return _DIGEST_PATTERN.fullmatch(value) is not None


@dataclass(frozen=True)
class ContentLink:
    source_root: Path
    relpath: PurePosixPath
    algorithm: Algorithm

    @property
    def path(self) -> Path:
        return self.source_root / self.relpath

    @property
    def data_relpath(self) -> PurePosixPath:
        return self.relpath.with_name(self.relpath.name[: -len(self.algorithm.extension)])

    def as_algorithm(self, algorithm: Algorithm) -> ContentLink:
        return ContentLink(self.source_root, PurePosixPath(f"{self.data_relpath}{algorithm.extension}"), algorithm)

    def sibling(self, algorithm: Algorithm) -> Path:
        return self.as_algorithm(algorithm).path

    def stale_siblings(self) -> list[Path]:
        return [self.source_root / f"{self.data_relpath}{ext}" for ext in STALE_LEGACY_EXTENSIONS]

    def read_hash(self) -> Result[str, ScriptError]:
        value = normalize_hash(self.path.read_text(encoding="utf-8"))
        if not value:
            return Err(EmptyContentLinkError(f"Empty content link: {self.relpath}"))
        if not is_valid_digest(value):
            return Err(InvalidContentLinkError(f"Invalid {self.algorithm.value} hash in content link: {self.relpath}"))
        return Ok(value)

    def __str__(self) -> str:
        return f"./{self.relpath}"


def discover_links(source_root: Path, algorithm: Algorithm) -> list[ContentLink]:
    root = source_root.resolve()
    found = [
        ContentLink(root, PurePosixPath(path.relative_to(root).as_posix()), algorithm)
        for path in root.rglob(f"*{algorithm.extension}")
        if path.is_file() and path.name != algorithm.extension
    ]
    return sorted(found, key=lambda link: link.relpath.as_posix())


def write_link(path: Path, value: str) -> None:
    path.write_text(value + "\n", encoding="utf-8")
