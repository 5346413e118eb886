from __future__ import annotations

import os
from pathlib import Path

import pytest

from contentlinks.core.errors import Err, RemoteResolutionError, UsageError
from contentlinks.links import Algorithm
from contentlinks.network import IpfsCli, remote_object_path
from contentlinks.reconcile import Reconciler

from helpers import Workspace, quiet_ctx

pytestmark = pytest.mark.skipif(os.name == "nt", reason="stub ipfs is a POSIX shell script")

_STUB = """#!/bin/sh
if [ "$1" = "dag" ] && [ "$2" = "resolve" ]; then
  case "$3" in
    /ipfs/bafyroot/Objects/CID/bafyok) echo bafyok; exit 0 ;;
    /ipfs/bafyroot/Objects/SHA512/c0ffee) echo bafymigrated; exit 0 ;;
    *) echo "Error: no link named" >&2; exit 1 ;;
  esac
fi
if [ "$1" = "get" ] && [ "$2" = "-o" ]; then
  case "$4" in
    bafyok) printf 'payload' > "$3"; exit 0 ;;
    bafytrunc) printf 'trunc' > "$3"; echo "Error: context deadline exceeded" >&2; exit 1 ;;
    *) echo "Error: block was not found locally" >&2; exit 1 ;;
  esac
fi
exit 2
"""


@pytest.fixture
def ipfs(tmp_path: Path) -> IpfsCli:
    stub = tmp_path / "bin" / "ipfs"
    stub.parent.mkdir()
    stub.write_text(_STUB, encoding="utf-8")
    stub.chmod(0o755)
    return IpfsCli(str(stub))


def test_remote_object_path() -> None:
    assert remote_object_path("bafyroot", Algorithm.SHA512, "c0ffee") == "bafyroot/Objects/SHA512/c0ffee"


@pytest.mark.integration
def test_resolve_reads_identifier(ipfs: IpfsCli) -> None:
    ipfs.ensure_available()
    assert ipfs.resolve("bafyroot/Objects/CID/bafyok") == "bafyok"
    assert ipfs.resolve("bafyroot/Objects/SHA512/c0ffee") == "bafymigrated"


@pytest.mark.integration
def test_resolve_failure_carries_tool_output(ipfs: IpfsCli) -> None:
    with pytest.raises(RemoteResolutionError, match="no link named"):
        ipfs.resolve("bafyroot/Objects/CID/bafynope")


@pytest.mark.integration
def test_fetch_writes_destination(ipfs: IpfsCli, tmp_path: Path) -> None:
    target = tmp_path / "Objects" / "CID" / "bafyok"
    ipfs.fetch("bafyok", target)
    assert target.read_bytes() == b"payload"
    with pytest.raises(RemoteResolutionError, match="not found locally"):
        ipfs.fetch("bafynope", tmp_path / "Objects" / "CID" / "bafynope")


def test_missing_executable_is_a_usage_error(tmp_path: Path) -> None:
    with pytest.raises(UsageError, match="Please install the ipfs executable."):
        IpfsCli(str(tmp_path / "ipfs")).ensure_available()


def test_unlaunchable_executable_is_a_resolution_error(tmp_path: Path) -> None:
    with pytest.raises(RemoteResolutionError):
        IpfsCli(str(tmp_path / "ipfs")).resolve("bafyroot/Objects/CID/bafyok")


@pytest.mark.integration
def test_interrupted_fetch_leaves_nothing_behind(ipfs: IpfsCli, tmp_path: Path) -> None:
    objects = tmp_path / "Objects" / "CID"
    with pytest.raises(RemoteResolutionError, match="context deadline exceeded"):
        ipfs.fetch("bafytrunc", objects / "bafytrunc")
    assert list(objects.iterdir()) == []


@pytest.mark.integration
def test_interrupted_fetch_is_retried_on_the_next_create_run(ipfs: IpfsCli, workspace: Workspace) -> None:
    workspace.link("a.png.cid", "bafytrunc")
    config = workspace.config("create", cache=False)

    for _ in range(2):
        result = Reconciler(config, ipfs, quiet_ctx()).run()
        assert isinstance(result, Err)
        assert isinstance(result.error, RemoteResolutionError)
        assert not (workspace.store / "CID" / "bafytrunc").exists()
