from __future__ import annotations

import argparse
import sys
from typing import NoReturn

from .. import __version__
from ..config import resolve_config
from ..core.context import RunContext
from ..core.errors import Err, ScriptError, UsageError
from ..core.exit_codes import ERR_INTERNAL, ERR_USAGE, OK
from ..core.logging import log_event
from ..network import ContentNetwork, IpfsCli
from ..reconcile import Reconciler
from .output import emit, render_error

DESCRIPTION = """\
Given an ExternalData object store, check that all ExternalData content links
(.sha512 and .cid) in the source tree are present in the Objects/ directory,
verify that their hashes correspond to the same file under the published root
CID, and create the corresponding data file entries in the data repository.

If content link verification fails, the run stops and reports the failure.
The error should be resolved manually before re-execution.

Once executed, a datalad commit can be created from the result."""

RELEASE_STEPS = """\
Run this prior to releases:

1. Configure the toolkit with BUILD_TESTING, BUILD_EXAMPLES,
   BUILD_ITK_USE_BRAINWEB_DATA and ITK_WRAP_PYTHON enabled and build the
   `ITKData` target.
2. Update the Objects/ directory of the data repository:
     rsync -rvt ~/bin/ITKData-build/ExternalData/Objects/ ./Objects/
3. Upload the repository: w3 put . --no-wrap -n ITKData-presync -H
4. Run this command with the source tree and the root CID from step 3.
5. Commit the result with datalad.
6. Upload the updated repository:
     w3 put . --no-wrap -n ITKData-v<release-version> -H
7. Pin the resulting root CID across pinning services.

Use --create to populate Objects/ from $ExternalData_OBJECT_STORES and
rewrite .sha512 content links as .cid links."""


class _Parser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> argparse.ArgumentParser:
    p = _Parser(
        prog="content-link-sync",
        description=DESCRIPTION,
        epilog=RELEASE_STEPS,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        add_help=False,
    )
    p.add_argument("source_tree", nargs="?", help="path to the source tree holding the content links")
    p.add_argument("positional_root_cid", nargs="?", metavar="root_cid", help=argparse.SUPPRESS)
    p.add_argument("-h", "--help", action="store_true", help="print this help and exit")
    p.add_argument("-c", "--create", action="store_true", help="populate the object store and migrate legacy links")
    p.add_argument("-r", "--root-cid", help="root CID of the published object store snapshot")
    p.add_argument("--config", help="YAML configuration file")
    p.add_argument("--object-store", help="object store root (default: <repo top-level>/Objects)")
    p.add_argument("--data-root", help="where data files are created (default: <repo top-level>)")
    p.add_argument("--external-object-store", help="external object cache (default: $ExternalData_OBJECT_STORES)")
    p.add_argument("--ipfs", dest="ipfs_binary", help="ipfs executable to use")
    p.add_argument("--json", action="store_true", help="emit a JSON report")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines")
    p.add_argument("--run-id", help="run identifier attached to log events")
    p.add_argument("--version", action="version", version=f"content-link-sync {__version__}")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable verbose diagnostics")
    vg.add_argument("--quiet", action="store_true", help="only emit errors")
    return p


def _banner() -> None:
    print("")
    print("Verification completed successfully.")
    print("")
    print("Commit new content as necessary.")


def _print_error(exc: ScriptError, as_json: bool, ctx: RunContext) -> None:
    rendered = render_error(as_json=as_json, message=str(exc), code=exc.code, kind=exc.kind, run_id=ctx.run_id)
    print(rendered, file=sys.stderr)


def main(argv: list[str] | None = None, network: ContentNetwork | None = None) -> int:
    parser = build_parser()
    try:
        ns, unknown = parser.parse_known_intermixed_args(argv)
    except UsageError as exc:
        print(exc.message, file=sys.stderr)
        parser.print_usage(sys.stderr)
        return exc.code
    # stdout carries only the report in --json mode
    ctx = RunContext.from_args(ns.run_id, ns.verbose, ns.quiet or ns.json, ns.log_json)

    if ns.help or (ns.source_tree is None and ns.config is None):
        parser.print_help()
        return ERR_USAGE

    try:
        if unknown:
            raise UsageError(f"Invalid option: {unknown[0]}")
        config = resolve_config(
            source_tree=ns.source_tree,
            create=ns.create,
            root_cid=ns.root_cid or ns.positional_root_cid,
            object_store=ns.object_store,
            data_root=ns.data_root,
            external_object_stores=ns.external_object_store,
            ipfs_binary=ns.ipfs_binary,
            config_file=ns.config,
        )
        if network is None:
            ipfs = IpfsCli(config.ipfs_binary)
            ipfs.ensure_available()
            network = ipfs
        log_event(ctx, "debug", "cli", "config", **config.to_dict())

        reconciler = Reconciler(config, network, ctx)
        result = reconciler.run()
        if isinstance(result, Err):
            if ns.json:
                emit(reconciler.summary.to_payload(ctx.run_id, result.error))
            raise result.error
        if ns.json:
            emit(result.value.to_payload(ctx.run_id))
        elif not ctx.quiet:
            _banner()
        return OK
    except UsageError as exc:
        _print_error(exc, ns.json, ctx)
        if not ns.json:
            parser.print_usage(sys.stderr)
        return exc.code
    except ScriptError as exc:
        _print_error(exc, ns.json, ctx)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(
            render_error(as_json=ns.json, message=f"internal error: {exc}", code=ERR_INTERNAL, run_id=ctx.run_id),
            file=sys.stderr,
        )
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
