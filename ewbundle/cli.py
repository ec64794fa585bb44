from __future__ import annotations

import os
import sys
import argparse
import json as _json
from typing import List, Optional

from ewbundle.config import EwConfig, load_config
from ewbundle.edgerc import get_credentials, list_sections
from ewbundle.errors import BundleError
from ewbundle.hashutil import sha256_file, checksums_match
from ewbundle.manifest import read_manifest
from ewbundle.pathutil import expand_path
from ewbundle.reader import validate_tarball
from ewbundle.signing import make_auth_header
from ewbundle.storage import parse_tarball_name
from ewbundle.writer import TarballResult, build_tarball


def _debug(cfg: EwConfig, msg: str) -> None:
    if cfg.debug:
        print(f"Debug: {msg}", file=sys.stderr)


def _report_error(cfg: Optional[EwConfig], exc: BaseException) -> None:
    print(f"Error: {exc}", file=sys.stderr)
    if cfg is None or not cfg.debug:
        return
    seen = {id(exc)}
    cause = exc.__cause__ or exc.__context__
    while cause is not None and id(cause) not in seen:
        seen.add(id(cause))
        print(f"  caused by: {type(cause).__name__}: {cause}", file=sys.stderr)
        cause = cause.__cause__ or cause.__context__


def _print_result(result: TarballResult, as_json: bool) -> None:
    if as_json:
        print(_json.dumps({"tarballPath": result.path, "tarballChecksum": result.checksum}))
    else:
        print(f"Bundle archive: {result.path}")
        print(f"SHA-256 checksum: {result.checksum}")


def cmd_build(ew_id: str, code_path: str, *, config: EwConfig, as_json: bool = False) -> bool:
    """Build a bundle archive from a directory holding main.js and bundle.json.

    Args:
        ew_id: Bundle identifier.
        code_path: Working directory to package.
        config: Resolved configuration (cache root).
        as_json: Print a JSON object instead of text.
    """
    layout = config.storage()
    _debug(config, f"cache directory: {layout.bundles_dir}")
    result = build_tarball(ew_id, code_path, layout=layout)
    _print_result(result, as_json)
    return True


def cmd_validate(ew_id: str, tarball: str, *, config: EwConfig, as_json: bool = False) -> bool:
    """Check a supplied archive has main.js and bundle.json at its root."""
    _debug(config, f"inspecting {expand_path(tarball)} for {ew_id}")
    result = validate_tarball(ew_id, tarball)
    _print_result(result, as_json)
    return True


def cmd_manifest(path: str) -> bool:
    """Validate a bundle.json file on its own.

    Returns:
        True when the manifest is valid. Invalid manifests print the reason
        to stderr and return False.
    """
    res = read_manifest(expand_path(path))
    if not res.is_valid:
        print(f"Error: {res.reason}", file=sys.stderr)
        return False
    print(f"OK edgeworker-version={res.version}")
    return True


def cmd_checksum(path: str, *, expect: Optional[str] = None) -> bool:
    """Print a file's checksum; optionally compare it with an expected value.

    Prints:
        The checksum, then "OK" or "MISMATCH" when ``expect`` is given.
    """
    digest = sha256_file(expand_path(path))
    print(digest)
    if expect is None:
        return True
    ok = checksums_match(digest, expect)
    print("OK" if ok else "MISMATCH")
    return ok


def cmd_download_dir(ew_id: str, *, config: EwConfig, path: Optional[str] = None) -> bool:
    """Resolve (and create, for the cache default) the bundle download directory."""
    target = config.storage().resolve_download_dir(ew_id, path)
    print(f"Using {target} as path to store downloaded bundle file")
    return True


def cmd_list(ew_id: str, *, config: EwConfig) -> bool:
    """List cached archives for a bundle identifier, oldest first."""
    paths = config.storage().list_tarballs(ew_id)
    if not paths:
        print(f"No cached bundle archives for {ew_id}")
        return True
    for p in paths:
        parsed = parse_tarball_name(os.path.basename(p))
        version, millis = parsed if parsed else ("?", 0)
        print(f"{version}\t{millis}\t{os.path.getsize(p)}\t{p}")
    return True


def cmd_profile(*, config: EwConfig, list_all: bool = False) -> bool:
    """Show the resolved .edgerc profile with secrets masked, or list sections."""
    if list_all:
        for s in list_sections(config.edgerc_path):
            marker = "*" if s == config.section else " "
            print(f"{marker} {s}")
        return True
    creds = get_credentials(config.edgerc_path, config.section)
    print(f"Profile file: {config.edgerc_path}")
    for k, v in creds.masked().items():
        print(f"  {k}: {v}")
    return True


def cmd_sign(method: str, url: str, *, config: EwConfig, data: Optional[str] = None) -> bool:
    """Print an EdgeGrid Authorization header for a request."""
    creds = get_credentials(config.edgerc_path, config.section)
    _debug(config, f"signing with section [{creds.section}] for host {creds.host}")
    print(make_auth_header(creds, method, url, data or b""))
    return True


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="ewbundle",
        description="Package, validate and inspect EdgeWorkers code bundles",
        epilog=(
            "Archives are cached under $AKAMAI_CLI_CACHE_PATH/edgeworkers-cli/edgeworkers/<ewid>/."
        ),
    )
    ap.add_argument("--edgerc", help="Path to the .edgerc profile file (default $AKAMAI_EDGERC or ~/.edgerc)")
    ap.add_argument("--section", help="Profile section to use (default $AKAMAI_EDGERC_SECTION or 'default')")
    ap.add_argument("--debug", action="store_true", default=None, help="Print extra diagnostics to stderr")
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_build = sub.add_parser("build", help="Build a bundle archive from a code directory")
    ap_build.add_argument("ewid", help="EdgeWorker identifier")
    ap_build.add_argument("codedir", help="Directory containing main.js and bundle.json")
    ap_build.add_argument("--json", action="store_true", help="Emit JSON result")

    ap_validate = sub.add_parser("validate", help="Validate a bundle archive before upload")
    ap_validate.add_argument("ewid", help="EdgeWorker identifier")
    ap_validate.add_argument("tarball", help="Path to the .tgz bundle")
    ap_validate.add_argument("--json", action="store_true", help="Emit JSON result")

    ap_manifest = sub.add_parser("manifest", help="Validate a bundle.json manifest")
    ap_manifest.add_argument("path", help="Path to bundle.json")

    ap_checksum = sub.add_parser("checksum", help="Print a file's SHA-256 checksum")
    ap_checksum.add_argument("path", help="File path")
    ap_checksum.add_argument("--expect", help="Expected checksum; exit 1 on mismatch")

    ap_dl = sub.add_parser("download-dir", help="Resolve the directory for downloaded bundles")
    ap_dl.add_argument("ewid", help="EdgeWorker identifier")
    ap_dl.add_argument("--path", help="Existing directory to use instead of the cache")

    ap_list = sub.add_parser("list", help="List cached bundle archives")
    ap_list.add_argument("ewid", help="EdgeWorker identifier")

    ap_profile = sub.add_parser("profile", help="Show the resolved .edgerc profile")
    ap_profile.add_argument("--list", action="store_true", help="List all sections")

    ap_sign = sub.add_parser("sign", help="Print an EdgeGrid Authorization header")
    ap_sign.add_argument("method", help="HTTP method")
    ap_sign.add_argument("url", help="Request URL or path")
    ap_sign.add_argument("--data", help="Request body")

    args = ap.parse_args(argv)
    config = None
    try:
        config = load_config().with_overrides(
            edgerc_path=args.edgerc, section=args.section, debug=args.debug
        )
        _debug(config, f"config: {config}")
        # cache base directories exist before any command runs
        config.storage()
        if args.cmd == "build":
            ok = cmd_build(args.ewid, args.codedir, config=config, as_json=args.json)
        elif args.cmd == "validate":
            ok = cmd_validate(args.ewid, args.tarball, config=config, as_json=args.json)
        elif args.cmd == "manifest":
            ok = cmd_manifest(args.path)
        elif args.cmd == "checksum":
            ok = cmd_checksum(args.path, expect=args.expect)
        elif args.cmd == "download-dir":
            ok = cmd_download_dir(args.ewid, config=config, path=args.path)
        elif args.cmd == "list":
            ok = cmd_list(args.ewid, config=config)
        elif args.cmd == "profile":
            ok = cmd_profile(config=config, list_all=args.list)
        elif args.cmd == "sign":
            ok = cmd_sign(args.method, args.url, config=config, data=args.data)
        else:
            raise RuntimeError("Unknown command")
        sys.exit(0 if ok else 1)
    except BundleError as e:
        _report_error(config, e)
        sys.exit(2)
    except (OSError, ValueError, RuntimeError) as e:
        _report_error(config, e)
        sys.exit(2)


if __name__ == "__main__":
    main()
