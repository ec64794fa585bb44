from __future__ import annotations

import gzip
import os
import tarfile
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional, Tuple

from .constants import (
    MAINJS_FILENAME,
    MANIFEST_FILENAME,
    REQUIRED_FILENAMES,
    PARTIAL_SUFFIX,
    PORTABLE_FILE_MODE,
)
from .errors import BundleNotFound
from .hashutil import sha256_file
from .manifest import read_manifest
from .pathutil import expand_path
from .storage import StorageLayout, tarball_name


@dataclass
class TarballResult:
    path: str
    checksum: str


def epoch_millis() -> int:
    return time.time_ns() // 1_000_000


def _portable_tarinfo(tar: tarfile.TarFile, fh, arcname: str) -> tarfile.TarInfo:
    """TarInfo for an open file with host-specific metadata stripped."""
    # fstat follows symlinks, so the entry is always a regular file
    ti = tar.gettarinfo(arcname=arcname, fileobj=fh)
    ti.uid = 0
    ti.gid = 0
    ti.uname = ""
    ti.gname = ""
    ti.mode = PORTABLE_FILE_MODE
    ti.mtime = int(ti.mtime)
    return ti


def write_bundle_archive(raw: BinaryIO, code_dir: str) -> None:
    """Write a flat gzip tar of ``main.js`` and ``bundle.json`` from ``code_dir``.

    Entries carry no directory prefix and no directory records.
    """
    # mtime=0 keeps the gzip header free of the build time
    with gzip.GzipFile(filename="", fileobj=raw, mode="wb", mtime=0) as gz:
        with tarfile.open(fileobj=gz, mode="w", format=tarfile.PAX_FORMAT) as tar:
            for name in REQUIRED_FILENAMES:
                src = os.path.join(code_dir, name)
                with open(src, "rb") as fh:
                    ti = _portable_tarinfo(tar, fh, name)
                    tar.addfile(ti, fh)
    raw.flush()
    os.fsync(raw.fileno())


def _claim_tarball_path(directory: str, version: str, now_ms: int) -> Tuple[str, BinaryIO]:
    """Reserve a free ``ew_<version>_<millis>.tgz`` name and open its staging file.

    The ``.partial`` staging file is created exclusively, so concurrent builds
    never share a name; the timestamp is advanced until a name is free.
    """
    millis = now_ms
    while True:
        path = os.path.join(directory, tarball_name(version, millis))
        staging = path + PARTIAL_SUFFIX
        try:
            raw = open(staging, "xb")
        except FileExistsError:
            millis += 1
            continue
        # a finished archive never has a live staging file, so this check cannot race
        if os.path.lexists(path):
            raw.close()
            os.remove(staging)
            millis += 1
            continue
        return path, raw


def build_tarball(
    ew_id: str,
    code_path: str,
    *,
    layout: StorageLayout,
    clock: Optional[Callable[[], int]] = None,
) -> TarballResult:
    """Build a versioned bundle archive for ``ew_id`` from a working directory.

    Args:
        ew_id: Bundle identifier; selects the cache directory.
        code_path: Directory holding ``main.js`` and ``bundle.json``.
        layout: Cache layout the archive is written under.
        clock: Returns epoch milliseconds; defaults to the wall clock.

    Returns:
        TarballResult with the archive path and its SHA-256 checksum.

    Raises:
        BundleNotFound: If either required file is missing.
        ManifestError: If ``bundle.json`` fails validation.
    """
    code_dir = expand_path(code_path)
    mainjs_path = os.path.join(code_dir, MAINJS_FILENAME)
    manifest_path = os.path.join(code_dir, MANIFEST_FILENAME)

    if not os.path.isfile(mainjs_path) or not os.path.isfile(manifest_path):
        raise BundleNotFound(
            f"EdgeWorkers {MAINJS_FILENAME} ({mainjs_path}) and/or manifest "
            f"({manifest_path}) provided is not found."
        )

    validation = read_manifest(manifest_path)
    validation.raise_for_error()

    bundle_dir = layout.directory_for(ew_id)
    now_ms = (clock or epoch_millis)()
    tarball_path, raw = _claim_tarball_path(bundle_dir, validation.version, now_ms)
    staging = tarball_path + PARTIAL_SUFFIX
    try:
        with raw:
            write_bundle_archive(raw, code_dir)
        os.replace(staging, tarball_path)
    except BaseException:
        try:
            os.remove(staging)
        except FileNotFoundError:
            pass
        raise
    return TarballResult(path=tarball_path, checksum=sha256_file(tarball_path))
