from __future__ import annotations

import os
import tarfile
import zlib
from collections import Counter
from typing import List

from .constants import MAINJS_FILENAME, MANIFEST_FILENAME, REQUIRED_FILENAMES
from .errors import BundleNotFound, StructuralMismatch, UnreadableArchive
from .hashutil import sha256_file
from .pathutil import expand_path, norm_entry_name
from .writer import TarballResult


_READ_ERRORS = (tarfile.TarError, EOFError, OSError, zlib.error)


def _open_archive(path: str) -> tarfile.TarFile:
    try:
        # "r:*" detects gzip vs. plain tar
        return tarfile.open(path, mode="r:*")
    except _READ_ERRORS as exc:
        raise UnreadableArchive(f"EdgeWorkers bundle archive ({path}) could not be read: {exc}") from exc


def _check_archive_end(tar: tarfile.TarFile, path: str) -> None:
    # tarfile stops quietly at a bad header; only a zero block or EOF may follow the members
    tar.fileobj.seek(tar.offset)
    block = tar.fileobj.read(tarfile.BLOCKSIZE)
    if block.strip(tarfile.NUL):
        raise UnreadableArchive(
            f"EdgeWorkers bundle archive ({path}) could not be read: "
            f"unexpected data at offset {tar.offset}"
        )


def list_root_entries(path: str) -> List[str]:
    """Return the normalized names of the regular files at the archive root.

    Raises:
        UnreadableArchive: If the archive cannot be decoded, or data other
            than the end-of-archive marker follows the last member.
    """
    names: List[str] = []
    with _open_archive(path) as tar:
        try:
            for member in tar:
                if not member.isfile():
                    continue
                name = norm_entry_name(member.name)
                if name and "/" not in name:
                    names.append(name)
            _check_archive_end(tar, path)
        except _READ_ERRORS as exc:
            raise UnreadableArchive(f"EdgeWorkers bundle archive ({path}) could not be read: {exc}") from exc
    return names


def check_required_entries(names: List[str]) -> None:
    """Raise StructuralMismatch unless each required name occurs exactly once.

    Names outside the required set are ignored.
    """
    found = Counter(n for n in names if n in REQUIRED_FILENAMES)
    if found != Counter(REQUIRED_FILENAMES):
        raise StructuralMismatch(
            f"EdgeWorkers {MAINJS_FILENAME} and/or {MANIFEST_FILENAME} is not found in provided bundle tgz!"
        )


def validate_tarball(ew_id: str, tarball_path: str) -> TarballResult:
    """Check a user-supplied archive before upload and checksum it.

    The archive must contain ``main.js`` and ``bundle.json`` at its root. The
    entries are not unpacked and the file is never rewritten.

    Args:
        ew_id: Bundle identifier the archive is meant for.
        tarball_path: Path to the archive; ``~`` is expanded.

    Raises:
        BundleNotFound: If the archive does not exist.
        StructuralMismatch: If the required entries are not both present once.
    """
    path = expand_path(tarball_path)
    if not os.path.isfile(path):
        raise BundleNotFound(f"EdgeWorkers bundle archive ({path}) provided is not found.")

    check_required_entries(list_root_entries(path))
    return TarballResult(path=path, checksum=sha256_file(path))
