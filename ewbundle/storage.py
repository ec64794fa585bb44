from __future__ import annotations

import os
import re
from typing import List, Optional

from .constants import (
    CLI_HOME_DIRNAME,
    BUNDLES_DIRNAME,
    TARBALL_PREFIX,
    TARBALL_SUFFIX,
)
from .errors import BundleNotFound
from .pathutil import expand_path, check_path_segment


_TARBALL_NAME_RE = re.compile(
    re.escape(TARBALL_PREFIX) + r"(?P<version>.+)_(?P<millis>\d+)" + re.escape(TARBALL_SUFFIX)
)


def tarball_name(version: str, epoch_millis: int) -> str:
    return f"{TARBALL_PREFIX}{version}_{epoch_millis}{TARBALL_SUFFIX}"


def parse_tarball_name(name: str) -> Optional[tuple[str, int]]:
    """Split ``ew_<version>_<epochMillis>.tgz`` into (version, millis)."""
    m = _TARBALL_NAME_RE.fullmatch(name)
    if m is None:
        return None
    return m.group("version"), int(m.group("millis"))


class StorageLayout:
    """On-disk cache layout: ``<cache_root>/edgeworkers-cli/edgeworkers/<ew_id>/``.

    Directories are created lazily and never removed; archives accumulate.
    """

    def __init__(self, cache_root: str):
        self.cache_root = expand_path(cache_root)
        self.cli_home = os.path.join(self.cache_root, CLI_HOME_DIRNAME)
        self.bundles_dir = os.path.join(self.cli_home, BUNDLES_DIRNAME)

    def ensure(self) -> "StorageLayout":
        # exist_ok tolerates concurrent invocations racing on creation
        os.makedirs(self.bundles_dir, exist_ok=True)
        return self

    def directory_for(self, ew_id: str) -> str:
        """Return the identifier's directory, creating it if absent."""
        path = os.path.join(self.bundles_dir, check_path_segment(ew_id))
        os.makedirs(path, exist_ok=True)
        return path

    def resolve_download_dir(self, ew_id: str, explicit_path: Optional[str] = None) -> str:
        """Pick where a downloaded bundle should be stored.

        Args:
            ew_id: Bundle identifier used for the default cache directory.
            explicit_path: User supplied directory; must already exist.

        Raises:
            BundleNotFound: If ``explicit_path`` is given but is not a directory.
        """
        if explicit_path:
            path = expand_path(explicit_path)
            if not os.path.isdir(path):
                raise BundleNotFound(f"The download path does not exist: {path}")
            return path
        return self.directory_for(ew_id)

    def list_tarballs(self, ew_id: str) -> List[str]:
        """Archive paths for an identifier, oldest first. Creates nothing."""
        path = os.path.join(self.bundles_dir, check_path_segment(ew_id))
        try:
            names = os.listdir(path)
        except FileNotFoundError:
            return []
        found = []
        for name in names:
            parsed = parse_tarball_name(name)
            if parsed is None or not os.path.isfile(os.path.join(path, name)):
                continue
            found.append((parsed[1], name))
        found.sort()
        return [os.path.join(path, name) for _, name in found]
