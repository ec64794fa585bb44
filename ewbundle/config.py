from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .constants import (
    ENV_CACHE_PATH,
    ENV_EDGERC,
    ENV_EDGERC_SECTION,
    ENV_DEBUG,
    DEFAULT_CACHE_ROOT,
    DEFAULT_EDGERC,
    DEFAULT_SECTION,
)
from .pathutil import expand_path
from .storage import StorageLayout


_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class EwConfig:
    cache_root: str
    edgerc_path: str
    section: str = DEFAULT_SECTION
    debug: bool = False

    def with_overrides(
        self,
        *,
        edgerc_path: Optional[str] = None,
        section: Optional[str] = None,
        debug: Optional[bool] = None,
    ) -> "EwConfig":
        changes = {}
        if edgerc_path:
            changes["edgerc_path"] = expand_path(edgerc_path)
        if section:
            changes["section"] = section
        if debug is not None:
            changes["debug"] = bool(debug)
        return dataclasses.replace(self, **changes)

    def storage(self) -> StorageLayout:
        """Storage layout rooted at ``cache_root`` with its base directories created."""
        return StorageLayout(self.cache_root).ensure()


def load_config(environ: Optional[Mapping[str, str]] = None) -> EwConfig:
    """Build an EwConfig from environment variables.

    Args:
        environ: Mapping to read instead of ``os.environ``.
    """
    env = os.environ if environ is None else environ
    return EwConfig(
        cache_root=expand_path(env.get(ENV_CACHE_PATH) or DEFAULT_CACHE_ROOT),
        edgerc_path=expand_path(env.get(ENV_EDGERC) or DEFAULT_EDGERC),
        section=env.get(ENV_EDGERC_SECTION) or DEFAULT_SECTION,
        debug=(env.get(ENV_DEBUG) or "").strip().lower() in _TRUTHY,
    )
