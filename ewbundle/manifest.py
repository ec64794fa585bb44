"""Schema checks for the ``bundle.json`` manifest.

Only the fields the packaging pipeline depends on are enforced; unknown keys
are ignored. Checks run in a fixed order and the first failure wins:

1. the document parses as JSON
2. ``edgeworker-version`` is present
3. ``edgeworker-version`` format
4. ``bundle-version`` format
5. ``api-version`` format
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from .constants import (
    MANIFEST_FILENAME,
    TARBALL_VERSION_KEY,
    BUNDLE_FORMAT_VERSION_KEY,
    JSAPI_VERSION_KEY,
)
from .errors import (
    ManifestError,
    MalformedManifest,
    MissingRequiredField,
    InvalidFieldFormat,
)


# 1-32 chars of [.A-Za-z0-9_~-], never two dots in a row
_TARBALL_VERSION_RE = re.compile(r"(?!.*\.\.)[.a-zA-Z0-9_~-]{1,32}")
_JSAPI_VERSION_RE = re.compile(r"[0-9.]*")


@dataclass
class ManifestValidation:
    is_valid: bool
    version: Optional[str]
    reason: str
    error: Optional[ManifestError] = None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def _is_missing(value: Any) -> bool:
    # JSON falsy values count as absent
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0
    return False


def _is_valid_tarball_version(value: Any) -> bool:
    return isinstance(value, str) and _TARBALL_VERSION_RE.fullmatch(value) is not None


def _is_valid_bundle_version(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value >= 1
    if isinstance(value, float):
        return value.is_integer() and value >= 1
    return False


def _is_valid_jsapi_version(value: Any) -> bool:
    return isinstance(value, str) and _JSAPI_VERSION_RE.fullmatch(value) is not None


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"invalid JSON constant: {name}")


def _check_manifest(raw: Union[str, bytes]) -> str:
    """Return the manifest's edgeworker-version or raise a ManifestError."""
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = bytes(raw).decode("utf-8")
        doc = json.loads(raw, parse_constant=_reject_constant)
    except (UnicodeDecodeError, ValueError):
        raise MalformedManifest(f"Manifest file ({MANIFEST_FILENAME}) is not valid JSON")

    if not isinstance(doc, dict) or _is_missing(doc.get(TARBALL_VERSION_KEY)):
        raise MissingRequiredField(
            f"Required field is missing: {TARBALL_VERSION_KEY}", TARBALL_VERSION_KEY
        )

    tarball_version = doc[TARBALL_VERSION_KEY]
    for key, check in (
        (TARBALL_VERSION_KEY, _is_valid_tarball_version),
        (BUNDLE_FORMAT_VERSION_KEY, _is_valid_bundle_version),
        (JSAPI_VERSION_KEY, _is_valid_jsapi_version),
    ):
        if not check(doc.get(key)):
            raise InvalidFieldFormat(f"Format for field '{key}' is invalid", key)
    return tarball_version


def validate_manifest(raw: Union[str, bytes]) -> ManifestValidation:
    """Validate manifest text and extract its declared version.

    Args:
        raw: The manifest document as text or UTF-8 bytes.

    Returns:
        A ManifestValidation. On failure ``version`` is None, ``reason`` holds
        the single reported problem and ``error`` the matching exception.
    """
    try:
        version = _check_manifest(raw)
    except ManifestError as exc:
        return ManifestValidation(is_valid=False, version=None, reason=str(exc), error=exc)
    return ManifestValidation(is_valid=True, version=version, reason="")


def read_manifest(path: str) -> ManifestValidation:
    with open(path, "rb") as fh:
        return validate_manifest(fh.read())
