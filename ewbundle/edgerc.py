from __future__ import annotations

import configparser
import os
from dataclasses import dataclass
from typing import Dict, List

from akamai.edgegrid import EdgeRc

from .constants import DEFAULT_MAX_BODY
from .errors import ProfileError
from .pathutil import expand_path


_REQUIRED_KEYS = ("client_token", "client_secret", "access_token", "host")


@dataclass(frozen=True)
class EdgeGridCredentials:
    section: str
    client_token: str
    client_secret: str
    access_token: str
    host: str
    max_body: int = DEFAULT_MAX_BODY

    def masked(self) -> Dict[str, str]:
        """Credentials safe to print: secrets reduced to their last 4 chars."""
        def _mask(v: str) -> str:
            return "*" * max(0, len(v) - 4) + v[-4:]

        return {
            "section": self.section,
            "host": self.host,
            "client_token": _mask(self.client_token),
            "access_token": _mask(self.access_token),
            "client_secret": _mask(self.client_secret),
            "max_body": str(self.max_body),
        }


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def _normalize_host(host: str) -> str:
    for scheme in ("https://", "http://"):
        if host.lower().startswith(scheme):
            host = host[len(scheme):]
            break
    return host.rstrip("/")


def _read_parser(path: str) -> EdgeRc:
    path = expand_path(path)
    if not os.path.isfile(path):
        raise ProfileError(f"Profile file not found: {path}")
    try:
        return EdgeRc(path)
    except (configparser.Error, UnicodeDecodeError) as exc:
        raise ProfileError(f"Unable to parse profile file {path}: {exc}") from exc


def _section_credentials(parser: EdgeRc, section: str) -> EdgeGridCredentials:
    try:
        values = {k: _unquote(v) for k, v in parser.items(section)}
    except configparser.Error as exc:
        raise ProfileError(f"Unable to read section [{section}]: {exc}") from exc
    missing = [k for k in _REQUIRED_KEYS if not values.get(k)]
    if missing:
        raise ProfileError(f"Section [{section}] is missing required key(s): {', '.join(missing)}")
    # EdgeRc defaults max_body, so an explicit max-body wins
    raw_max_body = values.get("max-body") or values.get("max_body")
    max_body = DEFAULT_MAX_BODY
    if raw_max_body:
        try:
            max_body = int(raw_max_body)
        except ValueError:
            raise ProfileError(f"Section [{section}] has a non-integer max_body: {raw_max_body!r}")
    return EdgeGridCredentials(
        section=section,
        client_token=values["client_token"],
        client_secret=values["client_secret"],
        access_token=values["access_token"],
        host=_normalize_host(values["host"]),
        max_body=max_body,
    )


def list_sections(path: str) -> List[str]:
    return _read_parser(path).sections()


def parse_edgerc(path: str) -> Dict[str, EdgeGridCredentials]:
    """Parse every section of an ``.edgerc`` file.

    Raises:
        ProfileError: If the file is missing or unparseable, or a section
            lacks one of client_token/client_secret/access_token/host.
    """
    parser = _read_parser(path)
    return {s: _section_credentials(parser, s) for s in parser.sections()}


def get_credentials(path: str, section: str) -> EdgeGridCredentials:
    """Resolve one named profile; other sections are not checked."""
    parser = _read_parser(path)
    if not parser.has_section(section):
        raise ProfileError(f"Section [{section}] not found in profile file {expand_path(path)}")
    return _section_credentials(parser, section)
