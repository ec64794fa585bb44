"""EdgeGrid (EG1-HMAC-SHA256) request signing.

Builds the ``Authorization`` header for an API request from resolved
``.edgerc`` credentials. The request is only prepared, never sent; the
signature itself comes from ``akamai.edgegrid.EdgeGridAuth``.
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit

import requests
from akamai.edgegrid import EdgeGridAuth

from .edgerc import EdgeGridCredentials


def absolute_url(creds: EdgeGridCredentials, url: str) -> str:
    """Resolve a bare path such as ``/edgeworkers/v1/ids`` against the profile host."""
    if urlsplit(url).netloc:
        return url
    if not url.startswith("/"):
        url = "/" + url
    return f"https://{creds.host}{url}"


def make_auth_header(
    creds: EdgeGridCredentials,
    method: str,
    url: str,
    body: Union[bytes, str] = b"",
    *,
    timestamp: Optional[str] = None,
    nonce: Optional[str] = None,
    headers: Optional[Mapping[str, str]] = None,
    headers_to_sign: Iterable[str] = (),
) -> str:
    """Return the EdgeGrid ``Authorization`` header value for a request.

    Args:
        creds: Resolved profile credentials.
        method: HTTP method.
        url: Request URL; a relative path is resolved against ``creds.host``.
        body: Request body. Only POST bodies are hashed, up to ``creds.max_body``.
        timestamp: Fixed signing timestamp (``20140321T19:34:21+0000`` form).
        nonce: Fixed per-request nonce.
        headers: Request headers.
        headers_to_sign: Names of headers included in the signature.

    Both ``timestamp`` and ``nonce`` must be given to pin the signature;
    otherwise fresh ones are generated.
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    auth = EdgeGridAuth(
        client_token=creds.client_token,
        client_secret=creds.client_secret,
        access_token=creds.access_token,
        headers_to_sign=tuple(headers_to_sign),
        max_body=creds.max_body,
    )
    prepared = requests.Request(
        method.upper(),
        absolute_url(creds, url),
        data=body or None,
        headers=dict(headers or {}),
    ).prepare()
    if timestamp and nonce:
        return auth.make_auth_header(prepared, timestamp, nonce)
    return auth(prepared).headers["Authorization"]
