from __future__ import annotations

import hashlib
import hmac

_READ_SIZE = 1_048_576  # 1 MiB


def sha256_file(path: str) -> str:
    """Return the hex SHA-256 digest of a file's bytes.

    Only content is hashed, so mtime and permissions never affect the result.
    """
    h = hashlib.sha256()
    with open(path, "rb") as fh:
        while True:
            buf = fh.read(_READ_SIZE)
            if not buf:
                break
            h.update(buf)
    return h.hexdigest()


def checksums_match(a: str, b: str) -> bool:
    return hmac.compare_digest(a.strip().lower().encode("utf-8"), b.strip().lower().encode("utf-8"))
