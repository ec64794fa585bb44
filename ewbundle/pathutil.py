from __future__ import annotations

import os


def expand_path(p: str) -> str:
    """Expand a leading ``~`` / ``~user`` the way a shell would."""
    return os.path.expanduser(p)


def norm_entry_name(name: str) -> str:
    """Normalize a tar member name to its canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments

    ``./main.js`` and ``main.js`` therefore both normalize to ``main.js``.
    """
    name = name.replace("\\", "/").strip("/")
    parts = [q for q in name.split("/") if q not in ("", ".")]
    return "/".join(parts)


def check_path_segment(segment: str) -> str:
    """Return ``segment`` if it is usable as a single directory name."""
    if not segment or segment in (".", ".."):
        raise ValueError(f"Invalid bundle identifier: {segment!r}")
    if "/" in segment or "\\" in segment or os.sep in segment:
        raise ValueError(f"Bundle identifier may not contain a path separator: {segment!r}")
    return segment
