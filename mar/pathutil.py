from __future__ import annotations

import os


def norm_path(p: str) -> str:
    """Normalize archive paths to a canonical forward-slash form.

    Rules:
    - Convert backslashes to slashes
    - Strip leading/trailing slashes
    - Remove empty and '.' segments
    - Reject '..' segments and paths that end up empty
    """
    p = p.replace("\\", "/").strip("/")
    parts = [q for q in p.split("/") if q not in ("", ".")]
    for q in parts:
        if q == "..":
            raise ValueError("Path may not contain '..'")
    if not parts:
        raise ValueError("Path is empty")
    return "/".join(parts)


def relative_arcname(full: str, root: str) -> str:
    """Archive name of ``full`` relative to directory ``root``."""
    return norm_path(os.path.relpath(full, start=root).replace(os.sep, "/"))
