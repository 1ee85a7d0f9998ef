from __future__ import annotations

import os
from typing import List, Optional

from .codec import Entry, decode, read_toc, verify
from .constants import DEFAULT_ENCODING
from .errors import InputNotFound, UnsafePathError
from .pathutil import norm_path
from .toc import TocRecord


class ArchiveReader:
    """Read a MAR archive from disk.

    The whole archive is loaded into memory on ``open``; all parsing is
    delegated to ``mar.codec``.

    Example:
        with ArchiveReader("skin.mar") as r:
            for rec in r.list():
                print(rec.name, rec.size)
    """

    def __init__(self, path: str, *, strict: bool = False, encoding: str = DEFAULT_ENCODING):
        self.path = path
        self.strict = strict
        self.encoding = encoding
        self.data: Optional[bytes] = None
        self.records: List[TocRecord] = []
        self.problems: List[str] = []

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def open(self):
        if self.data is not None:
            return
        if not os.path.isfile(self.path):
            raise InputNotFound(f"Input file not found: {self.path}")
        with open(self.path, "rb") as f:
            data = f.read()
        # Parse before publishing the buffer so a failed open leaves the reader closed
        self.records = read_toc(data, strict=self.strict, encoding=self.encoding)
        self.data = data

    def close(self):
        self.data = None

    def list(self) -> List[TocRecord]:
        return self.records

    def entries(self) -> List[Entry]:
        """Decode all entries with their content, in TOC order."""
        return decode(self._require_open(), strict=self.strict, encoding=self.encoding)

    def extract(self, entry: Entry, out_path: str):
        os.makedirs(os.path.dirname(out_path) or ".", exist_ok=True)
        with open(out_path, "wb") as wf:
            wf.write(entry.data)

    def verify(self) -> bool:
        """Run every integrity check; details are left in ``self.problems``."""
        self.problems = verify(self._require_open(), encoding=self.encoding)
        return not self.problems

    def _require_open(self) -> bytes:
        if self.data is None:
            raise RuntimeError("Archive not open")
        return self.data


def safe_target(outdir: str, name: str) -> str:
    """Map an archive name to a path under ``outdir``, refusing escapes."""
    try:
        rel = norm_path(name)
    except ValueError as exc:
        raise UnsafePathError(f"Refusing to extract {name!r}: {exc}") from exc
    root = os.path.abspath(outdir or ".")
    dst = os.path.abspath(os.path.join(root, *rel.split("/")))
    if os.path.commonpath([root, dst]) != root:
        raise UnsafePathError(f"Refusing to extract {name!r} outside {root}")
    # Symlinked folders already inside the output tree must not lead out of it
    real_root = os.path.realpath(root)
    real_parent = os.path.realpath(os.path.dirname(dst))
    if os.path.commonpath([real_root, real_parent]) != real_root:
        raise UnsafePathError(f"Refusing to extract {name!r} through a link outside {root}")
    return dst
