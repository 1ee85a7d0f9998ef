from __future__ import annotations

import os
from typing import List, Optional, Tuple

from .codec import encode, read_toc
from .constants import DEFAULT_ENCODING, ORDER_ORDINAL, ORDER_MODES
from .errors import InputNotFound
from .pathutil import norm_path, relative_arcname
from .toc import TocRecord


def collect_tree(root: str) -> List[Tuple[str, str]]:
    """Enumerate regular files under ``root`` recursively.

    Returns:
        ``(arcname, full_path)`` pairs sorted by arcname; arcnames are '/'-separated
        and relative to root.
    """
    if not os.path.isdir(root):
        raise InputNotFound(f"Input folder not found: {root}")
    found: List[Tuple[str, str]] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames.sort()
        for fn in sorted(filenames):
            full = os.path.join(dirpath, fn)
            if not os.path.isfile(full):
                continue
            found.append((relative_arcname(full, root), full))
    found.sort()
    return found


class ArchiveWriter:
    """Collect files and write them out as a single MAR archive on ``finalize``."""

    def __init__(self, out_path: str, *, order: str = ORDER_ORDINAL, encoding: str = DEFAULT_ENCODING):
        if order not in ORDER_MODES:
            raise ValueError(f"Unknown order mode {order!r}")
        self.out_path = out_path
        self.order = order
        self.encoding = encoding
        self.files: List[Tuple[str, bytes]] = []
        self.records: List[TocRecord] = []
        self._finalized = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None and not self._finalized:
            self.finalize()

    def add_bytes(self, arc_path: str, data: bytes):
        self.files.append((norm_path(arc_path), bytes(data)))

    def add_file(self, arc_path: str, fs_path: str):
        with open(fs_path, "rb") as f:
            self.add_bytes(arc_path, f.read())

    def add_tree(self, root: str, prefix: Optional[str] = None) -> int:
        """Add every file below ``root``; returns the number of files added."""
        tree = collect_tree(root)
        for arc, full in tree:
            self.add_file(f"{prefix}/{arc}" if prefix else arc, full)
        return len(tree)

    def finalize(self) -> List[TocRecord]:
        """Encode the collected files and write the archive.

        Returns:
            The TOC records as written, in TOC order.
        """
        if self._finalized:
            raise RuntimeError("Archive already finalized")
        blob = encode(self.files, order=self.order, encoding=self.encoding)
        parent = os.path.dirname(self.out_path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        with open(self.out_path, "wb") as f:
            f.write(blob)
        self.records = read_toc(blob, encoding=self.encoding)
        self._finalized = True
        return self.records
