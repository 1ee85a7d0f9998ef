"""
MAR archive codec.

Stateless transformations between an in-memory archive and its entries:

- ``read_toc``  parses the header and table of contents only (listing).
- ``decode``    parses the TOC and slices every entry's content.
- ``verify``    runs every strict check and reports problems instead of raising.
- ``encode``    lays out a set of (path, bytes) pairs as a complete archive.

Layout (little endian)::

    0        magic[4] "MARC"
    4        version u32 (3)
    8        entry count N u32
    12       N x 68-byte TOC records: name[56], size u32, crc32 u32, start u32
    12+68N   content blocks, contiguous, no padding

The codec never touches the filesystem; see ``mar.reader`` / ``mar.writer``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from .constants import (
    MAGIC,
    VERSION,
    MAX_UINT32,
    ORDER_ORDINAL,
    ORDER_LEGACY,
    ORDER_MODES,
    TOC_OFFSET,
    TOC_RECORD_SIZE,
    DEFAULT_ENCODING,
    content_offset,
)
from .crc32 import crc32
from .errors import (
    ArchiveTooLarge,
    ChecksumMismatch,
    ContentBoundsError,
    DuplicatePathError,
    MagicMismatch,
    TruncatedArchive,
)
from .pathutil import norm_path
from .toc import ArchiveHeader, TocRecord, encode_name, pack_count, read_count


@dataclass
class Entry:
    record: TocRecord
    data: bytes

    @property
    def name(self) -> str:
        return self.record.name

    @property
    def size(self) -> int:
        return self.record.size

    @property
    def crc32(self) -> int:
        return self.record.crc32

    @property
    def start_position(self) -> int:
        return self.record.start_position


# -------- Decode --------

def read_header(data: bytes) -> ArchiveHeader:
    return ArchiveHeader.unpack(data)


def read_toc(data: bytes, *, strict: bool = False, encoding: str = DEFAULT_ENCODING) -> List[TocRecord]:
    """Parse the table of contents without touching content blocks.

    Records are returned in exactly the order they appear in the TOC.

    Args:
        data: Complete archive bytes.
        strict: Also reject a foreign magic and content ranges past the end.
        encoding: Codec used for the name field.

    Raises:
        TruncatedArchive: The buffer is shorter than header + TOC (always checked).
        MagicMismatch, ContentBoundsError: Strict mode only.
    """
    header = read_header(data)
    if strict and not header.magic_ok:
        raise MagicMismatch(f"Bad magic {header.magic!r}; expected {MAGIC!r}")
    count = read_count(data)
    toc_end = content_offset(count)
    if len(data) < toc_end:
        raise TruncatedArchive(
            f"Archive declares {count} entries ({toc_end} bytes of header+TOC) but is only {len(data)} bytes"
        )
    records = [
        TocRecord.unpack_from(data, TOC_OFFSET + i * TOC_RECORD_SIZE, encoding)
        for i in range(count)
    ]
    if strict:
        for rec in records:
            _check_bounds(rec, len(data))
    return records


def decode(data: bytes, *, strict: bool = False, encoding: str = DEFAULT_ENCODING) -> List[Entry]:
    """Decode every entry (TOC record plus content) in TOC order.

    The permissive default mirrors legacy readers: no magic, bounds or checksum
    validation beyond the TOC itself. ``strict=True`` raises on any of them.
    """
    records = read_toc(data, strict=strict, encoding=encoding)
    entries: List[Entry] = []
    for rec in records:
        content = bytes(data[rec.start_position : rec.end_position])
        if strict:
            actual = crc32(content)
            if actual != rec.crc32:
                raise ChecksumMismatch(
                    f"{rec.name}: stored crc32 {rec.crc32:08x} != computed {actual:08x}"
                )
        entries.append(Entry(record=rec, data=content))
    return entries


def verify(data: bytes, *, encoding: str = DEFAULT_ENCODING) -> List[str]:
    """Run all strict checks and collect problems instead of raising.

    Returns:
        A list of human-readable problems; empty when the archive is sound.

    Raises:
        TruncatedArchive: The TOC itself cannot be read.
    """
    problems: List[str] = []
    header = read_header(data)
    if not header.magic_ok:
        problems.append(f"bad magic {header.magic!r} (expected {MAGIC!r})")
    records = read_toc(data, encoding=encoding)
    total = len(data)
    for rec in records:
        if rec.end_position > total:
            problems.append(
                f"{rec.name}: content [{rec.start_position}, {rec.end_position}) exceeds archive length {total}"
            )
            continue
        actual = crc32(data[rec.start_position : rec.end_position])
        if actual != rec.crc32:
            problems.append(f"{rec.name}: crc32 mismatch (stored {rec.crc32:08x}, computed {actual:08x})")

    # Blocks must tile the region after the TOC exactly
    expected = content_offset(len(records))
    for rec in sorted(records, key=lambda r: (r.start_position, r.size)):
        if rec.start_position > expected:
            problems.append(f"{rec.name}: gap of {rec.start_position - expected} bytes before content")
        elif rec.start_position < expected:
            problems.append(f"{rec.name}: content at {rec.start_position} overlaps preceding data (expected {expected})")
        expected = max(expected, rec.end_position)
    if expected < total:
        problems.append(f"{total - expected} trailing bytes after last content block")
    return problems


def _check_bounds(rec: TocRecord, total: int) -> None:
    if rec.end_position > total:
        raise ContentBoundsError(
            f"{rec.name}: content [{rec.start_position}, {rec.end_position}) exceeds archive length {total}"
        )


# -------- Ordering --------

def fold_case(path: str) -> str:
    """Upper-case ``path`` one code point at a time.

    Characters whose upper case is not a single code point ('ß', 'ﬁ') are kept
    as-is, so the folded string compares by code point like the unfolded one.
    """
    out = []
    for c in path:
        u = c.upper()
        out.append(u if len(u) == 1 else c)
    return "".join(out)


def sort_key(path: str) -> Tuple[str, str]:
    """Ordinal, case-insensitive key; the exact path breaks ties between case variants."""
    return (fold_case(path), path)


def legacy_toc_key(path: str) -> Tuple[str, str]:
    """TOC placement key of the historical tool, which folds '_' to 'a' before comparing."""
    return (fold_case(path.replace("_", "a")), path)


def ordering_permutations(paths: List[str], order: str = ORDER_ORDINAL) -> Tuple[List[int], List[int]]:
    """Compute (toc_order, layout_order) as index permutations over ``paths``.

    Both permutations index the same canonical list, so TOC records and content
    blocks are joined by position rather than by looking names up.
    """
    if order not in ORDER_MODES:
        raise ValueError(f"Unknown order mode {order!r}; expected one of {', '.join(ORDER_MODES)}")
    idx = range(len(paths))
    layout = sorted(idx, key=lambda i: sort_key(paths[i]))
    if order == ORDER_LEGACY:
        toc = sorted(idx, key=lambda i: legacy_toc_key(paths[i]))
    else:
        toc = list(layout)
    return toc, layout


# -------- Encode --------

def _normalize(files: Iterable[Tuple[str, bytes]], encoding: str) -> Tuple[List[str], List[bytes]]:
    names: List[str] = []
    blobs: List[bytes] = []
    seen = set()
    for path, content in files:
        name = norm_path(path)
        if name in seen:
            raise DuplicatePathError(f"Duplicate archive path: {name}")
        seen.add(name)
        # Validate the name field early, before any content is hashed
        encode_name(name, encoding)
        names.append(name)
        blobs.append(bytes(content))
    return names, blobs


def plan(
    files: Iterable[Tuple[str, bytes]],
    *,
    order: str = ORDER_ORDINAL,
    encoding: str = DEFAULT_ENCODING,
) -> Tuple[List[TocRecord], List[bytes], List[int], List[int]]:
    """Assign sizes, checksums and offsets without building the archive.

    Returns:
        (records, blobs, toc_order, layout_order); ``records[i]`` describes
        ``blobs[i]`` and both lists share the canonical index.
    """
    names, blobs = _normalize(files, encoding)
    toc, layout = ordering_permutations(names, order)
    records: List[TocRecord] = [None] * len(names)  # type: ignore
    pos = content_offset(len(names))
    for i in layout:
        size = len(blobs[i])
        records[i] = TocRecord(name=names[i], size=size, crc32=crc32(blobs[i]), start_position=pos)
        pos += size
    if pos > MAX_UINT32:
        raise ArchiveTooLarge(f"Archive would be {pos} bytes; offsets are limited to {MAX_UINT32}")
    return records, blobs, toc, layout


def encode(
    files: Iterable[Tuple[str, bytes]],
    *,
    order: str = ORDER_ORDINAL,
    encoding: str = DEFAULT_ENCODING,
) -> bytes:
    """Build a complete archive from (relative path, content) pairs.

    Args:
        files: Pairs in any order; paths may use either separator.
        order: ``"ordinal"`` (one order for TOC and layout) or ``"legacy"``
            (TOC sorted with '_' folded to 'a', layout in ordinal order).
        encoding: Codec used for the name field.

    Raises:
        NameTooLong, NameEncodingError, DuplicatePathError, ArchiveTooLarge, ValueError
    """
    records, blobs, toc, layout = plan(files, order=order, encoding=encoding)
    out = bytearray()
    out += ArchiveHeader(magic=MAGIC, version=VERSION).pack()
    out += pack_count(len(records))
    for i in toc:
        out += records[i].pack(encoding)
    for i in layout:
        out += blobs[i]
    return bytes(out)
