from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import (
    MAGIC,
    VERSION,
    HEADER_SIZE,
    TOC_OFFSET,
    TOC_RECORD_SIZE,
    NAME_FIELD_SIZE,
    MAX_NAME_BYTES,
    DEFAULT_ENCODING,
)
from .errors import TruncatedArchive, NameTooLong, NameEncodingError


# Header (fixed 8 bytes) followed by the entry count
# struct: <4s I I
#  - magic[4]
#  - version u32
#  - entry_count u32
_HEADER_STRUCT = struct.Struct("<4sI")
_COUNT_STRUCT = struct.Struct("<I")

# TOC record (fixed 68 bytes)
# struct: <56s I I I
#  - name[56], zero padded
#  - size u32
#  - crc32 u32
#  - start_position u32 (absolute offset into the archive)
_TOC_RECORD_STRUCT = struct.Struct(f"<{NAME_FIELD_SIZE}sIII")

assert _HEADER_STRUCT.size == HEADER_SIZE
assert _TOC_RECORD_STRUCT.size == TOC_RECORD_SIZE


@dataclass
class ArchiveHeader:
    magic: bytes = MAGIC
    version: int = VERSION

    @property
    def magic_ok(self) -> bool:
        return self.magic == MAGIC

    def pack(self) -> bytes:
        return _HEADER_STRUCT.pack(self.magic, self.version)

    @classmethod
    def unpack(cls, data: bytes) -> "ArchiveHeader":
        if len(data) < HEADER_SIZE:
            raise TruncatedArchive(f"Archive too short for header ({len(data)} < {HEADER_SIZE} bytes)")
        magic, version = _HEADER_STRUCT.unpack_from(data, 0)
        return cls(magic=magic, version=version)


@dataclass
class TocRecord:
    name: str
    size: int
    crc32: int
    start_position: int

    @property
    def end_position(self) -> int:
        return self.start_position + self.size

    def pack(self, encoding: str = DEFAULT_ENCODING) -> bytes:
        return _TOC_RECORD_STRUCT.pack(
            encode_name(self.name, encoding), self.size, self.crc32, self.start_position
        )

    @classmethod
    def unpack_from(cls, data: bytes, offset: int, encoding: str = DEFAULT_ENCODING) -> "TocRecord":
        raw_name, size, crc, start = _TOC_RECORD_STRUCT.unpack_from(data, offset)
        return cls(name=decode_name(raw_name, encoding), size=size, crc32=crc, start_position=start)


def encode_name(name: str, encoding: str = DEFAULT_ENCODING) -> bytes:
    """Encode ``name`` for the fixed-width name field.

    Returns the raw encoded bytes; ``struct`` zero-pads them to the field width.
    """
    try:
        raw = name.encode(encoding)
    except UnicodeEncodeError as exc:
        raise NameEncodingError(f"Name {name!r} cannot be encoded as {encoding}: {exc.reason}") from exc
    if len(raw) > MAX_NAME_BYTES:
        raise NameTooLong(
            f"Name {name!r} is {len(raw)} bytes; the name field holds at most {MAX_NAME_BYTES}"
        )
    if b"\x00" in raw:
        raise NameEncodingError(f"Name {name!r} contains a NUL byte")
    return raw


def decode_name(raw: bytes, encoding: str = DEFAULT_ENCODING) -> str:
    # Logical value ends at the first zero byte
    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode(encoding, errors="replace")


def pack_count(count: int) -> bytes:
    return _COUNT_STRUCT.pack(count)


def read_count(data: bytes) -> int:
    if len(data) < TOC_OFFSET:
        raise TruncatedArchive(f"Archive too short for entry count ({len(data)} < {TOC_OFFSET} bytes)")
    (count,) = _COUNT_STRUCT.unpack_from(data, HEADER_SIZE)
    return count
