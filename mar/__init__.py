"""
MAR: reader/writer for the MSN Archive (.mar) container used by MSN Explorer skins.

A MAR archive is an 8-byte header (magic "MARC" + version), an entry count, a
fixed-width table of contents (56-byte name, size, CRC-32, start offset per
entry) and the raw, uncompressed file contents laid out back to back.

- ``mar.codec``   stateless encode/decode/verify over in-memory bytes
- ``mar.reader``  / ``mar.writer`` filesystem adapters
- ``mar.cli``     the ``mar`` command (decompress, compress, info, list, verify)
"""

__version__ = "0.1"

__all__ = [
    "constants",
    "codec",
    "reader",
    "writer",
    "errors",
    "table",
]

# Programmatic API: mar.codec.encode/decode for bytes, mar.reader.ArchiveReader /
# mar.writer.ArchiveWriter for files, and the cmd_* functions in mar.cli.
