# Magic and version
MAGIC = b"MARC"       # 4 bytes: 0x4D 0x41 0x52 0x43
VERSION = 3           # u32 LE; observed constant in every known archive

# Layout (little endian throughout)
HEADER_SIZE = 8       # magic[4] + version u32
COUNT_SIZE = 4        # entry count u32
TOC_OFFSET = HEADER_SIZE + COUNT_SIZE

NAME_FIELD_SIZE = 56
TOC_RECORD_SIZE = NAME_FIELD_SIZE + 4 + 4 + 4  # name, size, crc32, start

MAX_NAME_BYTES = NAME_FIELD_SIZE - 1

MAX_UINT32 = 0xFFFFFFFF


# Entry ordering modes for encode
ORDER_ORDINAL = "ordinal"  # one case-insensitive ordinal order for TOC and layout
ORDER_LEGACY = "legacy"    # TOC folds '_' to 'a'; layout uses the ordinal order
ORDER_MODES = (ORDER_ORDINAL, ORDER_LEGACY)


DEFAULT_ENCODING = "utf-8"


def content_offset(count: int) -> int:
    """Absolute offset of the first content block for an archive of ``count`` entries."""
    return TOC_OFFSET + TOC_RECORD_SIZE * count
