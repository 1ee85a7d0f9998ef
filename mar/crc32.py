"""
CRC-32 (IEEE 802.3, reflected) implementation with a precomputed table.
Same polynomial and bit order as zip/gzip, so results match ``zlib.crc32``.
"""

_POLY = 0xEDB88320


def _make_table():
    tbl = []
    for n in range(256):
        c = n
        for _ in range(8):
            if c & 1:
                c = (c >> 1) ^ _POLY
            else:
                c >>= 1
        tbl.append(c & 0xFFFFFFFF)
    return tuple(tbl)


_TABLE = _make_table()


def crc32(data: bytes, crc: int = 0) -> int:
    c = (~crc) & 0xFFFFFFFF
    for b in data:
        c = _TABLE[(c ^ b) & 0xFF] ^ (c >> 8)
    return (~c) & 0xFFFFFFFF
