from __future__ import annotations

import argparse
import os
import sys
from typing import Optional

from mar.reader import ArchiveReader
from mar.errors import MarError


def _flip_byte(path: str, offset: int, xor_val: int = 0xFF) -> None:
    if offset < 0:
        raise ValueError("Offset must be non-negative")
    with open(path, "r+b") as f:
        f.seek(offset)
        b = f.read(1)
        if not b:
            raise ValueError("Offset beyond end of file")
        f.seek(offset)
        f.write(bytes([b[0] ^ (xor_val & 0xFF)]))
        f.flush()
        os.fsync(f.fileno())


def cmd_by_offset(args: argparse.Namespace) -> None:
    _flip_byte(args.archive, args.offset, xor_val=args.xor)
    print(f"Flipped 1 byte at offset {args.offset}")


def cmd_entry(args: argparse.Namespace) -> None:
    with ArchiveReader(args.archive) as r:
        rec = next((rec for rec in r.list() if rec.name == args.name), None)
    if rec is None:
        raise ValueError(f"No entry named {args.name!r}")
    if args.within < 0 or args.within >= rec.size:
        raise ValueError(f"--within must be within entry size (0..{rec.size - 1})")
    off = rec.start_position + args.within
    _flip_byte(args.archive, off, xor_val=args.xor)
    print(f"Flipped 1 byte in {rec.name} at archive offset {off}")


def cmd_truncate(args: argparse.Namespace) -> None:
    if args.size < 0:
        raise ValueError("Size must be non-negative")
    with open(args.archive, "r+b") as f:
        f.truncate(args.size)
    print(f"Truncated archive to {args.size} bytes")


def cmd_magic(args: argparse.Namespace) -> None:
    magic = args.value.encode("ascii")
    if len(magic) != 4:
        raise ValueError("Magic must be exactly 4 ASCII characters")
    with open(args.archive, "r+b") as f:
        f.write(magic)
    print(f"Replaced magic with {magic!r}")


def main(argv: Optional[list[str]] = None) -> None:
    ap = argparse.ArgumentParser(prog="mar.corrupt", description="Corrupt MAR archives for testing")
    sub = ap.add_subparsers(dest="cmd", required=True)

    p_off = sub.add_parser("by-offset", help="Flip one byte at an absolute archive offset")
    p_off.add_argument("archive", help="Path to .mar archive")
    p_off.add_argument("--offset", type=int, required=True, help="Absolute byte offset in archive")
    p_off.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_off.set_defaults(func=cmd_by_offset)

    p_entry = sub.add_parser("entry", help="Flip a byte inside a named entry's content")
    p_entry.add_argument("archive", help="Path to .mar archive")
    p_entry.add_argument("--name", required=True, help="Archive name of the entry")
    p_entry.add_argument("--within", type=int, default=0, help="Byte offset within the entry (default 0)")
    p_entry.add_argument("--xor", type=lambda x: int(x, 0), default=0xFF, help="XOR mask to apply (default 0xFF)")
    p_entry.set_defaults(func=cmd_entry)

    p_trunc = sub.add_parser("truncate", help="Cut the archive to a given length")
    p_trunc.add_argument("archive", help="Path to .mar archive")
    p_trunc.add_argument("--size", type=int, required=True, help="New length in bytes")
    p_trunc.set_defaults(func=cmd_truncate)

    p_magic = sub.add_parser("magic", help="Overwrite the 4-byte magic")
    p_magic.add_argument("archive", help="Path to .mar archive")
    p_magic.add_argument("--value", default="XXXX", help="Replacement magic (default XXXX)")
    p_magic.set_defaults(func=cmd_magic)

    args = ap.parse_args(argv)
    try:
        args.func(args)
    except (MarError, OSError, ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
