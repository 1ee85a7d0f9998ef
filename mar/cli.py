from __future__ import annotations

import os
import sys
import time
import argparse

from typing import List, Optional

from mar.constants import DEFAULT_ENCODING, ORDER_LEGACY, ORDER_ORDINAL
from mar.errors import MarError
from mar.reader import ArchiveReader, safe_target
from mar.table import TablePrinter
from mar.writer import ArchiveWriter, collect_tree


def _next_nonconflicting_path(path: str) -> str:
    if not os.path.lexists(path):
        return path
    base_dir = os.path.dirname(path)
    root, ext = os.path.splitext(os.path.basename(path))
    i = 1
    while True:
        candidate = os.path.join(base_dir, f"{root} ({i}){ext}")
        if not os.path.lexists(candidate):
            return candidate
        i += 1


def cmd_decompress(
    archive: str,
    outdir: str,
    *,
    strict: bool = False,
    encoding: str = DEFAULT_ENCODING,
    exists: str = "overwrite",
    quiet: bool = False,
) -> bool:
    """Extract every entry of an archive into a directory.

    Args:
        archive: Path to a .mar file.
        outdir: Destination directory; created on demand.
        strict: Reject bad magic, out-of-range content and checksum mismatches.
        encoding: Text encoding of the name field.
        exists: Policy for existing destination files: overwrite, skip, rename or fail.
        quiet: Only print start/summary lines.
    """
    with ArchiveReader(archive, strict=strict, encoding=encoding) as r:
        print(f"Decompression of file {archive} started")
        os.makedirs(outdir or ".", exist_ok=True)
        t0 = time.time()
        entries = r.entries()
        total = len(entries)
        written = skipped = renamed = 0
        written_bytes = 0
        for i, e in enumerate(entries, start=1):
            dst = safe_target(outdir, e.name)
            actual_dst = dst
            if os.path.lexists(dst):
                if os.path.isdir(dst) and not os.path.islink(dst):
                    raise RuntimeError(f"Cannot overwrite directory with file: {dst}")
                if exists == "skip":
                    print(f"    skipping: {e.name} (exists)")
                    skipped += 1
                    continue
                elif exists == "rename":
                    actual_dst = _next_nonconflicting_path(dst)
                elif exists == "fail":
                    raise RuntimeError(f"Destination exists: {dst}")
                else:
                    # Replace the link itself, never the file it points to
                    try:
                        os.remove(dst)
                    except FileNotFoundError:
                        pass
            if not quiet:
                print(f"  extracting: {i:>4}/{total:<4} {e.name}")
            r.extract(e, actual_dst)
            if actual_dst != dst:
                print(f"       note: renamed to {actual_dst}")
                renamed += 1
            written += 1
            written_bytes += e.size
    dt = max(0.000001, time.time() - t0)
    print(f"File decompressed to output folder {outdir}")
    print(
        f"Done: extracted {written}/{total} files ({written_bytes} bytes) in {dt:.1f}s; "
        f"skipped={skipped} renamed={renamed}"
    )
    return True


def cmd_compress(
    indir: str,
    archive: str,
    *,
    order: str = ORDER_ORDINAL,
    encoding: str = DEFAULT_ENCODING,
    quiet: bool = False,
) -> bool:
    """Bundle every file below a directory into a new archive.

    Args:
        indir: Directory to pack; archive names are relative to it.
        archive: Output .mar path; parent directories are created on demand.
        order: "ordinal" or "legacy" (historical TOC ordering).
        encoding: Text encoding of the name field.
        quiet: Only print start/summary lines.
    """
    tree = collect_tree(indir)
    print(f"Compression of folder {indir} started")
    with ArchiveWriter(archive, order=order, encoding=encoding) as w:
        for arc, full in tree:
            w.add_file(arc, full)
            if not quiet:
                print(f"      adding: {arc}")
        records = w.finalize()
    total_bytes = sum(rec.size for rec in records)
    print(f"Folder compressed to output file {archive}")
    print(f"Done: {len(records)} files, {total_bytes} bytes of content")
    return True


def cmd_info(archive: str, *, strict: bool = False, encoding: str = DEFAULT_ENCODING) -> bool:
    """Print the table of contents as an aligned table."""
    with ArchiveReader(archive, strict=strict, encoding=encoding) as r:
        records = r.list()
    table = TablePrinter("FileName", "Size", "CRC32", "StartPos")
    for rec in records:
        table.add_row(rec.name, rec.size, rec.crc32, rec.start_position)
    table.print()
    print(f"Total number of files: {len(records)}")
    return True


def cmd_list(archive: str, *, encoding: str = DEFAULT_ENCODING) -> bool:
    """List archive entries, one ``size<TAB>name`` line each."""
    with ArchiveReader(archive, encoding=encoding) as r:
        for rec in r.list():
            print(f"{rec.size}\t{rec.name}")
    return True


def cmd_verify(archive: str, *, encoding: str = DEFAULT_ENCODING) -> bool:
    """Check magic, bounds, checksums and block layout.

    Returns:
        True when no problems were found.
    """
    with ArchiveReader(archive, encoding=encoding) as r:
        ok = r.verify()
        problems = list(r.problems)
    print("OK" if ok else "FAIL")
    for p in problems:
        print("  " + p)
    return ok


def main(argv: List[str] | None = None):
    ap = argparse.ArgumentParser(
        prog="mar",
        description="MAR (MSN Archive) tool: decompress, compress and inspect .mar files",
    )
    sub = ap.add_subparsers(dest="cmd", required=True)

    ap_dec = sub.add_parser("decompress", aliases=["d"], help="Extract an archive into a folder")
    ap_dec.add_argument("-i", "--input", required=True, help="Input .mar path")
    ap_dec.add_argument("-o", "--output", required=True, help="Output folder")
    ap_dec.add_argument("--strict", action="store_true", help="Verify magic, bounds and CRC32 while extracting")
    ap_dec.add_argument("--encoding", default=DEFAULT_ENCODING, help=f"Name encoding (default {DEFAULT_ENCODING})")
    ap_dec.add_argument(
        "--exists",
        choices=["overwrite", "skip", "rename", "fail"],
        default="overwrite",
        help="What to do if a destination file exists (default: overwrite)",
    )
    ap_dec.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_comp = sub.add_parser("compress", aliases=["c"], help="Pack a folder into an archive")
    ap_comp.add_argument("-i", "--input", required=True, help="Input folder")
    ap_comp.add_argument("-o", "--output", required=True, help="Output .mar path")
    ap_comp.add_argument(
        "--legacy-order",
        action="store_true",
        help="Order the TOC the way the historical tool did ('_' sorts as 'a'); content stays in name order",
    )
    ap_comp.add_argument("--encoding", default=DEFAULT_ENCODING, help=f"Name encoding (default {DEFAULT_ENCODING})")
    ap_comp.add_argument("--quiet", help="limit outputs to summaries only", action="store_true")

    ap_info = sub.add_parser("info", aliases=["i"], help="Show the table of contents")
    ap_info.add_argument("archive", help="Archive path")
    ap_info.add_argument("--strict", action="store_true", help="Verify magic and content bounds")
    ap_info.add_argument("--encoding", default=DEFAULT_ENCODING, help=f"Name encoding (default {DEFAULT_ENCODING})")

    ap_list = sub.add_parser("list", help="List archive contents")
    ap_list.add_argument("archive", help="Archive path")
    ap_list.add_argument("--encoding", default=DEFAULT_ENCODING, help=f"Name encoding (default {DEFAULT_ENCODING})")

    ap_verify = sub.add_parser("verify", help="Verify archive integrity")
    ap_verify.add_argument("archive", help="Archive path")
    ap_verify.add_argument("--encoding", default=DEFAULT_ENCODING, help=f"Name encoding (default {DEFAULT_ENCODING})")

    args = ap.parse_args(argv)
    try:
        if args.cmd in ("decompress", "d"):
            cmd_decompress(
                args.input,
                args.output,
                strict=args.strict,
                encoding=args.encoding,
                exists=args.exists,
                quiet=args.quiet,
            )
        elif args.cmd in ("compress", "c"):
            cmd_compress(
                args.input,
                args.output,
                order=ORDER_LEGACY if args.legacy_order else ORDER_ORDINAL,
                encoding=args.encoding,
                quiet=args.quiet,
            )
        elif args.cmd in ("info", "i"):
            cmd_info(args.archive, strict=args.strict, encoding=args.encoding)
        elif args.cmd == "list":
            cmd_list(args.archive, encoding=args.encoding)
        elif args.cmd == "verify":
            ok = cmd_verify(args.archive, encoding=args.encoding)
            sys.exit(0 if ok else 1)
        else:
            raise RuntimeError("Unknown command")
    except (MarError, OSError, ValueError, LookupError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    main()
