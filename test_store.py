from __future__ import annotations

import os
import tempfile
import unittest
from pathlib import Path

from mar import codec
from mar.constants import ORDER_LEGACY
from mar.errors import ChecksumMismatch, InputNotFound, UnsafePathError
from mar.reader import ArchiveReader, safe_target
from mar.writer import ArchiveWriter, collect_tree


def _create_sample_files(base: Path):
    (base / "docs").mkdir()
    (base / "docs" / "a.txt").write_text("hello world\n" * 50, encoding="utf-8")
    (base / "docs" / "b.bin").write_bytes(os.urandom(4096))
    (base / "notes.md").write_text("# Title\nSome content\n", encoding="utf-8")
    (base / "empty").mkdir()


class StoreTests(unittest.TestCase):
    def run_with_tmpdir(self, func):
        with tempfile.TemporaryDirectory() as tmp:
            func(Path(tmp))

    def test_collect_tree(self):
        def scenario(tmp_path: Path):
            src = tmp_path / "src"
            src.mkdir()
            _create_sample_files(src)
            found = collect_tree(str(src))
            self.assertEqual([arc for arc, _ in found], ["docs/a.txt", "docs/b.bin", "notes.md"])
            for arc, full in found:
                self.assertEqual(Path(full), src / arc)

        self.run_with_tmpdir(scenario)

    def test_collect_tree_missing(self):
        with self.assertRaises(InputNotFound):
            collect_tree("/nonexistent/mar/input")

    def test_roundtrip_and_verify(self):
        def scenario(tmp_path: Path):
            src = tmp_path / "src"
            src.mkdir()
            _create_sample_files(src)
            archive = tmp_path / "out" / "sample.mar"
            with ArchiveWriter(str(archive)) as w:
                self.assertEqual(w.add_tree(str(src)), 3)
                records = w.finalize()
            self.assertTrue(archive.exists())
            self.assertEqual([r.name for r in records], ["docs/a.txt", "docs/b.bin", "notes.md"])

            with ArchiveReader(str(archive), strict=True) as r:
                self.assertEqual([rec.name for rec in r.list()], [rec.name for rec in records])
                self.assertTrue(r.verify())
                self.assertEqual(r.problems, [])
                for e in r.entries():
                    self.assertEqual(e.data, (src / e.name).read_bytes())

        self.run_with_tmpdir(scenario)

    def test_writer_finalizes_on_exit(self):
        def scenario(tmp_path: Path):
            archive = tmp_path / "auto.mar"
            with ArchiveWriter(str(archive), order=ORDER_LEGACY) as w:
                w.add_bytes("a_b.txt", b"11")
                w.add_bytes("abc.txt", b"222")
            names = [rec.name for rec in codec.read_toc(archive.read_bytes())]
            self.assertEqual(names, ["a_b.txt", "abc.txt"])
            with self.assertRaises(RuntimeError):
                w.finalize()

        self.run_with_tmpdir(scenario)

    def test_writer_prefix(self):
        def scenario(tmp_path: Path):
            src = tmp_path / "src"
            src.mkdir()
            _create_sample_files(src)
            archive = tmp_path / "prefixed.mar"
            with ArchiveWriter(str(archive)) as w:
                w.add_tree(str(src), prefix="skin")
            with ArchiveReader(str(archive)) as r:
                self.assertTrue(all(rec.name.startswith("skin/") for rec in r.list()))

        self.run_with_tmpdir(scenario)

    def test_writer_rejects_unknown_order(self):
        with self.assertRaises(ValueError):
            ArchiveWriter("unused.mar", order="bogus")

    def test_reader_missing_file(self):
        with self.assertRaises(InputNotFound):
            ArchiveReader("/nonexistent/archive.mar").open()
        with self.assertRaises(FileNotFoundError):
            ArchiveReader("/nonexistent/archive.mar").open()

    def test_reader_requires_open(self):
        r = ArchiveReader("unused.mar")
        with self.assertRaises(RuntimeError):
            r.entries()

    def test_extract(self):
        def scenario(tmp_path: Path):
            archive = tmp_path / "x.mar"
            archive.write_bytes(codec.encode([("deep/nested/file.txt", b"payload")]))
            out = tmp_path / "out"
            with ArchiveReader(str(archive)) as r:
                for e in r.entries():
                    r.extract(e, safe_target(str(out), e.name))
            self.assertEqual((out / "deep" / "nested" / "file.txt").read_bytes(), b"payload")

        self.run_with_tmpdir(scenario)

    def test_strict_reader_detects_corruption(self):
        def scenario(tmp_path: Path):
            archive = tmp_path / "bad.mar"
            blob = bytearray(codec.encode([("a.txt", b"abc")]))
            blob[-1] ^= 0x20
            archive.write_bytes(bytes(blob))
            with ArchiveReader(str(archive)) as r:
                self.assertEqual(r.entries()[0].data, b"abC")
                self.assertFalse(r.verify())
                self.assertTrue(r.problems)
            with ArchiveReader(str(archive), strict=True) as r:
                with self.assertRaises(ChecksumMismatch):
                    r.entries()

        self.run_with_tmpdir(scenario)

    def test_safe_target(self):
        def scenario(tmp_path: Path):
            root = str(tmp_path)
            self.assertEqual(safe_target(root, "a/b.txt"), os.path.join(root, "a", "b.txt"))
            # leading slashes are stripped, so absolute names stay under the root
            self.assertEqual(safe_target(root, "/etc/passwd"), os.path.join(root, "etc", "passwd"))
            for bad in ("../evil.txt", "a/../../evil.txt", ""):
                with self.assertRaises(UnsafePathError):
                    safe_target(root, bad)

        self.run_with_tmpdir(scenario)

    def test_safe_target_refuses_symlinked_folder(self):
        if not hasattr(os, "symlink"):
            self.skipTest("symlinks not supported")

        def scenario(tmp_path: Path):
            outside = tmp_path / "outside"
            outside.mkdir()
            out = tmp_path / "out"
            out.mkdir()
            try:
                os.symlink(str(outside), out / "linked", target_is_directory=True)
            except OSError:
                self.skipTest("symlinks not permitted")
            with self.assertRaises(UnsafePathError):
                safe_target(str(out), "linked/evil.txt")
            # a link that stays inside the output folder is fine
            (out / "real").mkdir()
            os.symlink(str(out / "real"), out / "alias", target_is_directory=True)
            self.assertEqual(safe_target(str(out), "alias/ok.txt"), os.path.join(str(out), "alias", "ok.txt"))

        self.run_with_tmpdir(scenario)


if __name__ == "__main__":
    unittest.main()
