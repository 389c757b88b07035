from __future__ import annotations

import io
import tempfile
import unittest
from pathlib import Path

from bcc.core.archive import DistArchiver, format_from_path, normalize_format
from bcc.core.console import Console


class ArchiveFormatTests(unittest.TestCase):
    def test_normalize_format_aliases(self) -> None:
        self.assertEqual(normalize_format("tar.gz"), "gztar")
        self.assertEqual(normalize_format(" ZST "), "zst")
        with self.assertRaises(ValueError):
            normalize_format("rar")

    def test_format_from_path_prefers_longest_suffix(self) -> None:
        self.assertEqual(format_from_path(Path("game-linux.tar.zst")), "zst")
        self.assertEqual(format_from_path(Path("game.tgz")), "gztar")
        self.assertEqual(format_from_path(Path("game.tar")), "tar")
        with self.assertRaises(ValueError):
            format_from_path(Path("game.7z"))


class DistArchiverTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.source = self.root / "game-linux"
        (self.source / "assets").mkdir(parents=True)
        (self.source / "game").write_bytes(b"binary")
        (self.source / "assets" / "font.png").write_bytes(b"png")
        self.archiver = DistArchiver(Console("none"))

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _assert_unpacks(self, archive: Path) -> None:
        dest = self.root / f"out-{archive.name}"
        self.archiver.unpack(archive, dest)
        self.assertEqual((dest / "game").read_bytes(), b"binary")
        self.assertEqual((dest / "assets" / "font.png").read_bytes(), b"png")

    def test_pack_every_format(self) -> None:
        for suffix in (".tar.zst", ".tar.gz", ".tar", ".zip"):
            with self.subTest(suffix=suffix):
                archive = self.archiver.pack(self.source, self.root / "dist" / f"game{suffix}")
                self.assertTrue(archive.is_file())
                self._assert_unpacks(archive)

    def test_explicit_format_overrides_suffix(self) -> None:
        archive = self.archiver.pack(self.source, self.root / "game.bin", archive_format="gztar")
        dest = self.root / "out"
        self.archiver.unpack(archive, dest, archive_format="tar.gz")
        self.assertTrue((dest / "game").exists())

    def test_refuses_to_overwrite_when_asked(self) -> None:
        target = self.root / "game.zip"
        target.write_bytes(b"old")
        with self.assertRaises(FileExistsError):
            self.archiver.pack(self.source, target, overwrite=False)

    def test_missing_source_directory(self) -> None:
        with self.assertRaises(FileNotFoundError):
            self.archiver.pack(self.root / "missing", self.root / "x.tar")

    def test_dry_run_writes_nothing(self) -> None:
        output = io.StringIO()
        archiver = DistArchiver(Console("info", dry_run=True, stream=output))
        archiver.pack(self.source, self.root / "dist" / "game.tar.zst")
        self.assertFalse((self.root / "dist").exists())
        self.assertIn("[DRY] Would archive", output.getvalue())


if __name__ == "__main__":
    unittest.main()
