from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

from core.photo_reel import PhotoReel


class PhotoReelTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = TemporaryDirectory()
        self.root = Path(self._td.name)
        for name in ("c.png", "a.jpg", "b.GIF", "notes.txt", "d.bmp"):
            (self.root / name).write_bytes(b"")
        (self.root / "sub.png").mkdir()

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_lists_supported_files_sorted(self) -> None:
        reel = PhotoReel(self.root / "c.png")
        self.assertEqual([p.name for p in reel.images], ["a.jpg", "b.GIF", "c.png", "d.bmp"])
        self.assertEqual(reel.position, 2)
        self.assertEqual(reel.current.name, "c.png")

    def test_navigation_stops_at_ends(self) -> None:
        reel = PhotoReel(self.root / "a.jpg")
        self.assertFalse(reel.has_previous())
        self.assertIsNone(reel.previous())
        self.assertEqual(reel.next().name, "b.GIF")
        self.assertEqual(reel.next().name, "c.png")
        self.assertEqual(reel.next().name, "d.bmp")
        self.assertFalse(reel.has_next())
        self.assertIsNone(reel.next())
        self.assertEqual(reel.previous().name, "c.png")
        self.assertTrue(reel.has_next())

    def test_peek_does_not_move(self) -> None:
        reel = PhotoReel(self.root / "b.GIF")
        self.assertEqual(reel.peek_next().name, "c.png")
        self.assertEqual(reel.peek_previous().name, "a.jpg")
        self.assertEqual(reel.current.name, "b.GIF")
        reel.next()
        reel.next()
        self.assertIsNone(reel.peek_next())

    def test_empty_directory(self) -> None:
        with TemporaryDirectory() as td:
            reel = PhotoReel(Path(td) / "gone.png")
        self.assertEqual(len(reel), 0)
        self.assertIsNone(reel.current)
        self.assertFalse(reel.has_next())
        self.assertFalse(reel.has_previous())


if __name__ == "__main__":
    unittest.main()
