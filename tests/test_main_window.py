from __future__ import annotations

import os
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest
from unittest import mock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PIL import Image
from PySide6.QtWidgets import QApplication

from ui.main_window import MainWindow


class PhotoReelStepTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls) -> None:
        cls._app = QApplication.instance() or QApplication([])

    def setUp(self) -> None:
        self._td = TemporaryDirectory()
        self.root = Path(self._td.name)
        Image.new("RGB", (8, 4), (1, 2, 3)).save(self.root / "a.png")
        (self.root / "b.png").write_bytes(b"not an image")
        Image.new("RGB", (4, 8), (4, 5, 6)).save(self.root / "c.png")
        self.window = MainWindow()

    def tearDown(self) -> None:
        self.window.deleteLater()
        self._td.cleanup()

    def test_failed_open_keeps_reel_on_shown_image(self) -> None:
        self.assertTrue(self.window.open_path(str(self.root / "a.png")))
        with mock.patch("ui.main_window.QMessageBox.critical") as critical:
            self.window.next_photo()
        critical.assert_called_once()
        self.assertEqual(self.window.project.name, "a.png")
        self.assertEqual(self.window._reel.current.name, "a.png")

    def test_successful_step_moves_reel(self) -> None:
        (self.root / "b.png").unlink()
        self.window.open_path(str(self.root / "a.png"))
        self.window.next_photo()
        self.assertEqual(self.window.project.name, "c.png")
        self.assertEqual(self.window._reel.current.name, "c.png")
        self.assertFalse(self.window._reel.has_next())


if __name__ == "__main__":
    unittest.main()
