from __future__ import annotations

from pathlib import Path
from tempfile import TemporaryDirectory
import unittest

import numpy as np
from PIL import Image

from core.config import EditorSettings
from core.errors import EmptyHistoryError, OutOfBoundsError, UnsupportedFormatError
from core.raster import RasterBuffer
from core.selection import CropRegion
from core.state import ProjectState, open_project


def _write_png(folder: str, name: str = "photo.png", size=(100, 50), mode: str = "RGB") -> Path:
    w, h = size
    ys, xs = np.mgrid[0:h, 0:w]
    arr = np.zeros((h, w, 3), dtype=np.uint8)
    arr[..., 0] = (xs * 2) % 256
    arr[..., 1] = (ys * 5) % 256
    arr[..., 2] = 90
    img = Image.fromarray(arr, mode="RGB")
    if mode == "RGBA":
        img = img.convert("RGBA")
    path = Path(folder) / name
    img.save(path)
    return path


class ProjectStateHistoryTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = TemporaryDirectory()
        self.path = _write_png(self._td.name)
        self.project = ProjectState.from_file(self.path)
        self.original = self.project.get_current_buffer()

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_fresh_project(self) -> None:
        self.assertEqual(self.project.get_dimensions(), (100, 50))
        self.assertFalse(self.project.can_undo())
        self.assertFalse(self.project.can_redo())
        self.assertFalse(self.project.has_unsaved_changes())
        self.assertEqual(self.project.extension, "png")
        self.assertEqual(self.project.name, "photo.png")

    def test_resize_undo_redo_scenario(self) -> None:
        self.project.resize(0.5)
        self.assertEqual(self.project.get_dimensions(), (50, 25))
        self.project.undo()
        self.assertEqual(self.project.get_dimensions(), (100, 50))
        self.assertEqual(self.project.get_current_buffer(), self.original)
        self.project.redo()
        self.assertEqual(self.project.get_dimensions(), (50, 25))

    def test_n_undos_restore_original(self) -> None:
        self.project.rotate_right()
        self.project.flip_horizontal()
        self.project.crop(5, 5, 20, 10)
        self.project.adjust_brightness_contrast(30, 1.2)
        self.project.rotate_left()
        for _ in range(5):
            self.project.undo()
        self.assertEqual(self.project.get_current_buffer(), self.original)
        self.assertFalse(self.project.can_undo())
        self.assertEqual(self.project.redo_depth, 5)

    def test_undo_then_redo_restores_previous(self) -> None:
        self.project.flip_vertical()
        self.project.rotate_right()
        before = self.project.get_current_buffer()
        self.project.undo()
        self.project.redo()
        self.assertEqual(self.project.get_current_buffer(), before)

    def test_new_edit_clears_redo(self) -> None:
        self.project.flip_vertical()
        self.project.undo()
        self.assertTrue(self.project.can_redo())
        self.project.flip_horizontal()
        self.assertFalse(self.project.can_redo())
        with self.assertRaises(EmptyHistoryError):
            self.project.redo()

    def test_empty_history_errors(self) -> None:
        with self.assertRaises(EmptyHistoryError):
            self.project.undo()
        with self.assertRaises(EmptyHistoryError):
            self.project.redo()

    def test_failed_edit_leaves_state_untouched(self) -> None:
        self.project.flip_vertical()
        self.project.undo()
        with self.assertRaises(OutOfBoundsError):
            self.project.crop(90, 0, 20, 10)
        self.assertEqual(self.project.get_current_buffer(), self.original)
        self.assertEqual(self.project.undo_depth, 0)
        self.assertEqual(self.project.redo_depth, 1)
        self.assertFalse(self.project.has_unsaved_changes())

    def test_crop_region(self) -> None:
        self.project.crop_region(CropRegion(10, 5, 30, 20))
        self.assertEqual(self.project.get_dimensions(), (30, 20))

    def test_preview_does_not_mutate(self) -> None:
        preview = self.project.preview_brightness_contrast(50, 1.5)
        self.assertNotEqual(preview, self.original)
        self.assertEqual(self.project.get_current_buffer(), self.original)
        self.assertFalse(self.project.can_undo())
        self.assertFalse(self.project.has_unsaved_changes())

    def test_preview_dimensions_and_can_resize(self) -> None:
        self.assertEqual(self.project.preview_dimensions(0.5), (50, 25))
        self.assertTrue(self.project.can_resize(0.5))
        self.assertFalse(self.project.can_resize(1.0))
        self.assertFalse(self.project.can_resize(0.01))
        self.assertEqual(self.project.get_dimensions(), (100, 50))

    def test_history_limit_drops_oldest(self) -> None:
        project = ProjectState.from_file(self.path, EditorSettings(history_limit=2))
        for _ in range(3):
            project.flip_horizontal()
        self.assertEqual(project.undo_depth, 2)
        project.undo()
        project.undo()
        self.assertFalse(project.can_undo())
        # The saved state fell off the stack, so the document cannot read as clean.
        self.assertTrue(project.has_unsaved_changes())


class ProjectStateDirtyTrackingTests(unittest.TestCase):
    def setUp(self) -> None:
        self._td = TemporaryDirectory()
        self.path = _write_png(self._td.name)
        self.project = ProjectState.from_file(self.path)

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_undo_back_to_saved_point_is_clean(self) -> None:
        self.project.rotate_right()
        self.assertTrue(self.project.has_unsaved_changes())
        self.project.undo()
        self.assertFalse(self.project.has_unsaved_changes())
        self.project.redo()
        self.assertTrue(self.project.has_unsaved_changes())

    def test_save_resets_and_undo_marks_dirty(self) -> None:
        self.project.flip_horizontal()
        result = self.project.save()
        self.assertTrue(result.ok)
        self.assertFalse(self.project.has_unsaved_changes())
        self.project.undo()
        self.assertTrue(self.project.has_unsaved_changes())
        self.project.redo()
        self.assertFalse(self.project.has_unsaved_changes())

    def test_save_writes_current_buffer(self) -> None:
        self.project.crop(0, 0, 40, 30)
        self.assertTrue(self.project.save())
        reopened = ProjectState.from_file(self.path)
        self.assertEqual(reopened.get_dimensions(), (40, 30))
        self.assertEqual(reopened.get_current_buffer(), self.project.get_current_buffer())

    def test_edit_after_undo_past_save_stays_dirty(self) -> None:
        self.project.flip_horizontal()
        self.project.save()
        self.project.undo()
        self.project.flip_vertical()
        # Counter is back to zero but the saved buffer was on the dropped redo stack.
        self.assertTrue(self.project.has_unsaved_changes())
        self.project.undo()
        self.assertTrue(self.project.has_unsaved_changes())

    def test_save_as_switches_path_and_format(self) -> None:
        self.project.rotate_left()
        target = Path(self._td.name) / "copy.JPG"
        result = self.project.save_as(target)
        self.assertTrue(result.ok)
        self.assertEqual(self.project.path, target)
        self.assertEqual(self.project.raster_format.name, "jpeg")
        self.assertFalse(self.project.has_unsaved_changes())
        self.assertTrue(target.exists())

    def test_save_as_unsupported_extension_reports_failure(self) -> None:
        self.project.rotate_left()
        result = self.project.save_as(Path(self._td.name) / "copy.tiff")
        self.assertFalse(result)
        self.assertIsInstance(result.error, UnsupportedFormatError)
        self.assertEqual(self.project.path, self.path)
        self.assertTrue(self.project.has_unsaved_changes())

    def test_save_failure_keeps_state(self) -> None:
        self.project.flip_vertical()
        missing_dir = Path(self._td.name) / "missing" / "out.png"
        result = self.project.save_as(missing_dir)
        self.assertFalse(result.ok)
        self.assertIsNotNone(result.error)
        self.assertEqual(self.project.path, self.path)
        self.assertTrue(self.project.has_unsaved_changes())
        self.assertTrue(self.project.can_undo())


class OpenProjectTests(unittest.TestCase):
    def test_open_reports_unsupported_format(self) -> None:
        with TemporaryDirectory() as td:
            path = Path(td) / "notes.txt"
            path.write_text("hello", encoding="utf-8")
            result = open_project(path)
        self.assertFalse(result.ok)
        self.assertIsNone(result.state)
        self.assertIsInstance(result.error, UnsupportedFormatError)

    def test_open_success(self) -> None:
        with TemporaryDirectory() as td:
            path = _write_png(td, size=(12, 8), mode="RGBA")
            result = open_project(path)
        self.assertTrue(result.ok)
        self.assertEqual(result.state.get_dimensions(), (12, 8))
        self.assertEqual(result.state.current.pixel_format, "RGBA")

    def test_buffer_handed_out_is_not_writable(self) -> None:
        with TemporaryDirectory() as td:
            project = ProjectState.from_file(_write_png(td, size=(4, 4)))
        pixels = project.get_current_buffer().pixels()
        with self.assertRaises(ValueError):
            pixels[0, 0, 0] = 1
        img = project.get_current_buffer().to_image()
        img.putpixel((0, 0), (1, 2, 3))
        self.assertNotEqual(project.get_current_buffer().pixels()[0, 0].tolist(), [1, 2, 3])
        self.assertIsInstance(project.current, RasterBuffer)


if __name__ == "__main__":
    unittest.main()
