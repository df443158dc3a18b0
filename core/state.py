from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from core import transforms
from core.config import EditorSettings
from core.errors import EmptyHistoryError, ImageIOError
from core.io import RasterFormat, format_for_path, load_raster, save_raster
from core.logger import get_logger
from core.raster import RasterBuffer
from core.selection import CropRegion

_logger = get_logger("state")


@dataclass
class SaveResult:
    ok: bool
    path: str
    error: Optional[ImageIOError] = None

    def __bool__(self) -> bool:
        return self.ok


@dataclass
class OpenResult:
    state: Optional["ProjectState"]
    path: str
    error: Optional[ImageIOError] = None

    @property
    def ok(self) -> bool:
        return self.state is not None

    def __bool__(self) -> bool:
        return self.ok


class ProjectState:
    """
    One opened image and its editing history.

    Every edit replaces the current buffer with a new one produced by
    ``core.transforms``; the replaced buffer goes onto the undo stack and the
    redo stack is dropped. ``_changes_since_save`` moves +1 on edit/redo and
    -1 on undo, so stepping back to the saved point reads as clean again.
    """

    def __init__(
        self,
        buffer: RasterBuffer,
        path: str | Path,
        settings: Optional[EditorSettings] = None,
    ):
        self.settings = settings or EditorSettings()
        self._current = buffer
        self._path = Path(path)
        self._format = format_for_path(self._path)
        self._undo_stack: List[RasterBuffer] = []
        self._redo_stack: List[RasterBuffer] = []
        self._changes_since_save = 0
        # False once the saved buffer has fallen off both stacks.
        self._saved_state_reachable = True

    @classmethod
    def from_file(cls, path: str | Path, settings: Optional[EditorSettings] = None) -> "ProjectState":
        return cls(load_raster(path), path, settings)

    # ---- Accessors ----
    @property
    def path(self) -> Path:
        return self._path

    @property
    def name(self) -> str:
        return self._path.name

    @property
    def extension(self) -> str:
        return self._path.suffix.lower().lstrip(".")

    @property
    def raster_format(self) -> RasterFormat:
        return self._format

    @property
    def current(self) -> RasterBuffer:
        return self._current

    def get_current_buffer(self) -> RasterBuffer:
        return self._current

    def get_dimensions(self) -> Tuple[int, int]:
        return self._current.size

    @property
    def width(self) -> int:
        return self._current.width

    @property
    def height(self) -> int:
        return self._current.height

    @property
    def undo_depth(self) -> int:
        return len(self._undo_stack)

    @property
    def redo_depth(self) -> int:
        return len(self._redo_stack)

    def can_undo(self) -> bool:
        return bool(self._undo_stack)

    def can_redo(self) -> bool:
        return bool(self._redo_stack)

    def has_unsaved_changes(self) -> bool:
        return (not self._saved_state_reachable) or self._changes_since_save != 0

    # ---- Edits ----
    def rotate_right(self) -> RasterBuffer:
        return self._apply_edit("rotate right", transforms.rotate_right)

    def rotate_left(self) -> RasterBuffer:
        return self._apply_edit("rotate left", transforms.rotate_left)

    def flip_horizontal(self) -> RasterBuffer:
        return self._apply_edit("flip horizontal", transforms.flip_horizontal)

    def flip_vertical(self) -> RasterBuffer:
        return self._apply_edit("flip vertical", transforms.flip_vertical)

    def crop(self, x: int, y: int, width: int, height: int) -> RasterBuffer:
        return self._apply_edit("crop", transforms.crop, x, y, width, height)

    def crop_region(self, region: CropRegion) -> RasterBuffer:
        return self.crop(region.x, region.y, region.width, region.height)

    def resize(self, scale: float) -> RasterBuffer:
        return self._apply_edit("resize", transforms.resize, scale)

    def adjust_brightness_contrast(self, brightness_offset: float, contrast_scale: float) -> RasterBuffer:
        return self._apply_edit(
            "brightness/contrast",
            transforms.adjust_brightness_contrast,
            brightness_offset,
            contrast_scale,
        )

    def preview_brightness_contrast(self, brightness_offset: float, contrast_scale: float) -> RasterBuffer:
        return transforms.adjust_brightness_contrast(self._current, brightness_offset, contrast_scale)

    def preview_dimensions(self, scale: float) -> Tuple[int, int]:
        return transforms.resized_dimensions(self.width, self.height, scale)

    def can_resize(self, scale: float) -> bool:
        if scale <= 0 or scale == 1:
            return False
        new_w, new_h = self.preview_dimensions(scale)
        return new_w >= 1 and new_h >= 1

    def _apply_edit(self, label: str, op: Callable[..., RasterBuffer], *args) -> RasterBuffer:
        # Nothing is touched until the transform has succeeded.
        new_buffer = op(self._current, *args)

        if self._redo_stack and self._changes_since_save < 0:
            # The saved buffer sits on the redo stack that is about to go away.
            self._saved_state_reachable = False
        self._redo_stack.clear()

        self._undo_stack.append(self._current)
        limit = self.settings.history_limit
        if limit and len(self._undo_stack) > limit:
            self._undo_stack.pop(0)

        self._current = new_buffer
        self._changes_since_save += 1
        if self._changes_since_save > len(self._undo_stack):
            self._saved_state_reachable = False

        _logger.debug(
            "%s -> %dx%d (undo=%d)", label, new_buffer.width, new_buffer.height, len(self._undo_stack)
        )
        return new_buffer

    # ---- History ----
    def undo(self) -> RasterBuffer:
        if not self._undo_stack:
            raise EmptyHistoryError("undo")
        self._redo_stack.append(self._current)
        self._current = self._undo_stack.pop()
        self._changes_since_save -= 1
        _logger.debug("undo (undo=%d, redo=%d)", len(self._undo_stack), len(self._redo_stack))
        return self._current

    def redo(self) -> RasterBuffer:
        if not self._redo_stack:
            raise EmptyHistoryError("redo")
        self._undo_stack.append(self._current)
        self._current = self._redo_stack.pop()
        self._changes_since_save += 1
        _logger.debug("redo (undo=%d, redo=%d)", len(self._undo_stack), len(self._redo_stack))
        return self._current

    # ---- Persistence ----
    def save(self) -> SaveResult:
        return self._write(self._path, self._format)

    def save_as(self, path: str | Path) -> SaveResult:
        target = Path(path)
        try:
            fmt = format_for_path(target)
        except ImageIOError as e:
            _logger.error("save as %s refused: %s", target, e)
            return SaveResult(False, str(target), e)
        result = self._write(target, fmt)
        if result.ok:
            self._path = target
            self._format = fmt
        return result

    def _write(self, target: Path, fmt: RasterFormat) -> SaveResult:
        try:
            save_raster(
                self._current,
                target,
                fmt,
                jpeg_quality=self.settings.jpeg_quality,
                background=self.settings.flatten_background,
            )
        except ImageIOError as e:
            _logger.exception("save failed: %s", target)
            return SaveResult(False, str(target), e)
        self._changes_since_save = 0
        self._saved_state_reachable = True
        return SaveResult(True, str(target))


def open_project(path: str | Path, settings: Optional[EditorSettings] = None) -> OpenResult:
    try:
        state = ProjectState.from_file(path, settings)
    except ImageIOError as e:
        _logger.error("open failed: %s", e)
        return OpenResult(None, str(path), e)
    return OpenResult(state, str(path))
