from __future__ import annotations
from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QAction, QImage, QKeySequence, QIcon
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QFileDialog, QVBoxLayout, QHBoxLayout, QLabel,
    QSlider, QPushButton, QMessageBox, QDockWidget, QInputDialog, QGroupBox,
)

from core.config import EditorSettings
from core.errors import EditorError
from core.io import SUPPORTED_EXTENSIONS
from core.logger import get_logger
from core.photo_reel import PhotoReel
from core.raster import RasterBuffer
from core.selection import CropRegion
from core.state import ProjectState, open_project
from ui.canvas_widget import CanvasWidget

_logger = get_logger("ui")

_OPEN_FILTER = "Images ({})".format(" ".join(f"*{ext}" for ext in SUPPORTED_EXTENSIONS))
_SAVE_FILTERS = "PNG (*.png);;JPG (*.jpg *.jpeg);;BMP (*.bmp);;GIF (*.gif)"


def raster_to_qimage(buf: RasterBuffer) -> QImage:
    img = buf.to_image().convert("RGBA")
    w, h = img.size
    data = img.tobytes("raw", "RGBA")
    qimg = QImage(data, w, h, QImage.Format_RGBA8888)
    # Important: keep a copy because Python-owned bytes may be freed
    return qimg.copy()


class MainWindow(QMainWindow):
    def __init__(self, settings: Optional[EditorSettings] = None, logo_path: Optional[Path] = None):
        super().__init__()
        if logo_path is not None and logo_path.exists():
            self.setWindowIcon(QIcon(str(logo_path)))
        self.settings = settings or EditorSettings()
        self.project: Optional[ProjectState] = None
        self._reel: Optional[PhotoReel] = None
        self._pending_crop: Optional[CropRegion] = None

        self.canvas = CanvasWidget(on_crop_selected=self._on_crop_selected)
        central = QWidget()
        lay = QVBoxLayout()
        lay.addWidget(self.canvas)
        central.setLayout(lay)
        self.setCentralWidget(central)

        self._build_menu()
        self._build_adjust_dock()

        self.setAcceptDrops(True)
        self.resize(1100, 750)
        self._update_ui()

    # ---------------------------
    # Menu / Actions
    # ---------------------------
    def _action(self, text: str, slot, shortcut=None) -> QAction:
        act = QAction(text, self)
        if shortcut is not None:
            act.setShortcut(shortcut)
        act.triggered.connect(slot)
        return act

    def _build_menu(self) -> None:
        open_act = self._action("Open…", self.open_file, QKeySequence.StandardKey.Open)
        self._act_save = self._action("Save", self.save, QKeySequence.StandardKey.Save)
        self._act_save_as = self._action("Save As…", self.save_as, QKeySequence.StandardKey.SaveAs)
        self._act_prev = self._action("Previous Photo", self.previous_photo, "Left")
        self._act_next = self._action("Next Photo", self.next_photo, "Right")
        quit_act = self._action("Quit", self.close, QKeySequence.StandardKey.Quit)

        self._act_undo = self._action("Undo", self._undo, QKeySequence.StandardKey.Undo)
        self._act_redo = self._action("Redo", self._redo, QKeySequence.StandardKey.Redo)

        self._act_rot_r = self._action("Rotate Right", lambda: self._edit("rotate_right"), "R")
        self._act_rot_l = self._action("Rotate Left", lambda: self._edit("rotate_left"), "L")
        self._act_flip_h = self._action("Flip Horizontal", lambda: self._edit("flip_horizontal"), "H")
        self._act_flip_v = self._action("Flip Vertical", lambda: self._edit("flip_vertical"), "V")
        self._act_resize = self._action("Resize…", self._resize)

        self._act_crop_mode = self._action("Crop Mode", self._toggle_crop_mode, "C")
        self._act_crop_mode.setCheckable(True)
        self._act_crop_apply = self._action("Apply Crop", self._apply_crop, "Return")

        mfile = self.menuBar().addMenu("File")
        mfile.addAction(open_act)
        mfile.addAction(self._act_save)
        mfile.addAction(self._act_save_as)
        mfile.addSeparator()
        mfile.addAction(self._act_prev)
        mfile.addAction(self._act_next)
        mfile.addSeparator()
        mfile.addAction(quit_act)

        medit = self.menuBar().addMenu("Edit")
        medit.addAction(self._act_undo)
        medit.addAction(self._act_redo)

        mimage = self.menuBar().addMenu("Image")
        for act in (self._act_rot_r, self._act_rot_l, self._act_flip_h, self._act_flip_v, self._act_resize):
            mimage.addAction(act)
        mimage.addSeparator()
        mimage.addAction(self._act_crop_mode)
        mimage.addAction(self._act_crop_apply)

    # ---------------------------
    # Brightness / contrast dock
    # ---------------------------
    def _build_adjust_dock(self) -> None:
        dock = QDockWidget("Adjust", self)
        dock.setAllowedAreas(Qt.LeftDockWidgetArea | Qt.RightDockWidgetArea)

        group = QGroupBox("Brightness / Contrast")
        v = QVBoxLayout(group)

        self.brightness_slider = QSlider(Qt.Horizontal)
        self.brightness_slider.setRange(-100, 100)
        self.brightness_slider.setValue(0)
        self.brightness_slider.valueChanged.connect(self._preview_adjustments)
        self.brightness_label = QLabel("0")
        self._add_labeled_row(v, "Brightness", self.brightness_slider, self.brightness_label)

        self.contrast_slider = QSlider(Qt.Horizontal)
        self.contrast_slider.setRange(0, 200)
        self.contrast_slider.setValue(100)
        self.contrast_slider.valueChanged.connect(self._preview_adjustments)
        self.contrast_label = QLabel("0")
        self._add_labeled_row(v, "Contrast", self.contrast_slider, self.contrast_label)

        row = QHBoxLayout()
        self.adjust_apply_btn = QPushButton("Apply")
        self.adjust_apply_btn.clicked.connect(self._apply_adjustments)
        self.adjust_cancel_btn = QPushButton("Cancel")
        self.adjust_cancel_btn.clicked.connect(self._cancel_adjustments)
        row.addWidget(self.adjust_apply_btn)
        row.addWidget(self.adjust_cancel_btn)
        v.addLayout(row)
        v.addStretch(1)

        dock.setWidget(group)
        self.addDockWidget(Qt.RightDockWidgetArea, dock)

    def _add_labeled_row(self, layout: QVBoxLayout, label: str, widget: QWidget, value_label: QLabel) -> None:
        row = QHBoxLayout()
        row.addWidget(QLabel(label))
        row.addWidget(widget, 1)
        value_label.setMinimumWidth(32)
        row.addWidget(value_label)
        layout.addLayout(row)

    def _adjust_values(self) -> tuple[float, float]:
        return float(self.brightness_slider.value()), self.contrast_slider.value() / 100.0

    def _reset_adjust_sliders(self) -> None:
        for s, val in ((self.brightness_slider, 0), (self.contrast_slider, 100)):
            s.blockSignals(True)
            s.setValue(val)
            s.blockSignals(False)
        self.brightness_label.setText("0")
        self.contrast_label.setText("0")

    def _preview_adjustments(self, _=None) -> None:
        brightness, contrast = self._adjust_values()
        self.brightness_label.setText(str(int(brightness)))
        self.contrast_label.setText(str(int(round(contrast * 100 - 100))))
        if self.project is None:
            return
        preview = self.project.preview_brightness_contrast(brightness, contrast)
        self.canvas.set_image(raster_to_qimage(preview))

    def _apply_adjustments(self) -> None:
        brightness, contrast = self._adjust_values()
        self._reset_adjust_sliders()
        if brightness == 0 and contrast == 1.0:
            self._refresh_canvas()
            return
        self._edit("adjust_brightness_contrast", brightness, contrast)

    def _cancel_adjustments(self) -> None:
        self._reset_adjust_sliders()
        self._refresh_canvas()

    # ---------------------------
    # File IO
    # ---------------------------
    def open_file(self) -> None:
        if not self._confirm_discard():
            return
        path, _ = QFileDialog.getOpenFileName(self, "Open Image", "", _OPEN_FILTER)
        if not path:
            return
        self.open_path(path)

    def open_path(self, path: str, keep_reel: bool = False) -> bool:
        result = open_project(path, self.settings)
        if not result.ok:
            QMessageBox.critical(self, "Open failed", str(result.error))
            return False
        self.project = result.state
        if not keep_reel:
            self._reel = PhotoReel(path)
        self._leave_crop_mode()
        self._reset_adjust_sliders()
        self._refresh_canvas()
        self._update_ui()
        return True

    def save(self) -> None:
        if self.project is None:
            return
        result = self.project.save()
        if not result:
            QMessageBox.critical(self, "Save failed", str(result.error))
        self._update_ui()

    def save_as(self) -> None:
        if self.project is None:
            QMessageBox.information(self, "Nothing to save", "Load an image first.")
            return
        path, _ = QFileDialog.getSaveFileName(self, "Save As", str(self.project.path), _SAVE_FILTERS)
        if not path:
            return
        result = self.project.save_as(path)
        if not result:
            QMessageBox.critical(self, "Save failed", str(result.error))
        self._update_ui()

    def previous_photo(self) -> None:
        self._step_reel(forward=False)

    def next_photo(self) -> None:
        self._step_reel(forward=True)

    def _step_reel(self, forward: bool) -> None:
        if self._reel is None or not self._confirm_discard():
            return
        path = self._reel.peek_next() if forward else self._reel.peek_previous()
        if path is None or not self.open_path(str(path), keep_reel=True):
            return
        if forward:
            self._reel.next()
        else:
            self._reel.previous()
        self._update_ui()

    def _confirm_discard(self) -> bool:
        if self.project is None or not self.project.has_unsaved_changes():
            return True
        answer = QMessageBox.question(
            self,
            "Save Changes",
            f"Do you want to save changes to {self.project.name}?",
            QMessageBox.Yes | QMessageBox.No | QMessageBox.Cancel,
        )
        if answer == QMessageBox.Cancel:
            return False
        if answer == QMessageBox.Yes:
            result = self.project.save()
            if not result:
                QMessageBox.critical(self, "Save failed", str(result.error))
                return False
        return True

    def closeEvent(self, e) -> None:
        if self._confirm_discard():
            e.accept()
        else:
            e.ignore()

    # ---------------------------
    # Drag & drop support
    # ---------------------------
    def dragEnterEvent(self, e) -> None:
        if e.mimeData().hasUrls():
            e.acceptProposedAction()

    def dropEvent(self, e) -> None:
        urls = e.mimeData().urls()
        if not urls:
            return
        path = urls[0].toLocalFile()
        if path and self._confirm_discard():
            self.open_path(path)

    # ---------------------------
    # Editing
    # ---------------------------
    def _edit(self, op_name: str, *args) -> None:
        if self.project is None:
            return
        try:
            getattr(self.project, op_name)(*args)
        except (EditorError, ValueError) as e:
            _logger.warning("%s failed: %s", op_name, e)
            QMessageBox.warning(self, "Edit failed", str(e))
            return
        self._leave_crop_mode()
        self._refresh_canvas()
        self._update_ui()

    def _resize(self) -> None:
        if self.project is None:
            return
        pct, ok = QInputDialog.getInt(
            self, "Resize", f"Scale (%) of {self.project.width} x {self.project.height}:", 100, 1, 400
        )
        if not ok:
            return
        scale = pct / 100.0
        if not self.project.can_resize(scale):
            return
        self._edit("resize", scale)

    def _toggle_crop_mode(self, on: bool) -> None:
        self._pending_crop = None
        self.canvas.set_crop_enabled(bool(on) and self.project is not None)
        self._update_ui()

    def _leave_crop_mode(self) -> None:
        self._pending_crop = None
        self._act_crop_mode.setChecked(False)
        self.canvas.set_crop_enabled(False)

    def _on_crop_selected(self, region: Optional[CropRegion]) -> None:
        self._pending_crop = region
        self._update_ui()

    def _apply_crop(self) -> None:
        if self.project is None or self._pending_crop is None:
            return
        region = self._pending_crop
        self._edit("crop_region", region)

    def _undo(self) -> None:
        if self.project is None or not self.project.can_undo():
            return
        self.project.undo()
        self._leave_crop_mode()
        self._refresh_canvas()
        self._update_ui()

    def _redo(self) -> None:
        if self.project is None or not self.project.can_redo():
            return
        self.project.redo()
        self._leave_crop_mode()
        self._refresh_canvas()
        self._update_ui()

    # ---------------------------
    # View sync
    # ---------------------------
    def _refresh_canvas(self) -> None:
        if self.project is None:
            self.canvas.set_image(None)
            return
        self.canvas.set_image(raster_to_qimage(self.project.get_current_buffer()))

    def _update_ui(self) -> None:
        has_project = self.project is not None
        for act in (
            self._act_save_as, self._act_rot_r, self._act_rot_l, self._act_flip_h,
            self._act_flip_v, self._act_resize, self._act_crop_mode,
        ):
            act.setEnabled(has_project)
        self.adjust_apply_btn.setEnabled(has_project)
        self.adjust_cancel_btn.setEnabled(has_project)
        self._act_save.setEnabled(has_project and self.project.has_unsaved_changes())
        self._act_undo.setEnabled(has_project and self.project.can_undo())
        self._act_redo.setEnabled(has_project and self.project.can_redo())
        self._act_crop_apply.setEnabled(self._pending_crop is not None)
        self._act_prev.setEnabled(self._reel is not None and self._reel.has_previous())
        self._act_next.setEnabled(self._reel is not None and self._reel.has_next())

        if not has_project:
            self.setWindowTitle("PixJive")
            self.statusBar().showMessage("No image")
            return
        marker = "*" if self.project.has_unsaved_changes() else ""
        self.setWindowTitle(f"{self.project.name}{marker} - PixJive")
        w, h = self.project.get_dimensions()
        msg = f"{w} x {h} | {self.project.current.pixel_format} | {self.project.extension.upper()}"
        if self._pending_crop is not None:
            r = self._pending_crop
            msg += f" | Crop: {r.width} x {r.height} at ({r.x}, {r.y})"
        self.statusBar().showMessage(msg)
