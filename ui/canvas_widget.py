from __future__ import annotations
from typing import Optional, Callable

from PySide6.QtCore import Qt, QRectF, QTimer
from PySide6.QtGui import QPainter, QImage, QPixmap, QColor, QPen
from PySide6.QtWidgets import QWidget

from core.selection import CropRegion, CropSelector, ViewportMapping


class CanvasWidget(QWidget):
    """
    Shows the current image scaled to fit (never enlarged), centered.
    Supports:
      - crop mode: left-drag draws a selection, reported via on_crop_selected(region or None)
      - viewport resize drops any crop selection
    """
    def __init__(
        self,
        on_crop_selected: Optional[Callable[[Optional[CropRegion]], None]] = None,
        parent: Optional[QWidget] = None,
    ):
        super().__init__(parent)
        self.setMouseTracking(True)
        self.setFocusPolicy(Qt.StrongFocus)
        self.setMinimumSize(200, 150)

        self._image: Optional[QImage] = None
        self._selector: Optional[CropSelector] = None
        self._crop_enabled = False
        self._on_crop_selected = on_crop_selected

        self._ants_phase = 0.0
        self._ants_timer = QTimer(self)
        self._ants_timer.setInterval(120)
        self._ants_timer.timeout.connect(self._advance_ants)

        self.setAcceptDrops(True)

    def set_image(self, qimg: Optional[QImage]) -> None:
        old_size = self._image_size(self._image)
        self._image = qimg
        # Previews keep the size; the selection still maps onto the image.
        if self._image_size(qimg) != old_size:
            self._rebuild_selector()
        self.update()

    @staticmethod
    def _image_size(qimg: Optional[QImage]) -> Optional[tuple]:
        if qimg is None or qimg.isNull():
            return None
        return (qimg.width(), qimg.height())

    def set_crop_enabled(self, enabled: bool) -> None:
        self._crop_enabled = bool(enabled)
        self._rebuild_selector()
        if self._crop_enabled:
            self._ants_timer.start()
        else:
            self._ants_timer.stop()
        self.update()

    @property
    def crop_enabled(self) -> bool:
        return self._crop_enabled

    @property
    def crop_region(self) -> Optional[CropRegion]:
        return None if self._selector is None else self._selector.region

    def _mapping(self) -> Optional[ViewportMapping]:
        if self._image is None or self._image.isNull():
            return None
        return ViewportMapping.fit(self._image.width(), self._image.height(), self.width(), self.height())

    def _rebuild_selector(self) -> None:
        mapping = self._mapping()
        had_region = self._selector is not None and self._selector.has_region
        self._selector = CropSelector(mapping) if (mapping is not None and self._crop_enabled) else None
        if had_region:
            self._notify_crop(None)

    def _notify_crop(self, region: Optional[CropRegion]) -> None:
        if self._on_crop_selected is not None:
            self._on_crop_selected(region)

    def paintEvent(self, _) -> None:
        p = QPainter(self)
        p.fillRect(self.rect(), QColor(30, 30, 30))

        mapping = self._mapping()
        if mapping is None:
            p.setPen(QPen(QColor(220, 220, 220)))
            p.drawText(self.rect(), Qt.AlignCenter, "Drop an image or File → Open…")
            return

        target = QRectF(mapping.offset_x, mapping.offset_y, mapping.display_width, mapping.display_height)
        self._draw_checkerboard(p, target, 16)
        p.setRenderHint(QPainter.SmoothPixmapTransform, True)
        p.drawPixmap(target, QPixmap.fromImage(self._image), QRectF(self._image.rect()))

        if self._crop_enabled and self._selector is not None and self._selector.selection_rect is not None:
            self._draw_selection_overlay(p, target, self._selector.selection_rect)

    def _draw_checkerboard(self, p: QPainter, r: QRectF, cell: int) -> None:
        c1 = QColor(60, 60, 60)
        c2 = QColor(90, 90, 90)
        x0 = int(r.left())
        y0 = int(r.top())
        x1 = int(r.right())
        y1 = int(r.bottom())
        for y in range(y0, y1, cell):
            for x in range(x0, x1, cell):
                use_c1 = (((x - x0) // cell) + ((y - y0) // cell)) % 2 == 0
                p.fillRect(x, y, min(cell, x1 - x), min(cell, y1 - y), c1 if use_c1 else c2)

    def _draw_selection_overlay(self, p: QPainter, image_rect: QRectF, sel: tuple[float, float, float, float]) -> None:
        rx, ry, rw, rh = sel
        if rw <= 0 or rh <= 0:
            return
        x0, y0 = image_rect.left(), image_rect.top()
        draw_w, draw_h = image_rect.width(), image_rect.height()
        shade = QColor(0, 0, 0, 90)
        # Shade outside selection
        p.fillRect(QRectF(x0, y0, draw_w, max(0.0, ry - y0)), shade)
        p.fillRect(QRectF(x0, ry + rh, draw_w, max(0.0, y0 + draw_h - (ry + rh))), shade)
        p.fillRect(QRectF(x0, ry, max(0.0, rx - x0), rh), shade)
        p.fillRect(QRectF(rx + rw, ry, max(0.0, x0 + draw_w - (rx + rw)), rh), shade)

        outer = QPen(QColor(255, 255, 255), 1)
        outer.setDashPattern([4, 4])
        outer.setDashOffset(self._ants_phase)
        p.setPen(outer)
        p.drawRect(QRectF(rx, ry, rw, rh))

        inner = QPen(QColor(65, 105, 225), 1)
        inner.setDashPattern([4, 4])
        inner.setDashOffset(self._ants_phase + 4.0)
        p.setPen(inner)
        p.drawRect(QRectF(rx, ry, rw, rh))

    def resizeEvent(self, e) -> None:
        super().resizeEvent(e)
        if self._selector is not None:
            had_region = self._selector.has_region
            self._selector.viewport_resized(self.width(), self.height())
            if had_region:
                self._notify_crop(None)

    def mousePressEvent(self, e) -> None:
        if e.button() != Qt.LeftButton or not self._crop_enabled or self._selector is None:
            return
        pos = e.position()
        had_region = self._selector.has_region
        self._selector.press(pos.x(), pos.y())
        if had_region:
            self._notify_crop(None)
        self.update()

    def mouseMoveEvent(self, e) -> None:
        if self._selector is None or not self._selector.is_dragging:
            return
        pos = e.position()
        self._selector.drag(pos.x(), pos.y())
        self.update()

    def mouseReleaseEvent(self, e) -> None:
        if e.button() != Qt.LeftButton or self._selector is None:
            return
        pos = e.position()
        region = self._selector.release(pos.x(), pos.y())
        if region is not None:
            self._notify_crop(region)
        self.update()

    def _advance_ants(self) -> None:
        self._ants_phase = (self._ants_phase + 1.0) % 8.0
        self.update()
