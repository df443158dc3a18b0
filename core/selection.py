"""
Crop selection in display space.

The viewer shows the image scaled to fit its viewport (never enlarged).
``CropSelector`` follows a press/drag/release gesture over that displayed
image and turns the dragged rectangle into a ``CropRegion`` in native image
pixels using a ``ViewportMapping``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from core.logger import get_logger

_logger = get_logger("selection")


@dataclass(frozen=True)
class CropRegion:
    x: int
    y: int
    width: int
    height: int

    def fits(self, image_width: int, image_height: int) -> bool:
        return (
            self.x >= 0
            and self.y >= 0
            and self.width > 0
            and self.height > 0
            and self.x + self.width <= image_width
            and self.y + self.height <= image_height
        )


@dataclass(frozen=True)
class ViewportMapping:
    image_width: int
    image_height: int
    display_width: float
    display_height: float
    # Top-left corner of the displayed image inside the viewport.
    offset_x: float = 0.0
    offset_y: float = 0.0

    @classmethod
    def fit(
        cls,
        image_width: int,
        image_height: int,
        viewport_width: float,
        viewport_height: float,
    ) -> "ViewportMapping":
        """Aspect-preserving scale-to-fit, centered. Images that fit are shown 1:1."""
        if image_width <= 0 or image_height <= 0:
            raise ValueError("image dimensions must be positive")
        vw = max(0.0, float(viewport_width))
        vh = max(0.0, float(viewport_height))
        if image_width <= vw and image_height <= vh:
            dw, dh = float(image_width), float(image_height)
        else:
            aspect = image_width / float(image_height)
            dw = min(vw, vh * aspect)
            dh = min(vh, vw / aspect)
        return cls(
            image_width=int(image_width),
            image_height=int(image_height),
            display_width=dw,
            display_height=dh,
            offset_x=(vw - dw) * 0.5,
            offset_y=(vh - dh) * 0.5,
        )

    @property
    def is_scaled(self) -> bool:
        return self.display_width < self.image_width or self.display_height < self.image_height

    @property
    def scale_x(self) -> float:
        if 0 < self.display_width < self.image_width:
            return self.image_width / self.display_width
        return 1.0

    @property
    def scale_y(self) -> float:
        if 0 < self.display_height < self.image_height:
            return self.image_height / self.display_height
        return 1.0

    @property
    def display_bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of the displayed image in viewport coords."""
        return (
            self.offset_x,
            self.offset_y,
            self.offset_x + self.display_width,
            self.offset_y + self.display_height,
        )

    def contains(self, x: float, y: float) -> bool:
        min_x, min_y, max_x, max_y = self.display_bounds
        return min_x <= x <= max_x and min_y <= y <= max_y

    def to_image_region(self, x: int, y: int, width: int, height: int) -> CropRegion:
        """Project a rectangle relative to the displayed image's corner into image pixels."""
        sx = self.scale_x
        sy = self.scale_y
        ix = int(x * sx)
        iy = int(y * sy)
        iw = int(width * sx)
        ih = int(height * sy)
        ix = max(0, min(ix, self.image_width - 1))
        iy = max(0, min(iy, self.image_height - 1))
        iw = max(0, min(iw, self.image_width - ix))
        ih = max(0, min(ih, self.image_height - iy))
        return CropRegion(ix, iy, iw, ih)


class CropSelector:
    """
    Drag-to-select state for the crop tool.

    A gesture that starts outside the displayed image is ignored until the
    next press. Dragging past the image edge clips the rectangle. Resizing the
    viewport drops the current selection because its screen rectangle no
    longer lines up with the image.
    """

    def __init__(self, mapping: ViewportMapping):
        self.mapping = mapping
        self._start: Optional[Tuple[float, float]] = None
        self._ignoring = False
        self._rect: Optional[Tuple[float, float, float, float]] = None
        self._region: Optional[CropRegion] = None

    @classmethod
    def for_viewport(
        cls,
        image_width: int,
        image_height: int,
        viewport_width: float,
        viewport_height: float,
    ) -> "CropSelector":
        return cls(ViewportMapping.fit(image_width, image_height, viewport_width, viewport_height))

    @property
    def selection_rect(self) -> Optional[Tuple[float, float, float, float]]:
        """Current rectangle (x, y, w, h) in viewport coords, for drawing."""
        return self._rect

    @property
    def region(self) -> Optional[CropRegion]:
        """Committed crop region in image pixels, set by a successful release."""
        return self._region

    @property
    def has_region(self) -> bool:
        return self._region is not None

    @property
    def is_dragging(self) -> bool:
        return self._start is not None

    def reset(self) -> None:
        self._start = None
        self._ignoring = False
        self._rect = None
        self._region = None

    def press(self, x: float, y: float) -> bool:
        self.reset()
        if not self.mapping.contains(x, y):
            self._ignoring = True
            return False
        self._start = (float(x), float(y))
        self._rect = (float(x), float(y), 0.0, 0.0)
        return True

    def drag(self, x: float, y: float) -> Optional[Tuple[float, float, float, float]]:
        if self._ignoring or self._start is None:
            return None
        min_x, min_y, max_x, max_y = self.mapping.display_bounds
        sx, sy = self._start
        x0 = _clamp(min(sx, x), min_x, max_x)
        x1 = _clamp(max(sx, x), min_x, max_x)
        y0 = _clamp(min(sy, y), min_y, max_y)
        y1 = _clamp(max(sy, y), min_y, max_y)
        self._rect = (x0, y0, x1 - x0, y1 - y0)
        return self._rect

    def release(self, x: Optional[float] = None, y: Optional[float] = None) -> Optional[CropRegion]:
        if self._ignoring or self._start is None:
            self._ignoring = False
            return None
        if x is not None and y is not None:
            self.drag(x, y)
        self._start = None

        rx, ry, rw, rh = self._rect or (0.0, 0.0, 0.0, 0.0)
        rel_x = int(rx - self.mapping.offset_x)
        rel_y = int(ry - self.mapping.offset_y)
        rel_w = int(rw)
        rel_h = int(rh)
        if rel_w == 0 or rel_h == 0:
            self._rect = None
            return None

        region = self.mapping.to_image_region(rel_x, rel_y, rel_w, rel_h)
        if region.width == 0 or region.height == 0:
            self._rect = None
            return None
        self._region = region
        _logger.debug("crop selection %s (display %s)", region, (rel_x, rel_y, rel_w, rel_h))
        return region

    def viewport_resized(self, viewport_width: float, viewport_height: float) -> None:
        self.mapping = ViewportMapping.fit(
            self.mapping.image_width,
            self.mapping.image_height,
            viewport_width,
            viewport_height,
        )
        self.reset()


def _clamp(v: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(v)))
