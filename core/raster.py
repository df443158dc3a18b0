from __future__ import annotations

from typing import Tuple

import numpy as np
from PIL import Image

RGB = "RGB"
RGBA = "RGBA"
INDEXED = "P"

PIXEL_FORMATS = (RGB, RGBA, INDEXED)


def normalize_image(img: Image.Image) -> Image.Image:
    """Bring a decoded Pillow image into one of the three supported pixel formats."""
    if img.mode in (RGBA, INDEXED):
        return img
    bands = {b.upper() for b in img.getbands()}
    if "A" in bands or "transparency" in img.info:
        return img.convert(RGBA)
    if img.mode == RGB:
        return img
    return img.convert(RGB)


class RasterBuffer:
    """
    Owned 2-D pixel grid with a declared pixel format.

    The wrapped Pillow image is never handed out: ``to_image()`` returns a
    copy and ``pixels()`` a read-only array, so a buffer held on an undo stack
    cannot be changed behind the owner's back.
    """

    __slots__ = ("_img",)

    def __init__(self, img: Image.Image):
        if img.mode not in PIXEL_FORMATS:
            raise ValueError(f"unsupported pixel format {img.mode!r}")
        if img.width <= 0 or img.height <= 0:
            raise ValueError("raster dimensions must be positive")
        self._img = img

    @classmethod
    def from_image(cls, img: Image.Image) -> "RasterBuffer":
        return cls(normalize_image(img).copy())

    @classmethod
    def from_array(cls, arr: np.ndarray) -> "RasterBuffer":
        if arr.dtype != np.uint8 or arr.ndim != 3 or arr.shape[2] not in (3, 4):
            raise ValueError("array must be HxWx3 or HxWx4 uint8")
        mode = RGBA if arr.shape[2] == 4 else RGB
        return cls(Image.fromarray(np.ascontiguousarray(arr), mode=mode))

    @property
    def width(self) -> int:
        return self._img.width

    @property
    def height(self) -> int:
        return self._img.height

    @property
    def size(self) -> Tuple[int, int]:
        return self._img.size

    @property
    def pixel_format(self) -> str:
        return self._img.mode

    @property
    def has_alpha(self) -> bool:
        if self._img.mode == RGBA:
            return True
        return self._img.mode == INDEXED and "transparency" in self._img.info

    @property
    def is_indexed(self) -> bool:
        return self._img.mode == INDEXED

    def to_image(self) -> Image.Image:
        return self._img.copy()

    def pixels(self) -> np.ndarray:
        arr = np.array(self._img, dtype=np.uint8)
        arr.flags.writeable = False
        return arr

    def promoted(self) -> "RasterBuffer":
        """Indexed buffers become RGBA; direct-color buffers are returned as-is."""
        if not self.is_indexed:
            return self
        return RasterBuffer(self._img.convert(RGBA))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        if self.size != other.size or self.pixel_format != other.pixel_format:
            return False
        if self.is_indexed:
            # Palettes may differ while the rendered colors match.
            a = self._img.convert(RGBA)
            b = other._img.convert(RGBA)
            return a.tobytes() == b.tobytes()
        return self._img.tobytes() == other._img.tobytes()

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"RasterBuffer({self.width}x{self.height}, {self.pixel_format})"
