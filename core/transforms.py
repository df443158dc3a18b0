"""
Pixel transforms.

Every function takes a RasterBuffer and returns a new one; the input is
never modified. Geometric resampling transforms and the photometric
rescale promote indexed buffers to RGBA first, flips and crops keep the
source format.
"""

from __future__ import annotations

import math
from typing import Tuple

from PIL import Image

from core.adjustments import rescale_rgb_channels
from core.errors import OutOfBoundsError
from core.raster import RasterBuffer


def rotate_right(buf: RasterBuffer) -> RasterBuffer:
    """90 degrees clockwise."""
    return _rotate(buf, -90)


def rotate_left(buf: RasterBuffer) -> RasterBuffer:
    """90 degrees counter-clockwise."""
    return _rotate(buf, 90)


def _rotate(buf: RasterBuffer, angle: int) -> RasterBuffer:
    img = buf.promoted().to_image()
    # Pillow rotates counter-clockwise for positive angles.
    out = img.rotate(angle, resample=Image.Resampling.BILINEAR, expand=True)
    return RasterBuffer(out)


def flip_horizontal(buf: RasterBuffer) -> RasterBuffer:
    img = buf.to_image()
    return RasterBuffer(img.transpose(Image.Transpose.FLIP_LEFT_RIGHT))


def flip_vertical(buf: RasterBuffer) -> RasterBuffer:
    img = buf.to_image()
    return RasterBuffer(img.transpose(Image.Transpose.FLIP_TOP_BOTTOM))


def crop(buf: RasterBuffer, x: int, y: int, width: int, height: int) -> RasterBuffer:
    x, y, width, height = int(x), int(y), int(width), int(height)
    if (
        x < 0
        or y < 0
        or width <= 0
        or height <= 0
        or x + width > buf.width
        or y + height > buf.height
    ):
        raise OutOfBoundsError(x, y, width, height, buf.size)
    img = buf.to_image()
    return RasterBuffer(img.crop((x, y, x + width, y + height)))


def resized_dimensions(width: int, height: int, scale: float) -> Tuple[int, int]:
    if scale <= 0:
        raise ValueError("scale factor must be > 0")
    return int(math.floor(width * scale)), int(math.floor(height * scale))


def resize(buf: RasterBuffer, scale: float) -> RasterBuffer:
    new_w, new_h = resized_dimensions(buf.width, buf.height, float(scale))
    if new_w < 1 or new_h < 1:
        raise ValueError(f"scale factor {scale} gives an empty {new_w}x{new_h} image")
    img = buf.promoted().to_image()
    return RasterBuffer(img.resize((new_w, new_h), resample=Image.Resampling.BILINEAR))


def adjust_brightness_contrast(
    buf: RasterBuffer,
    brightness_offset: float,
    contrast_scale: float,
) -> RasterBuffer:
    """
    Per color channel: ``clamp(contrast_scale * value + brightness_offset, 0, 255)``.

    Alpha is copied unchanged. Also used for previews, since it never touches
    the buffer it was given.
    """
    src = buf.promoted()
    out = rescale_rgb_channels(src.pixels(), offset=brightness_offset, scale=contrast_scale)
    return RasterBuffer.from_array(out)
