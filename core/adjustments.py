from __future__ import annotations

import numpy as np


def rescale_rgb_channels(
    pixels: np.ndarray,
    offset: float = 0.0,
    scale: float = 1.0,
) -> np.ndarray:
    """
    Linear rescale of the color channels: ``scale * value + offset`` clamped to 0..255.

    Works on HxWx3 and HxWx4 uint8 arrays. A fourth (alpha) channel is copied
    through untouched.
    """
    if pixels.dtype != np.uint8 or pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
        raise ValueError("pixels must be HxWx3 or HxWx4 uint8")

    out = pixels.copy()
    if float(scale) == 1.0 and float(offset) == 0.0:
        return out

    rgb = pixels[..., :3].astype(np.float32)
    rgb = rgb * float(scale) + float(offset)
    out[..., :3] = np.clip(np.rint(rgb), 0.0, 255.0).astype(np.uint8)
    return out
