from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional, Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from core.errors import DecodeError, EncodeError, UnsupportedFormatError
from core.logger import get_logger
from core.raster import RGB, RGBA, RasterBuffer

_logger = get_logger("io")


@dataclass(frozen=True)
class RasterFormat:
    name: str
    pil_format: str
    extensions: Tuple[str, ...]
    supports_alpha: bool
    # Only fully transparent or fully opaque pixels survive encoding.
    binary_alpha: bool = False


JPEG = RasterFormat("jpeg", "JPEG", (".jpg", ".jpeg"), supports_alpha=False)
PNG = RasterFormat("png", "PNG", (".png",), supports_alpha=True)
BMP = RasterFormat("bmp", "BMP", (".bmp",), supports_alpha=False)
# GIF keeps a single transparent palette entry.
GIF = RasterFormat("gif", "GIF", (".gif",), supports_alpha=True, binary_alpha=True)

SUPPORTED_FORMATS: Tuple[RasterFormat, ...] = (JPEG, PNG, BMP, GIF)

_BY_EXTENSION: Dict[str, RasterFormat] = {
    ext: fmt for fmt in SUPPORTED_FORMATS for ext in fmt.extensions
}

SUPPORTED_EXTENSIONS = tuple(_BY_EXTENSION)


def format_for_path(path: str | Path) -> RasterFormat:
    ext = Path(path).suffix.lower()
    fmt = _BY_EXTENSION.get(ext)
    if fmt is None:
        raise UnsupportedFormatError(f"unsupported image format {ext or '(none)'!r}", str(path))
    return fmt


def is_supported_path(path: str | Path) -> bool:
    return Path(path).suffix.lower() in _BY_EXTENSION


def load_raster(path: str | Path) -> RasterBuffer:
    format_for_path(path)
    try:
        with Image.open(path) as img:
            # Animated images: the first frame is the one edited.
            img.seek(0)
            img.load()
            buf = RasterBuffer.from_image(img)
    except FileNotFoundError as e:
        raise DecodeError(f"file not found: {path}", str(path)) from e
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError, SyntaxError) as e:
        raise DecodeError(f"could not decode {path}: {e}", str(path)) from e
    _logger.info("loaded %s (%dx%d %s)", path, buf.width, buf.height, buf.pixel_format)
    return buf


def flatten_alpha(
    buf: RasterBuffer,
    background: Tuple[int, int, int] = (255, 255, 255),
) -> RasterBuffer:
    """Composite ``buf`` over an opaque background; the result is RGB."""
    if not buf.has_alpha:
        if buf.pixel_format == RGB:
            return buf
        return RasterBuffer(buf.to_image().convert(RGB))
    rgba = buf.to_image().convert("RGBA")
    flat = Image.new(RGB, rgba.size, tuple(background))
    flat.paste(rgba, mask=rgba.getchannel("A"))
    return RasterBuffer(flat)


def harden_alpha(
    buf: RasterBuffer,
    background: Tuple[int, int, int] = (255, 255, 255),
) -> RasterBuffer:
    """
    Composite partially transparent pixels over ``background`` and make them
    opaque. Fully transparent pixels stay transparent. Indexed and RGB
    buffers already have on/off transparency and are returned unchanged.
    """
    if buf.pixel_format != RGBA:
        return buf
    px = buf.pixels()
    alpha = px[..., 3]
    partial = (alpha > 0) & (alpha < 255)
    if not partial.any():
        return buf
    out = px.copy()
    a = alpha[partial].astype(np.float32)[:, None] / 255.0
    bg = np.asarray(background, dtype=np.float32)
    rgb = px[partial][:, :3].astype(np.float32)
    out[partial, :3] = np.clip(np.rint(rgb * a + bg * (1.0 - a)), 0, 255).astype(np.uint8)
    out[partial, 3] = 255
    return RasterBuffer.from_array(out)


def _encode_image(buf: RasterBuffer, fmt: RasterFormat, background: Tuple[int, int, int]) -> Image.Image:
    if not fmt.supports_alpha:
        return flatten_alpha(buf, background).to_image()
    if fmt.binary_alpha:
        return harden_alpha(buf, background).to_image()
    return buf.to_image()


def _file_mode(target: Path) -> int:
    try:
        return target.stat().st_mode & 0o777
    except OSError:
        return 0o644


def save_raster(
    buf: RasterBuffer,
    path: str | Path,
    fmt: Optional[RasterFormat] = None,
    jpeg_quality: int = 95,
    background: Tuple[int, int, int] = (255, 255, 255),
) -> None:
    """
    Encode ``buf`` to ``path``.

    The data is written to a temporary file in the destination directory and
    renamed over ``path`` only after the encoder finished, so a failed save
    leaves any existing file untouched.
    """
    target = Path(path)
    if fmt is None:
        fmt = format_for_path(target)

    img = _encode_image(buf, fmt, background)
    params = {}
    if fmt is JPEG:
        params["quality"] = int(jpeg_quality)

    tmp_path: Optional[str] = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{target.stem}.", suffix=fmt.extensions[0], dir=str(target.parent)
        )
        with os.fdopen(fd, "wb") as f:
            img.save(f, format=fmt.pil_format, **params)
        os.chmod(tmp_path, _file_mode(target))
        os.replace(tmp_path, target)
        tmp_path = None
    except (OSError, ValueError, KeyError) as e:
        raise EncodeError(f"could not save {target}: {e}", str(target)) from e
    finally:
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                _logger.warning("could not remove temporary file %s", tmp_path)

    _logger.info("saved %s as %s (%dx%d)", target, fmt.name, buf.width, buf.height)
