from __future__ import annotations


class EditorError(Exception):
    """Base class for every failure raised by the editing core."""


class OutOfBoundsError(EditorError, ValueError):
    def __init__(self, x: int, y: int, width: int, height: int, bounds: tuple[int, int]):
        self.region = (x, y, width, height)
        self.bounds = bounds
        super().__init__(
            f"crop region ({x}, {y}, {width}x{height}) is outside the {bounds[0]}x{bounds[1]} image"
        )


class EmptyHistoryError(EditorError):
    def __init__(self, action: str):
        self.action = action
        super().__init__(f"nothing to {action}")


class ImageIOError(EditorError, OSError):
    """Load or save failure. ``path`` is the file involved."""

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class UnsupportedFormatError(ImageIOError):
    pass


class DecodeError(ImageIOError):
    pass


class EncodeError(ImageIOError):
    pass
