from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional

from core.io import is_supported_path


def iter_images(folder: str | Path) -> Iterable[Path]:
    root = Path(folder)
    for p in root.iterdir():
        if p.is_file() and is_supported_path(p):
            yield p


class PhotoReel:
    """
    The openable images in one directory, sorted by file name, with a cursor
    on the image currently shown. ``next()``/``previous()`` return None at
    the ends instead of wrapping.
    """

    def __init__(self, image_path: str | Path):
        current = Path(image_path)
        self._images: List[Path] = sorted(iter_images(current.parent), key=lambda p: p.name)
        self._position = 0
        for idx, p in enumerate(self._images):
            if p.name == current.name:
                self._position = idx
                break

    def __len__(self) -> int:
        return len(self._images)

    @property
    def images(self) -> List[Path]:
        return list(self._images)

    @property
    def position(self) -> int:
        return self._position

    @property
    def current(self) -> Optional[Path]:
        if not self._images:
            return None
        return self._images[self._position]

    def has_next(self) -> bool:
        return self._position + 1 < len(self._images)

    def has_previous(self) -> bool:
        return self._position - 1 >= 0 and bool(self._images)

    def peek_next(self) -> Optional[Path]:
        return self._images[self._position + 1] if self.has_next() else None

    def peek_previous(self) -> Optional[Path]:
        return self._images[self._position - 1] if self.has_previous() else None

    def next(self) -> Optional[Path]:
        if not self.has_next():
            return None
        self._position += 1
        return self._images[self._position]

    def previous(self) -> Optional[Path]:
        if not self.has_previous():
            return None
        self._position -= 1
        return self._images[self._position]
