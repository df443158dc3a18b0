from __future__ import annotations

import json
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Tuple

from core.logger import get_logger

_logger = get_logger("config")


@dataclass
class EditorSettings:
    # Undo snapshots kept per project; 0 keeps everything.
    history_limit: int = 50
    jpeg_quality: int = 95
    # Background used when flattening alpha for JPEG/BMP output.
    flatten_background: Tuple[int, int, int] = (255, 255, 255)
    log_level: str = "info"

    def __post_init__(self) -> None:
        self.history_limit = max(0, int(self.history_limit))
        self.jpeg_quality = max(1, min(100, int(self.jpeg_quality)))
        bg = tuple(int(c) for c in self.flatten_background)
        if len(bg) != 3:
            raise ValueError("flatten_background must have 3 components")
        self.flatten_background = (
            max(0, min(255, bg[0])),
            max(0, min(255, bg[1])),
            max(0, min(255, bg[2])),
        )
        self.log_level = str(self.log_level).strip().lower() or "info"


def _settings_from_raw(raw: dict) -> EditorSettings:
    known = {f.name for f in fields(EditorSettings)}
    kwargs = {k: v for k, v in raw.items() if k in known}
    return EditorSettings(**kwargs)


def load_settings(path: str | Path) -> EditorSettings:
    settings_file = Path(path)
    if not settings_file.exists():
        return EditorSettings()
    try:
        raw = json.loads(settings_file.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError("settings file must hold a JSON object")
        settings = _settings_from_raw(raw)
    except (OSError, ValueError, TypeError) as e:
        _logger.warning("settings load failed (%s), using defaults: %s", settings_file, e)
        return EditorSettings()
    _logger.debug("settings loaded: %s", settings_file)
    return settings


def save_settings(path: str | Path, settings: EditorSettings) -> None:
    settings_file = Path(path)
    settings_file.parent.mkdir(parents=True, exist_ok=True)
    payload = asdict(settings)
    payload["flatten_background"] = list(settings.flatten_background)
    settings_file.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    _logger.debug("settings saved: %s", settings_file)


def load_or_create_settings(path: str | Path) -> EditorSettings:
    """Load settings; on first run write the defaults so they can be edited."""
    settings_file = Path(path)
    settings = load_settings(settings_file)
    if not settings_file.exists():
        try:
            save_settings(settings_file, settings)
        except OSError as e:
            _logger.warning("could not write default settings (%s): %s", settings_file, e)
    return settings
