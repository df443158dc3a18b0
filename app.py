import sys
from pathlib import Path

from PySide6.QtGui import QIcon
from PySide6.QtWidgets import QApplication

from core.config import load_or_create_settings
from core.logger import setup_logger
from ui.main_window import MainWindow

SETTINGS_PATH = Path.home() / ".pixjive" / "settings.json"


def _asset_path(*parts: str) -> Path:
    # PyInstaller onefile extracts bundled files under sys._MEIPASS.
    if getattr(sys, "frozen", False):
        return Path(getattr(sys, "_MEIPASS")) / Path(*parts)
    return Path(__file__).resolve().parent / Path(*parts)


def main() -> int:
    settings = load_or_create_settings(SETTINGS_PATH)
    setup_logger(settings.log_level)

    app = QApplication(sys.argv)
    app.setApplicationName("PixJive")
    app.setOrganizationName("PixJive")

    logo_path = _asset_path("assets", "Logo.png")
    if logo_path.exists():
        app.setWindowIcon(QIcon(str(logo_path)))

    w = MainWindow(settings=settings, logo_path=logo_path)
    w.show()
    args = app.arguments()[1:]
    if args:
        w.open_path(args[0])
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
