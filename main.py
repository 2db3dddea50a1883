"""Entry point for the ComicTranslate desktop application."""
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from PySide6 import QtWidgets

from config import APP_NAME, STYLES_DIR, app_config
from settings_manager import load_effective_settings
from ui.main_window import MainWindow
from ui.overlay_layout import pick_comic_font


def apply_theme(app: QtWidgets.QApplication, theme: str) -> None:
    """Apply light/dark stylesheet to the whole application."""
    theme = (theme or "system").lower()
    qss_path = None
    if theme == "dark":
        qss_path = STYLES_DIR / "dark.qss"
    elif theme == "light":
        qss_path = STYLES_DIR / "light.qss"

    app.setStyleSheet("")
    if qss_path is not None and qss_path.is_file():
        app.setStyleSheet(qss_path.read_text(encoding="utf-8"))


def configure_logging(level_name: str) -> None:
    level = logging.getLevelName(str(level_name or "INFO").upper())
    if not isinstance(level, int):
        level = logging.INFO
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the Qt application and show the main window; an optional argument names a file to open."""
    args = list(sys.argv if argv is None else argv)
    app = QtWidgets.QApplication(args)
    app.setApplicationName(APP_NAME)

    settings = load_effective_settings()
    configure_logging(settings.get("general", {}).get("log_level", "INFO"))

    appearance = settings.get("appearance", {})
    app_config.comic_font_family = pick_comic_font(appearance.get("comic_font_family") or "") or None
    apply_theme(app, appearance.get("theme", "system"))

    window = MainWindow(settings=settings)
    window.show()
    if len(args) > 1:
        window.open_path(Path(args[1]))
    return int(app.exec())


if __name__ == "__main__":
    raise SystemExit(main())
