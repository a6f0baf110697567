"""Allow running FocusBoard as a module: python -m focusboard."""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from .database.db import init_db
from .log import configure_logging
from .settings import load_settings
from .app import FocusBoardApp

logger = logging.getLogger(__name__)


def main() -> None:
    settings = load_settings()
    configure_logging(settings.log_level)
    init_db()
    logger.info("FocusBoard ready (storage: %s)", settings.storage_backend)

    app = QApplication(sys.argv)
    app.setApplicationName("FocusBoard")
    app.setOrganizationName("FocusBoard")
    app.setQuitOnLastWindowClosed(False)

    # Dock icon (generated placeholder, accent blue circle)
    from PyQt6.QtGui import QIcon, QPixmap, QPainter, QColor
    icon = QPixmap(256, 256)
    icon.fill(QColor(0, 0, 0, 0))
    p = QPainter(icon)
    p.setRenderHint(QPainter.RenderHint.Antialiasing)
    p.setBrush(QColor("#2563EB"))
    p.setPen(QColor("#2563EB").darker(120))
    p.drawEllipse(16, 16, 224, 224)
    p.end()
    app.setWindowIcon(QIcon(icon))

    window = FocusBoardApp(settings)
    window.show()

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
