"""
Application entry point and dark-theme stylesheet.

Usage:
    python -m focal_crop
    focal-crop-tool          (after pip install)
"""

import logging
import sys

from PyQt6.QtWidgets import QApplication

from focal_crop.config import APP_NAME
from focal_crop.main_window import MainWindow

logger = logging.getLogger(__name__)

_ACCENT = "#3a6ea5"

# Only the widget types the main window and ratio panel create
DARK_STYLESHEET = f"""
    QMainWindow, QWidget {{ background: #2b2b2b; color: #ddd; font-size: 10pt; }}
    QScrollArea {{ border: none; }}
    QGroupBox {{ border: 1px solid #555; border-radius: 4px; margin-top: 8px; padding-top: 12px; font-weight: bold; }}
    QGroupBox::title {{ subcontrol-origin: margin; left: 8px; padding: 0 4px; }}
    QLineEdit {{ background: #1e1e1e; border: 1px solid #555; border-radius: 4px; padding: 4px; }}
    QLineEdit:focus {{ border-color: {_ACCENT}; }}
    QPushButton {{ background: #3a3a3a; border: 1px solid #555; border-radius: 4px; padding: 6px 12px; }}
    QPushButton:hover {{ background: #4a4a4a; }}
    QPushButton:checked {{ background: {_ACCENT}; border-color: #5a8ec5; }}
    QPushButton:disabled {{ color: #666; }}
    QSlider::groove:horizontal {{ height: 4px; background: #555; border-radius: 2px; }}
    QSlider::handle:horizontal {{ background: {_ACCENT}; width: 14px; margin: -5px 0; border-radius: 7px; }}
    QToolBar {{ background: #333; border-bottom: 1px solid #444; padding: 4px; }}
    QStatusBar {{ background: #333; border-top: 1px solid #444; }}
"""


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication(sys.argv)
    app.setApplicationName(APP_NAME)
    app.setStyleSheet(DARK_STYLESHEET)

    window = MainWindow()
    window.show()
    logger.info("%s started", APP_NAME)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
