from PySide6.QtWidgets import QWidget, QHBoxLayout, QLabel, QPushButton
from PySide6.QtCore import Qt, QPoint

from combatreflex.ui.style import WARN_COLOR

_NAV_QSS = """
    QPushButton {
        background: rgba(255,255,255,0.06);
        border: 1px solid rgba(255,255,255,0.10);
        border-radius: 10px;
        padding: 0 12px;
        font-weight: 700;
    }
    QPushButton:hover { background: rgba(255,255,255,0.10); }
    QPushButton:disabled { color: rgba(231,238,247,0.30); }
"""


def _window_btn_qss(hover_rgb: str) -> str:
    return f"""
        QPushButton {{
            background: rgba(255,255,255,0.06);
            border: 1px solid rgba(255,255,255,0.10);
            border-radius: 10px;
            font-weight: 900;
        }}
        QPushButton:hover {{ background: rgba({hover_rgb},0.25); }}
        QPushButton:pressed {{ background: rgba({hover_rgb},0.35); }}
    """


class TitleBar(QWidget):
    """
    Frameless window chrome for the trainer.
    Left: app name plus a live run status ("Session 1/2 · TRAINING").
    Right: History / Profiles (locked while a program runs) and the
    window buttons. Drag to move, double-click to maximize.
    """
    def __init__(self, window, title: str = "Combat Reflex", on_history=None, on_profiles=None):
        super().__init__()
        self._window = window
        self._drag_pos: QPoint | None = None

        self.setFixedHeight(44)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(14, 8, 12, 8)
        layout.setSpacing(10)

        self.title = QLabel(title)
        self.title.setStyleSheet("font-size: 14px; font-weight: 750;")

        self.status = QLabel("")
        self.status.setStyleSheet(f"font-size: 12px; font-weight: 700; color: {WARN_COLOR};")

        self.history_btn = QPushButton("History")
        self.profiles_btn = QPushButton("Profiles")
        for b, cb in ((self.history_btn, on_history), (self.profiles_btn, on_profiles)):
            b.setFixedHeight(30)
            b.setCursor(Qt.PointingHandCursor)
            b.setStyleSheet(_NAV_QSS)
            if cb:
                b.clicked.connect(cb)

        self.min_btn = self._window_btn("—")
        self.max_btn = self._window_btn("⬜")
        self.close_btn = self._window_btn("✕", hover_rgb="239,68,68")

        self.min_btn.clicked.connect(self._window.showMinimized)
        self.max_btn.clicked.connect(self._toggle_max_restore)
        self.close_btn.clicked.connect(self._window.close)

        layout.addWidget(self.title)
        layout.addWidget(self.status)
        layout.addStretch(1)
        layout.addWidget(self.history_btn)
        layout.addWidget(self.profiles_btn)
        layout.addSpacing(6)
        for b in (self.min_btn, self.max_btn, self.close_btn):
            layout.addWidget(b)

        self.setStyleSheet("""
            QWidget {
                background: rgba(255,255,255,0.03);
                border-bottom: 1px solid rgba(255,255,255,0.06);
                border-top-left-radius: 16px;
                border-top-right-radius: 16px;
            }
        """)

    # -----------------------
    # Run state
    # -----------------------

    def set_running(self, running: bool):
        self.history_btn.setEnabled(not running)
        self.profiles_btn.setEnabled(not running)
        if not running:
            self.status.setText("")

    def set_status(self, text: str):
        self.status.setText(text)

    # -----------------------
    # Window handling
    # -----------------------

    @staticmethod
    def _window_btn(text: str, hover_rgb: str = "255,255,255") -> QPushButton:
        b = QPushButton(text)
        b.setFixedSize(36, 30)
        b.setCursor(Qt.PointingHandCursor)
        b.setStyleSheet(_window_btn_qss(hover_rgb))
        return b

    def _toggle_max_restore(self):
        if self._window.isMaximized():
            self._window.showNormal()
        else:
            self._window.showMaximized()

    def mouseDoubleClickEvent(self, event):
        if event.button() == Qt.LeftButton:
            self._toggle_max_restore()
            event.accept()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self._drag_pos = event.globalPosition().toPoint() - self._window.frameGeometry().topLeft()
            event.accept()

    def mouseMoveEvent(self, event):
        if self._window.isMaximized():
            return
        if self._drag_pos is not None and event.buttons() & Qt.LeftButton:
            self._window.move(event.globalPosition().toPoint() - self._drag_pos)
            event.accept()

    def mouseReleaseEvent(self, event):
        self._drag_pos = None
        event.accept()
