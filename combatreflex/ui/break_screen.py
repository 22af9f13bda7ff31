from PySide6.QtWidgets import QWidget, QVBoxLayout, QLabel, QPushButton, QFrame, QHBoxLayout
from PySide6.QtCore import Qt

from combatreflex.core.difficulty import BREAK_WARNING_S
from combatreflex.training.collaborators import Frame
from combatreflex.ui.style import WARN_COLOR, button_qss
from combatreflex.ui.training import HoldButton


class BreakScreen(QWidget):
    """Rest between sessions. Switches to "GET READY!" in the last seconds."""
    def __init__(self, on_skip, on_stop):
        super().__init__()

        root = QVBoxLayout(self)
        root.setContentsMargins(40, 40, 40, 40)
        root.setSpacing(18)
        root.setAlignment(Qt.AlignCenter)

        card = QFrame()
        card.setStyleSheet("""
            QFrame {
                background: rgba(255,255,255,0.04);
                border: 1px solid rgba(255,255,255,0.07);
                border-radius: 18px;
            }
        """)
        lay = QVBoxLayout(card)
        lay.setContentsMargins(28, 24, 28, 24)
        lay.setSpacing(10)

        self.title = QLabel("Break")
        self.title.setAlignment(Qt.AlignCenter)
        self.title.setStyleSheet("font-size: 28px; font-weight: 850;")

        self.seconds = QLabel("--")
        self.seconds.setAlignment(Qt.AlignCenter)
        self.seconds.setStyleSheet("font-size: 96px; font-weight: 900;")

        self.next_lbl = QLabel("")
        self.next_lbl.setObjectName("muted")
        self.next_lbl.setAlignment(Qt.AlignCenter)

        lay.addWidget(self.title)
        lay.addWidget(self.seconds)
        lay.addWidget(self.next_lbl)

        btns = QHBoxLayout()
        btns.setSpacing(12)

        skip = QPushButton("Skip break")
        skip.setCursor(Qt.PointingHandCursor)
        skip.clicked.connect(on_skip)
        skip.setStyleSheet(button_qss())

        self.stop_btn = HoldButton("Hold to stop")
        self.stop_btn.confirmed.connect(on_stop)

        btns.addStretch(1)
        btns.addWidget(skip)
        btns.addWidget(self.stop_btn)
        btns.addStretch(1)

        root.addWidget(card)
        root.addLayout(btns)

    def render(self, f: Frame):
        remaining = int(f.break_remaining_s)
        self.seconds.setText(str(remaining))
        self.next_lbl.setText(f"Session {f.session + 1} of {f.total_sessions} up next")

        if 0 < remaining <= BREAK_WARNING_S:
            self.title.setText("GET READY!")
            self.title.setStyleSheet(f"font-size: 28px; font-weight: 900; color: {WARN_COLOR};")
        else:
            self.title.setText("Break")
            self.title.setStyleSheet("font-size: 28px; font-weight: 850;")
