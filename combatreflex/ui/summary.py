from datetime import datetime, timezone
from typing import Optional

from PySide6.QtWidgets import QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFrame
from PySide6.QtCore import Qt

from combatreflex.core.stats import RunSummary, completion_rate, format_time
from combatreflex.core.storage import SessionHistoryEntry
from combatreflex.ui.style import button_qss


def _card() -> QFrame:
    f = QFrame()
    f.setStyleSheet("""
        QFrame {
            background: rgba(255,255,255,0.04);
            border: 1px solid rgba(255,255,255,0.07);
            border-radius: 18px;
        }
    """)
    return f


def _parse_iso(ts: str) -> Optional[datetime]:
    try:
        dt = datetime.fromisoformat(ts)
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc)
    except (TypeError, ValueError):
        return None


def _relative_day_label(dt_utc: datetime) -> str:
    now = datetime.now(timezone.utc).date()
    d = dt_utc.date()
    if d == now:
        return "Today"
    if (now.toordinal() - d.toordinal()) == 1:
        return "Yesterday"
    return dt_utc.strftime("%b %d, %Y")


class SummaryScreen(QWidget):
    """Results of the run that just ended."""
    def __init__(self, on_train_again, on_change_settings):
        super().__init__()

        root = QVBoxLayout(self)
        root.setContentsMargins(40, 40, 40, 40)
        root.setSpacing(18)
        root.setAlignment(Qt.AlignCenter)

        self.title = QLabel("Training Complete")
        self.title.setAlignment(Qt.AlignCenter)
        self.title.setStyleSheet("font-size: 28px; font-weight: 800;")

        # ---- Current run card
        self.current_card = _card()
        cur_layout = QVBoxLayout(self.current_card)
        cur_layout.setContentsMargins(22, 18, 22, 18)
        cur_layout.setSpacing(10)

        self.time_lbl = QLabel("Total time: —")
        self.sessions_lbl = QLabel("Sessions: —")
        self.hits_lbl = QLabel("Hits: —")
        self.rate_lbl = QLabel("Completion: —")
        self.hpm_lbl = QLabel("Hits per minute: —")
        self.pace_lbl = QLabel("Average pace: —")

        for lbl in (
            self.time_lbl, self.sessions_lbl, self.hits_lbl,
            self.rate_lbl, self.hpm_lbl, self.pace_lbl
        ):
            lbl.setAlignment(Qt.AlignLeft)
            lbl.setStyleSheet("font-size: 16px; font-weight: 650;")
            cur_layout.addWidget(lbl)

        # ---- Previous session card (optional)
        self.prev_card = _card()
        prev_layout = QVBoxLayout(self.prev_card)
        prev_layout.setContentsMargins(22, 16, 22, 16)
        prev_layout.setSpacing(6)

        self.prev_title = QLabel("Previous session")
        self.prev_title.setStyleSheet("font-size: 14px; color: rgba(231,238,247,0.75); font-weight: 650;")

        self.prev_value = QLabel("—")
        self.prev_value.setStyleSheet("font-size: 16px; font-weight: 750;")

        self.prev_meta = QLabel("")
        self.prev_meta.setStyleSheet("font-size: 13px; color: rgba(231,238,247,0.65);")

        prev_layout.addWidget(self.prev_title)
        prev_layout.addWidget(self.prev_value)
        prev_layout.addWidget(self.prev_meta)

        self.prev_card.hide()

        # ---- Buttons
        btns = QHBoxLayout()
        btns.setSpacing(12)

        self.again_btn = QPushButton("Train again")
        self.again_btn.setCursor(Qt.PointingHandCursor)
        self.again_btn.clicked.connect(on_train_again)
        self.again_btn.setStyleSheet(button_qss("34,197,94", 0.14))

        self.change_btn = QPushButton("Change settings")
        self.change_btn.setCursor(Qt.PointingHandCursor)
        self.change_btn.clicked.connect(on_change_settings)
        self.change_btn.setStyleSheet(button_qss())

        btns.addStretch(1)
        btns.addWidget(self.again_btn)
        btns.addWidget(self.change_btn)
        btns.addStretch(1)

        root.addWidget(self.title)
        root.addWidget(self.current_card)
        root.addWidget(self.prev_card)
        root.addSpacing(8)
        root.addLayout(btns)

    def set_summary(self, s: RunSummary, stopped: bool = False,
                    previous: Optional[SessionHistoryEntry] = None):
        self.title.setText("Training Stopped" if stopped else "Training Complete")
        self.time_lbl.setText(f"Total time: {s.total_time}")
        self.sessions_lbl.setText(f"Sessions: {s.sessions_completed} / {s.total_sessions}")
        self.hits_lbl.setText(f"Hits: {s.hits_completed} / {s.expected_hits}")
        self.rate_lbl.setText(f"Completion: {s.completion_rate}%")
        self.hpm_lbl.setText(f"Hits per minute: {s.hits_per_minute:g}")
        self.pace_lbl.setText(f"Average pace: {s.average_pace}")

        if previous is None:
            self.prev_card.hide()
            return

        dt_utc = _parse_iso(previous.timestamp)
        when = _relative_day_label(dt_utc) if dt_utc else "Recent"
        rate = completion_rate(previous.hits_completed, previous.total_hits)

        self.prev_value.setText(
            f"{format_time(previous.duration_ms)}  •  {previous.hits_completed} hits  •  {rate}%"
        )
        self.prev_meta.setText(
            f"{when}  •  {previous.difficulty_id}  •  {previous.training_type}"
            + ("  •  stopped" if previous.aborted else "")
        )
        self.prev_card.show()
