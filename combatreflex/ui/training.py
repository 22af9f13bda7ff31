from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QHBoxLayout, QProgressBar, QFrame, QPushButton
)
from PySide6.QtCore import Qt, QTimer, QElapsedTimer, Signal

from combatreflex.training.collaborators import Frame
from combatreflex.training.hold import HoldToConfirm
from combatreflex.training.phases import Phase
from combatreflex.training.program import Action
from combatreflex.ui.style import KICK_COLOR, PUNCH_COLOR, WARN_COLOR


def card() -> QFrame:
    f = QFrame()
    f.setStyleSheet("""
        QFrame {
            background: rgba(255,255,255,0.05);
            border: 1px solid rgba(255,255,255,0.08);
            border-radius: 16px;
        }
    """)
    return f


class HoldButton(QPushButton):
    """
    Press and keep holding to confirm. The fill tracks hold progress and
    snaps back if released early. Emits `confirmed` once per full hold.
    """
    confirmed = Signal()

    def __init__(self, text: str, hold_ms: int = 1000):
        super().__init__(text)
        self._label = text
        self.gesture = HoldToConfirm(hold_ms)
        self._clock = QElapsedTimer()
        self._clock.start()

        self._anim_timer = QTimer(self)
        self._anim_timer.setInterval(16)  # ~60fps
        self._anim_timer.timeout.connect(self._animate)

        self.setCursor(Qt.PointingHandCursor)
        self.pressed.connect(self._on_press)
        self.released.connect(self._on_release)
        self._paint(0.0)

    def _now(self) -> int:
        return int(self._clock.elapsed())

    def _on_press(self):
        self.gesture.press(self._now())
        self._anim_timer.start()

    def _on_release(self):
        self.gesture.release(self._now())
        self._anim_timer.stop()
        self._paint(0.0)

    def _animate(self):
        now = self._now()
        if self.gesture.poll(now):
            self._anim_timer.stop()
            self._paint(0.0)
            self.confirmed.emit()
            return
        self._paint(self.gesture.progress(now))

    def _paint(self, pct: float):
        stop = max(0.0, min(1.0, pct / 100.0))
        edge = min(1.0, stop + 0.001)
        self.setText(self._label if stop <= 0 else "Keep holding…")
        self.setStyleSheet(f"""
            QPushButton {{
                background: qlineargradient(x1:0, y1:0, x2:1, y2:0,
                    stop:0 rgba(239,68,68,0.45), stop:{stop:.3f} rgba(239,68,68,0.45),
                    stop:{edge:.3f} rgba(239,68,68,0.12), stop:1 rgba(239,68,68,0.12));
                border: 1px solid rgba(239,68,68,0.28);
                border-radius: 14px;
                padding: 10px 14px;
                font-weight: 750;
                min-width: 180px;
            }}
        """)


class TrainingScreen(QWidget):
    """
    Countdown, live cues and the mid-session rest.
    Passive: `render(frame)` is called by the window for every scheduler
    update; the only input is the hold-to-stop button.
    """
    def __init__(self, on_stop):
        super().__init__()
        self.on_stop = on_stop

        # --- Header
        header = QHBoxLayout()
        header.setSpacing(12)

        self.title = QLabel("Get ready")
        self.title.setAlignment(Qt.AlignLeft)
        self.title.setStyleSheet("font-size: 24px; font-weight: 750; letter-spacing: 0.2px;")

        self.stop_btn = HoldButton("Hold to stop")
        self.stop_btn.confirmed.connect(self.on_stop)

        header.addWidget(self.title, 1)
        header.addWidget(self.stop_btn, 0, Qt.AlignRight)

        self.subtitle = QLabel("")
        self.subtitle.setObjectName("muted")
        self.subtitle.setAlignment(Qt.AlignLeft)

        # --- Big cue
        cue_card = card()
        cue_layout = QVBoxLayout(cue_card)
        cue_layout.setContentsMargins(16, 24, 16, 24)

        self.cue = QLabel("")
        self.cue.setAlignment(Qt.AlignCenter)
        self.cue.setMinimumHeight(260)
        cue_layout.addWidget(self.cue)

        # --- Progress
        prog_card = card()
        prog_layout = QVBoxLayout(prog_card)
        prog_layout.setContentsMargins(16, 14, 16, 14)
        prog_layout.setSpacing(8)

        self.progress = QProgressBar()
        self.progress.setRange(0, 100)
        self.progress.setValue(0)
        self.progress_lbl = QLabel("")
        self.progress_lbl.setObjectName("muted")
        prog_layout.addWidget(self.progress)
        prog_layout.addWidget(self.progress_lbl)

        root = QVBoxLayout(self)
        root.setContentsMargins(22, 20, 22, 20)
        root.setSpacing(12)
        root.addLayout(header)
        root.addWidget(self.subtitle)
        root.addSpacing(6)
        root.addWidget(cue_card, 1)
        root.addWidget(prog_card)

    # -----------------------
    # Rendering
    # -----------------------

    def _set_cue(self, text: str, color: str = "#e7eef7", size: int = 96):
        self.cue.setText(text)
        self.cue.setStyleSheet(f"font-size: {size}px; font-weight: 900; color: {color};")

    def render(self, f: Frame):
        self.subtitle.setText(f"Session {f.session} of {f.total_sessions}")

        if f.phase is Phase.COUNTDOWN:
            self.title.setText("Get ready")
            if f.countdown > 0:
                self._set_cue(str(f.countdown), size=120)
            else:
                self._set_cue("GO!", color=WARN_COLOR, size=110)

        elif f.phase is Phase.MID_REST:
            self.title.setText("Catch your breath")
            self._set_cue("REST", color=WARN_COLOR, size=80)

        elif f.phase is Phase.TRAINING:
            self.title.setText("Combo training" if f.is_combo else "Training")
            if f.action is Action.PUNCH:
                self._set_cue("PUNCH", color=PUNCH_COLOR)
            elif f.action is Action.KICK:
                self._set_cue("KICK", color=KICK_COLOR)
            else:
                self._set_cue("")

        unit = "combos" if f.is_combo else "hits"
        pct = int(f.current * 100 / f.total) if f.total > 0 else 0
        self.progress.setValue(max(0, min(100, pct)))
        self.progress_lbl.setText(f"{f.current} / {f.total} {unit}" if f.total else "")
