# combatreflex/ui/main_window.py
import logging
import sys
from typing import Optional

from PySide6.QtWidgets import (
    QApplication,
    QMainWindow,
    QStackedWidget,
    QWidget,
    QVBoxLayout,
    QGraphicsDropShadowEffect,
)
from PySide6.QtCore import Qt, QRectF
from PySide6.QtGui import QPainterPath, QRegion, QGuiApplication

from combatreflex.core.audio import CueSounds
from combatreflex.core.logger import SessionLogger
from combatreflex.core.logging_utils import setup_logging
from combatreflex.core.profiles import ProfileLibrary, ProfileValidationError
from combatreflex.core.settings_store import SettingsStore, TrainingPrefs
from combatreflex.core.stats import summarize_run
from combatreflex.core.storage import JsonStore, SessionHistory
from combatreflex.core.wake_lock import SystemWakeLock
from combatreflex.training.collaborators import Frame
from combatreflex.training.phases import Phase
from combatreflex.training.program import TrainingProgram
from combatreflex.training.scheduler import SessionScheduler
from combatreflex.ui.break_screen import BreakScreen
from combatreflex.ui.config import ConfigScreen
from combatreflex.ui.history import SessionHistoryScreen
from combatreflex.ui.prefs import get_sound_enabled, get_window_geometry, save_window_geometry
from combatreflex.ui.profile_editor import ProfileEditorScreen
from combatreflex.ui.qt_timer import QtTimerDriver
from combatreflex.ui.style import APP_QSS
from combatreflex.ui.summary import SummaryScreen
from combatreflex.ui.titlebar import TitleBar
from combatreflex.ui.training import TrainingScreen

log = logging.getLogger(__name__)


# ==================================================
# Main Window
# ==================================================
class MainWindow(QMainWindow):
    """
    Owns the stores and platform collaborators, and acts as the
    scheduler's presenter: every frame is routed to the screen for its
    phase.
    """
    def __init__(self, store: Optional[JsonStore] = None, audio=None, wake_lock=None):
        super().__init__()

        self.setWindowTitle("Combat Reflex")
        self.resize(980, 680)

        self.setWindowFlag(Qt.FramelessWindowHint, True)
        self.setAttribute(Qt.WA_TranslucentBackground, True)

        self._radius = 18
        self._shadow_margin = 22

        # --- Stores + collaborators
        self.store = store or JsonStore()
        self.settings_store = SettingsStore(self.store)
        self.library = ProfileLibrary(self.store)
        self.history_store = SessionHistory(self.store)

        if audio is None:
            audio = CueSounds()
            if get_sound_enabled():
                audio.init()
        self.audio = audio
        self.wake_lock = wake_lock if wake_lock is not None else SystemWakeLock()

        self.driver = QtTimerDriver(parent=self)
        self.scheduler: Optional[SessionScheduler] = None
        self._run_logger: Optional[SessionLogger] = None
        self._stopped = False

        # --- Frame
        outer = QWidget()
        outer.setAttribute(Qt.WA_TranslucentBackground, True)

        outer_layout = QVBoxLayout(outer)
        outer_layout.setContentsMargins(
            self._shadow_margin,
            self._shadow_margin,
            self._shadow_margin,
            self._shadow_margin,
        )
        outer_layout.setSpacing(0)

        self.container = QWidget()
        self.container.setObjectName("appContainer")
        self.container.setStyleSheet(f"""
            QWidget#appContainer {{
                background: rgba(11, 15, 20, 0.96);
                border-radius: {self._radius}px;
            }}
        """)

        shadow = QGraphicsDropShadowEffect(self)
        shadow.setBlurRadius(42)
        shadow.setOffset(0, 10)
        shadow.setColor(Qt.black)
        self.container.setGraphicsEffect(shadow)

        container_layout = QVBoxLayout(self.container)
        container_layout.setContentsMargins(12, 12, 12, 12)
        container_layout.setSpacing(10)

        self.stack = QStackedWidget()
        self.stack.setStyleSheet("""
            QStackedWidget {
                background: rgba(255,255,255,0.02);
                border: 1px solid rgba(255,255,255,0.06);
                border-radius: 14px;
            }
        """)

        self.titlebar = TitleBar(
            self,
            "Combat Reflex",
            on_history=self.go_history,
            on_profiles=self.go_profiles,
        )

        container_layout.addWidget(self.titlebar)
        container_layout.addWidget(self.stack)
        outer_layout.addWidget(self.container)
        self.setCentralWidget(outer)

        # --- Screens
        self.config = ConfigScreen(
            settings=self.settings_store,
            library=self.library,
            on_start=self.start_program,
        )
        self.training = TrainingScreen(on_stop=self.stop_program)
        self.break_screen = BreakScreen(on_skip=self.skip_break, on_stop=self.stop_program)
        self.summary = SummaryScreen(
            on_train_again=self.train_again,
            on_change_settings=self.go_config,
        )
        self.history = SessionHistoryScreen(history=self.history_store, on_back=self.go_config)
        self.profiles = ProfileEditorScreen(library=self.library, on_back=self.go_config)

        for w in (
            self.config,
            self.training,
            self.break_screen,
            self.summary,
            self.history,
            self.profiles,
        ):
            self.stack.addWidget(w)

        self.stack.setCurrentWidget(self.config)

        geometry = get_window_geometry()
        if geometry is None or not self.restoreGeometry(geometry):
            self._place_safely()

        app = QGuiApplication.instance()
        if app is not None:
            app.applicationStateChanged.connect(self._on_app_state)

    # -----------------------
    # Program lifecycle
    # -----------------------

    def start_program(self, prefs: TrainingPrefs):
        try:
            difficulty = self.library.effective_settings(prefs.difficulty_id)
        except (KeyError, ProfileValidationError) as e:
            log.error("Cannot start: %s", e)
            self.config.refresh()
            return

        program = TrainingProgram(
            mode=prefs.mode,
            training_type=prefs.training_type,
            number_of_sessions=prefs.number_of_sessions,
            difficulty=difficulty,
            mid_rest=prefs.mid_rest,
        )

        if self.scheduler is not None:
            self.scheduler.teardown()

        self.scheduler = SessionScheduler(
            program,
            timers=self.driver.queue,
            presenter=self,
            audio=self.audio,
            wake_lock=self.wake_lock,
            history=self.history_store,
        )
        self.scheduler.add_listener(self._on_event)
        log.info(
            "Starting %s/%s on %s, %d session(s)",
            program.mode.value, program.training_type.value,
            difficulty.id, program.number_of_sessions,
        )
        self._begin()
        self.scheduler.start()

    def _begin(self):
        """Fresh CSV log per run."""
        self._stopped = False
        if self._run_logger is not None:
            self.scheduler.remove_listener(self._run_logger.on_event)
            self._run_logger.close()
        try:
            self._run_logger = SessionLogger()
            self.scheduler.add_listener(self._run_logger.on_event)
        except OSError as e:
            log.warning("Run log unavailable: %r", e)
            self._run_logger = None
        self.titlebar.set_running(True)

    def stop_program(self):
        if self.scheduler is not None:
            self.scheduler.stop()

    def skip_break(self):
        if self.scheduler is not None:
            self.scheduler.skip_break()

    def train_again(self):
        if self.scheduler is None or self.scheduler.phase is not Phase.COMPLETE:
            self.go_config()
            return
        self._begin()
        self.scheduler.train_again()

    def _on_event(self, event: str, payload: dict):
        if event == "stop":
            self._stopped = True
        elif event == "complete":
            self.titlebar.set_running(False)

    # -----------------------
    # Presenter
    # -----------------------

    def render(self, frame: Frame):
        phase = frame.phase
        if phase not in (Phase.IDLE, Phase.COMPLETE):
            self.titlebar.set_status(f"Session {frame.session}/{frame.total_sessions} · {phase.value}")
        if phase in (Phase.COUNTDOWN, Phase.TRAINING, Phase.MID_REST, Phase.SESSION_END):
            self.training.render(frame)
            self.stack.setCurrentWidget(self.training)
        elif phase is Phase.BREAK:
            self.break_screen.render(frame)
            self.stack.setCurrentWidget(self.break_screen)
        elif phase is Phase.COMPLETE:
            self._show_summary()
        elif phase is Phase.IDLE:
            self.stack.setCurrentWidget(self.config)

    def _show_summary(self):
        sch = self.scheduler
        s = sch.state
        result = summarize_run(
            sch.run_entries,
            s.program_start_ms,
            s.program_end_ms,
            total_sessions=sch.program.number_of_sessions,
        )
        run_ids = {e.id for e in sch.run_entries}
        previous = next((e for e in self.history_store.load() if e.id not in run_ids), None)
        self.summary.set_summary(result, stopped=self._stopped, previous=previous)
        self.stack.setCurrentWidget(self.summary)

    # -----------------------
    # Navigation
    # -----------------------

    def _idle(self) -> bool:
        return self.scheduler is None or self.scheduler.phase in (Phase.IDLE, Phase.COMPLETE)

    def go_config(self, *_):
        if self.scheduler is not None and self.scheduler.phase is Phase.COMPLETE:
            self.scheduler.reset()
        self.config.refresh()
        self.stack.setCurrentWidget(self.config)

    def go_history(self, *_):
        if not self._idle():
            return
        self.history.refresh()
        self.stack.setCurrentWidget(self.history)

    def go_profiles(self):
        if not self._idle():
            return
        self.profiles.refresh()
        self.stack.setCurrentWidget(self.profiles)

    def _on_app_state(self, state):
        if self.scheduler is not None:
            self.scheduler.handle_visibility(state == Qt.ApplicationActive)

    # -----------------------
    # Window shape & shutdown
    # -----------------------

    def _place_safely(self):
        screen = QGuiApplication.primaryScreen()
        if screen:
            g = screen.availableGeometry()
            self.move(g.x() + 80, g.y() + 80)

    def _apply_rounded_mask(self):
        w, h = self.width(), self.height()
        m, r = self._shadow_margin, self._radius
        rect = QRectF(m, m, w - 2 * m, h - 2 * m)
        path = QPainterPath()
        path.addRoundedRect(rect, r, r)
        self.setMask(QRegion(path.toFillPolygon().toPolygon()))

    def showEvent(self, event):
        super().showEvent(event)
        self._apply_rounded_mask()

    def resizeEvent(self, event):
        super().resizeEvent(event)
        self._apply_rounded_mask()

    def closeEvent(self, event):
        if self.scheduler is not None:
            self.scheduler.teardown()
        self.driver.stop()
        if self._run_logger is not None:
            self._run_logger.close()
        save_window_geometry(self.saveGeometry())
        super().closeEvent(event)


def launch_app():
    app = QApplication(sys.argv)
    app.setOrganizationName("CombatReflex")
    app.setApplicationName("CombatReflex")
    # after the app name is set, so logs land in the app-data dir
    setup_logging()
    app.setStyleSheet(APP_QSS)
    window = MainWindow()
    window.show()
    sys.exit(app.exec())
