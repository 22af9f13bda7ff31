# combatreflex/ui/config.py

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QLabel, QPushButton, QFrame,
    QButtonGroup, QComboBox, QSpinBox, QCheckBox, QFormLayout
)
from PySide6.QtCore import Qt

from combatreflex.core.difficulty import DIFFICULTIES, MAX_SESSIONS, MIN_SESSIONS
from combatreflex.core.profiles import ProfileLibrary, ProfileValidationError
from combatreflex.core.settings_store import SettingsStore, TrainingPrefs
from combatreflex.training.program import Mode, TrainingType
from combatreflex.ui.style import button_qss, card_qss

MODE_LABELS = {
    Mode.PUNCHES: "Punches",
    Mode.KICKS: "Kicks",
    Mode.BOTH: "Both",
}

TYPE_LABELS = {
    TrainingType.SINGLE: "Single",
    TrainingType.COMBO: "Combo",
}


def _card() -> QFrame:
    f = QFrame()
    f.setStyleSheet(card_qss(18))
    return f


def _segmented(options: dict, parent) -> tuple:
    row = QHBoxLayout()
    row.setSpacing(8)
    group = QButtonGroup(parent)
    group.setExclusive(True)
    buttons = {}
    for value, label in options.items():
        b = QPushButton(label)
        b.setCheckable(True)
        b.setCursor(Qt.PointingHandCursor)
        group.addButton(b)
        row.addWidget(b)
        buttons[value] = b
    return row, buttons


class ConfigScreen(QWidget):
    """
    Program setup: mode, type, difficulty, sessions, mid-session rest and
    which profile supplies the difficulty values. Choices persist as the
    last-used preferences.
    """
    def __init__(self, settings: SettingsStore, library: ProfileLibrary, on_start):
        super().__init__()
        self.settings = settings
        self.library = library
        self.on_start = on_start

        root = QVBoxLayout(self)
        root.setContentsMargins(40, 30, 40, 30)
        root.setSpacing(14)
        root.setAlignment(Qt.AlignTop)

        title = QLabel("Combat Reflex")
        title.setStyleSheet("font-size: 28px; font-weight: 850;")

        subtitle = QLabel("React to each cue the moment it appears.")
        subtitle.setObjectName("muted")

        c = _card()
        wrap = QVBoxLayout(c)
        wrap.setContentsMargins(18, 16, 18, 16)
        wrap.setSpacing(12)

        form = QFormLayout()
        form.setHorizontalSpacing(18)
        form.setVerticalSpacing(12)
        wrap.addLayout(form)

        mode_row, self.mode_buttons = _segmented(MODE_LABELS, self)
        type_row, self.type_buttons = _segmented(TYPE_LABELS, self)

        self.difficulty = QComboBox()
        for d in DIFFICULTIES:
            self.difficulty.addItem(d.name, d.id)

        self.sessions = QSpinBox()
        self.sessions.setRange(MIN_SESSIONS, MAX_SESSIONS)

        self.mid_rest = QCheckBox("Short rest halfway through each session (single mode)")

        self.profile = QComboBox()

        form.addRow("Targets", mode_row)
        form.addRow("Training", type_row)
        form.addRow("Difficulty", self.difficulty)
        form.addRow("Sessions", self.sessions)
        form.addRow("Profile", self.profile)
        form.addRow("", self.mid_rest)

        self.details = QLabel("")
        self.details.setObjectName("muted")
        self.details.setWordWrap(True)
        wrap.addWidget(self.details)

        self.error = QLabel("")
        self.error.setWordWrap(True)
        self.error.setStyleSheet("font-size: 13px; color: rgba(239,68,68,0.92); font-weight: 650;")
        self.error.hide()

        self.start_btn = QPushButton("Start training")
        self.start_btn.setCursor(Qt.PointingHandCursor)
        self.start_btn.clicked.connect(self._start)
        self.start_btn.setStyleSheet(button_qss("34,197,94", 0.14))
        self.start_btn.setMinimumWidth(240)

        root.addWidget(title)
        root.addWidget(subtitle)
        root.addWidget(c)
        root.addWidget(self.error)
        root.addSpacing(6)
        root.addWidget(self.start_btn, alignment=Qt.AlignLeft)

        for b in self.type_buttons.values():
            b.toggled.connect(self._refresh_details)
        self.difficulty.currentIndexChanged.connect(self._refresh_details)
        self.profile.currentIndexChanged.connect(self._profile_changed)

        self.refresh()

    # -----------------------
    # Load / read
    # -----------------------

    def refresh(self):
        """Reload profiles and last-used preferences."""
        prefs = self.settings.load()

        self.profile.blockSignals(True)
        self.profile.clear()
        for p in self.library.profiles:
            self.profile.addItem(p.name, p.id)
        idx = self.profile.findData(self.library.active_id)
        self.profile.setCurrentIndex(max(0, idx))
        self.profile.blockSignals(False)

        self.mode_buttons[Mode(prefs.mode)].setChecked(True)
        self.type_buttons[TrainingType(prefs.training_type)].setChecked(True)
        self.difficulty.setCurrentIndex(max(0, self.difficulty.findData(prefs.difficulty_id)))
        self.sessions.setValue(int(prefs.number_of_sessions))
        self.mid_rest.setChecked(bool(prefs.mid_rest))
        self._refresh_details()

    def read_prefs(self) -> TrainingPrefs:
        mode = next(m for m, b in self.mode_buttons.items() if b.isChecked())
        ttype = next(t for t, b in self.type_buttons.items() if b.isChecked())
        return TrainingPrefs(
            mode=mode.value,
            training_type=ttype.value,
            difficulty_id=str(self.difficulty.currentData()),
            number_of_sessions=int(self.sessions.value()),
            mid_rest=bool(self.mid_rest.isChecked()),
        )

    # -----------------------
    # Events
    # -----------------------

    def _profile_changed(self, *_):
        pid = self.profile.currentData()
        if pid:
            self.library.set_active(str(pid))
        self._refresh_details()

    def _refresh_details(self, *_):
        combo = self.type_buttons[TrainingType.COMBO].isChecked()
        self.mid_rest.setEnabled(not combo)
        try:
            d = self.library.effective_settings(str(self.difficulty.currentData()))
        except (KeyError, ProfileValidationError) as e:
            self.details.setText("")
            self._show_error(str(e))
            return

        self._show_error("")
        if combo:
            c = d.combo
            text = (
                f"{c.total_combos} combos of {c.combo_size.min}-{c.combo_size.max} strikes, "
                f"{c.strike_interval.min}-{c.strike_interval.max} ms apart"
            )
        else:
            hits = d.total_hits
            count = str(hits.min) if hits.min == hits.max else f"{hits.min}-{hits.max}"
            text = f"{count} hits every {d.min_interval / 1000:.1f}-{d.max_interval / 1000:.1f} s"
        brk = f"{round(d.rest.break_duration / 1000)} s break" if d.rest.enabled else "no break"
        self.details.setText(f"{text}  •  {brk} between sessions")

    def _show_error(self, text: str):
        self.error.setText(text)
        self.error.setVisible(bool(text))
        self.start_btn.setEnabled(not text)

    def _start(self):
        prefs = self.read_prefs()
        self.settings.save(prefs)
        self.on_start(prefs)
