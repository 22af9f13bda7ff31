# combatreflex/ui/profile_editor.py

import logging
from dataclasses import replace
from typing import Dict, Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QLabel, QFrame, QHBoxLayout, QPushButton,
    QFormLayout, QSpinBox, QCheckBox, QComboBox, QLineEdit
)
from PySide6.QtCore import Qt

from combatreflex.core.difficulty import (
    DIFFICULTIES,
    ComboSettings,
    DifficultyProfile,
    Range,
    RestSettings,
)
from combatreflex.core.profiles import (
    ProfileLibrary,
    ProfileValidationError,
    ReadOnlyProfileError,
    TrainingProfile,
    validate_profile,
)

log = logging.getLogger(__name__)


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


def _spin(lo: int, hi: int, step: int = 1, suffix: str = "") -> QSpinBox:
    s = QSpinBox()
    s.setRange(lo, hi)
    s.setSingleStep(step)
    if suffix:
        s.setSuffix(suffix)
    return s


class _RangeEdit(QWidget):
    def __init__(self, lo: int, hi: int, step: int = 1, suffix: str = ""):
        super().__init__()
        lay = QHBoxLayout(self)
        lay.setContentsMargins(0, 0, 0, 0)
        lay.setSpacing(6)
        self.min = _spin(lo, hi, step, suffix)
        self.max = _spin(lo, hi, step, suffix)
        lay.addWidget(self.min)
        lay.addWidget(QLabel("to"))
        lay.addWidget(self.max)

    def set(self, r: Range):
        self.min.setValue(int(r.min))
        self.max.setValue(int(r.max))

    def get(self) -> Range:
        return Range(int(self.min.value()), int(self.max.value()))


class ProfileEditorScreen(QWidget):
    """
    Custom training profiles. The built-in Default profile can be viewed
    and duplicated but not edited. Saving is blocked while there are
    validation errors; warnings (outside recommended values) are shown
    but do not block.
    """
    def __init__(self, library: ProfileLibrary, on_back):
        super().__init__()
        self.library = library
        self.on_back = on_back

        self._profile: Optional[TrainingProfile] = None
        self._working: Dict[str, DifficultyProfile] = {}
        self._diff_id = DIFFICULTIES[0].id

        root = QVBoxLayout(self)
        root.setContentsMargins(22, 20, 22, 20)
        root.setSpacing(12)

        header = QHBoxLayout()
        title = QLabel("Profiles")
        title.setStyleSheet("font-size: 24px; font-weight: 800;")
        header.addWidget(title, 1)

        back = QPushButton("Back")
        back.setCursor(Qt.PointingHandCursor)
        back.clicked.connect(self.on_back)
        back.setStyleSheet("""
            QPushButton {
                background: rgba(255,255,255,0.08);
                border: 1px solid rgba(255,255,255,0.14);
                border-radius: 12px;
                padding: 10px 14px;
                font-weight: 750;
            }
            QPushButton:hover { background: rgba(255,255,255,0.12); }
        """)
        header.addWidget(back, 0, Qt.AlignRight)
        root.addLayout(header)

        # --- Profile picker
        picker = QHBoxLayout()
        self.profile_box = QComboBox()
        self.profile_box.currentIndexChanged.connect(self._pick_profile)

        self.new_btn = QPushButton("New")
        self.dup_btn = QPushButton("Duplicate")
        self.del_btn = QPushButton("Delete")
        self.new_btn.clicked.connect(self._new)
        self.dup_btn.clicked.connect(self._duplicate)
        self.del_btn.clicked.connect(self._delete)

        picker.addWidget(self.profile_box, 1)
        for b in (self.new_btn, self.dup_btn, self.del_btn):
            b.setCursor(Qt.PointingHandCursor)
            picker.addWidget(b)
        root.addLayout(picker)

        self.read_only_lbl = QLabel("The default profile is read-only. Duplicate it to make changes.")
        self.read_only_lbl.setObjectName("muted")
        root.addWidget(self.read_only_lbl)

        # --- Form
        c = card()
        root.addWidget(c)

        wrap = QVBoxLayout(c)
        wrap.setContentsMargins(16, 14, 16, 14)

        form = QFormLayout()
        form.setHorizontalSpacing(18)
        form.setVerticalSpacing(10)
        wrap.addLayout(form)

        self.name = QLineEdit()
        self.diff_box = QComboBox()
        for d in DIFFICULTIES:
            self.diff_box.addItem(d.name, d.id)
        self.diff_box.currentIndexChanged.connect(self._pick_difficulty)

        self.interval = _RangeEdit(0, 20000, 50, " ms")
        self.total_hits = _RangeEdit(0, 500)
        self.combo_size = _RangeEdit(0, 10)
        self.strike_interval = _RangeEdit(0, 5000, 50, " ms")
        self.rest_between = _RangeEdit(0, 30000, 250, " ms")
        self.total_combos = _spin(0, 200)
        self.rest_enabled = QCheckBox("Break between sessions")
        self.break_duration = _spin(0, 300000, 1000, " ms")

        form.addRow("Profile name", self.name)
        form.addRow("Difficulty", self.diff_box)
        form.addRow("Interval", self.interval)
        form.addRow("Hits per session", self.total_hits)
        form.addRow("Combo size", self.combo_size)
        form.addRow("Strike interval", self.strike_interval)
        form.addRow("Rest between combos", self.rest_between)
        form.addRow("Combos per session", self.total_combos)
        form.addRow("", self.rest_enabled)
        form.addRow("Break duration", self.break_duration)

        self._fields = (
            self.name, self.interval, self.total_hits, self.combo_size,
            self.strike_interval, self.rest_between, self.total_combos,
            self.rest_enabled, self.break_duration,
        )

        self.errors = QLabel("")
        self.errors.setWordWrap(True)
        self.errors.setStyleSheet("font-size: 13px; color: rgba(239,68,68,0.92); font-weight: 650;")
        self.warnings = QLabel("")
        self.warnings.setWordWrap(True)
        self.warnings.setStyleSheet("font-size: 12px; color: rgba(250,204,21,0.90);")
        wrap.addWidget(self.errors)
        wrap.addWidget(self.warnings)

        btns = QHBoxLayout()
        btns.addStretch(1)

        self.reset_btn = QPushButton("Reset difficulty")
        self.reset_btn.setCursor(Qt.PointingHandCursor)
        self.reset_btn.clicked.connect(self._reset_difficulty)

        self.save_btn = QPushButton("Save")
        self.save_btn.setCursor(Qt.PointingHandCursor)
        self.save_btn.clicked.connect(self._save)

        for b in (self.reset_btn, self.save_btn):
            b.setStyleSheet("""
                QPushButton {
                    background: rgba(255,255,255,0.10);
                    border: 1px solid rgba(255,255,255,0.18);
                    border-radius: 12px;
                    padding: 10px 14px;
                    font-weight: 800;
                }
                QPushButton:hover { background: rgba(255,255,255,0.14); }
                QPushButton:pressed { background: rgba(255,255,255,0.20); }
                QPushButton:disabled { color: rgba(231,238,247,0.35); }
            """)

        btns.addWidget(self.reset_btn)
        btns.addWidget(self.save_btn)
        wrap.addSpacing(10)
        wrap.addLayout(btns)

        self.refresh()

    # -----------------------
    # Profile list
    # -----------------------

    def refresh(self, select_id: Optional[str] = None):
        select_id = select_id or self.library.active_id
        self.profile_box.blockSignals(True)
        self.profile_box.clear()
        for p in self.library.profiles:
            self.profile_box.addItem(p.name + (" (read-only)" if p.is_read_only else ""), p.id)
        self.profile_box.setCurrentIndex(max(0, self.profile_box.findData(select_id)))
        self.profile_box.blockSignals(False)
        self._pick_profile()

    def _pick_profile(self, *_):
        p = self.library.get(str(self.profile_box.currentData()))
        if p is None:
            p = self.library.default
        self._profile = p
        self._working = {d.id: d for d in p.difficulties}
        self.name.setText(p.name)

        editable = not (p.is_default or p.is_read_only)
        for w in self._fields:
            w.setEnabled(editable)
        self.save_btn.setEnabled(editable)
        self.reset_btn.setEnabled(editable)
        self.del_btn.setEnabled(editable)
        self.read_only_lbl.setVisible(not editable)

        self._load_difficulty(self._diff_id)
        self._show_report([], [])

    # -----------------------
    # Difficulty form
    # -----------------------

    def _pick_difficulty(self, *_):
        self._stash()
        self._diff_id = str(self.diff_box.currentData())
        self._load_difficulty(self._diff_id)

    def _load_difficulty(self, diff_id: str):
        d = self._working.get(diff_id)
        if d is None:
            return
        self.diff_box.blockSignals(True)
        self.diff_box.setCurrentIndex(max(0, self.diff_box.findData(diff_id)))
        self.diff_box.blockSignals(False)

        self.interval.set(d.interval)
        self.total_hits.set(d.total_hits)
        self.combo_size.set(d.combo.combo_size)
        self.strike_interval.set(d.combo.strike_interval)
        self.rest_between.set(d.combo.rest_between_combos)
        self.total_combos.setValue(int(d.combo.total_combos))
        self.rest_enabled.setChecked(bool(d.rest.enabled))
        self.break_duration.setValue(int(d.rest.break_duration))

    def _read_difficulty(self, base: DifficultyProfile) -> DifficultyProfile:
        interval = self.interval.get()
        return replace(
            base,
            min_interval=interval.min,
            max_interval=interval.max,
            total_hits=self.total_hits.get(),
            combo=ComboSettings(
                combo_size=self.combo_size.get(),
                strike_interval=self.strike_interval.get(),
                rest_between_combos=self.rest_between.get(),
                total_combos=int(self.total_combos.value()),
            ),
            rest=RestSettings(
                enabled=bool(self.rest_enabled.isChecked()),
                break_duration=int(self.break_duration.value()),
            ),
        )

    def _stash(self):
        if self._profile is None or self._profile.is_read_only:
            return
        base = self._working.get(self._diff_id)
        if base is not None:
            self._working[self._diff_id] = self._read_difficulty(base)

    def _draft(self) -> TrainingProfile:
        self._stash()
        return replace(
            self._profile,
            name=self.name.text().strip(),
            difficulties=[self._working[d.id] for d in DIFFICULTIES],
        )

    def _show_report(self, errors, warnings):
        self.errors.setText("\n".join(errors))
        self.errors.setVisible(bool(errors))
        self.warnings.setText("\n".join(warnings))
        self.warnings.setVisible(bool(warnings))

    # -----------------------
    # Actions
    # -----------------------

    def _save(self):
        draft = self._draft()
        report = validate_profile(draft)
        self._show_report(report.errors, report.warnings)
        if not report.ok:
            return
        try:
            saved = self.library.update(draft)
        except (ReadOnlyProfileError, ProfileValidationError) as e:
            log.warning("Profile not saved: %s", e)
            self._show_report([str(e)], report.warnings)
            return
        self.refresh(select_id=saved.id)
        self._show_report([], report.warnings)

    def _reset_difficulty(self):
        builtin = next(d for d in DIFFICULTIES if d.id == self._diff_id)
        self._working[self._diff_id] = builtin
        self._load_difficulty(self._diff_id)

    def _new(self):
        p = self.library.create(f"Profile {len(self.library.profiles)}")
        self.library.set_active(p.id)
        self.refresh(select_id=p.id)

    def _duplicate(self):
        if self._profile is None:
            return
        p = self.library.duplicate(self._profile.id, f"{self._profile.name} copy")
        if p is not None:
            self.library.set_active(p.id)
            self.refresh(select_id=p.id)

    def _delete(self):
        if self._profile is None:
            return
        self.library.delete(self._profile.id)
        self.refresh()
