# combatreflex/core/profiles.py
from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from combatreflex.core.difficulty import (
    DIFFICULTIES,
    ComboSettings,
    DifficultyProfile,
    Range,
    RestSettings,
    get_builtin,
)

log = logging.getLogger(__name__)

DEFAULT_PROFILE_ID = "default"

KEY_PROFILES = "profiles"
KEY_ACTIVE = "active_profile"


# Outside these values a profile still saves, it just gets a warning.
RECOMMENDED_VALUES: Dict[str, Dict[str, Range]] = {
    "very-easy": {
        "min_interval": Range(2000, 3000),
        "max_interval": Range(3500, 5000),
        "total_hits": Range(15, 20),
        "break_duration": Range(30000, 45000),
    },
    "easy": {
        "min_interval": Range(1200, 1800),
        "max_interval": Range(2200, 3000),
        "total_hits": Range(25, 35),
        "break_duration": Range(25000, 35000),
    },
    "normal": {
        "min_interval": Range(800, 1200),
        "max_interval": Range(1500, 2000),
        "total_hits": Range(40, 50),
        "break_duration": Range(20000, 30000),
    },
    "hard": {
        "min_interval": Range(500, 800),
        "max_interval": Range(1000, 1400),
        "total_hits": Range(60, 75),
        "break_duration": Range(15000, 25000),
    },
    "very-hard": {
        "min_interval": Range(200, 400),
        "max_interval": Range(600, 1000),
        "total_hits": Range(85, 100),
        "break_duration": Range(10000, 20000),
    },
}


class ProfileValidationError(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class UnknownDifficultyError(KeyError):
    pass


class ReadOnlyProfileError(RuntimeError):
    """The built-in profile (or any read-only one) cannot be edited."""


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class TrainingProfile:
    id: str
    name: str
    difficulties: List[DifficultyProfile]
    is_default: bool = False
    is_read_only: bool = False
    created_at: int = 0
    updated_at: int = 0

    def difficulty(self, difficulty_id: str) -> Optional[DifficultyProfile]:
        for d in self.difficulties:
            if d.id == difficulty_id:
                return d
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "is_default": self.is_default,
            "is_read_only": self.is_read_only,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "difficulties": [d.to_dict() for d in self.difficulties],
        }


@dataclass
class ValidationReport:
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


def create_default_profile() -> TrainingProfile:
    return TrainingProfile(
        id=DEFAULT_PROFILE_ID,
        name="Default",
        difficulties=list(DIFFICULTIES),
        is_default=True,
        is_read_only=True,
    )


def create_new_profile(name: str) -> TrainingProfile:
    now = _now_ms()
    return TrainingProfile(
        id=str(uuid.uuid4()),
        name=name,
        difficulties=list(DIFFICULTIES),
        created_at=now,
        updated_at=now,
    )


def duplicate_profile(source: TrainingProfile, name: str) -> TrainingProfile:
    now = _now_ms()
    # DifficultyProfile is frozen, sharing instances is safe
    return TrainingProfile(
        id=str(uuid.uuid4()),
        name=name,
        difficulties=list(source.difficulties),
        created_at=now,
        updated_at=now,
    )


# -----------------------
# Merge (override over default)
# -----------------------

def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _leaf(override: Dict[str, Any], key: str, default, cast=int):
    v = override.get(key)
    if v is None or isinstance(v, (dict, list)):
        return default
    if cast is bool:
        # "false" and 0 are not booleans; only a real bool overrides
        return v if isinstance(v, bool) else default
    try:
        return cast(v)
    except (TypeError, ValueError):
        return default


def _merge_range(override: Any, default: Range) -> Range:
    o = _as_dict(override)
    return Range(
        min=_leaf(o, "min", default.min),
        max=_leaf(o, "max", default.max),
    )


def merge_difficulty(override: Any, default: DifficultyProfile) -> DifficultyProfile:
    """Field-by-field merge; any missing leaf comes from `default`."""
    o = _as_dict(override)
    combo = _as_dict(o.get("combo"))
    rest = _as_dict(o.get("rest"))

    name = o.get("name")
    if not isinstance(name, str) or not name.strip():
        name = default.name

    return DifficultyProfile(
        id=default.id,
        name=name,
        min_interval=_leaf(o, "min_interval", default.min_interval),
        max_interval=_leaf(o, "max_interval", default.max_interval),
        total_hits=_merge_range(o.get("total_hits"), default.total_hits),
        combo=ComboSettings(
            combo_size=_merge_range(combo.get("combo_size"), default.combo.combo_size),
            strike_interval=_merge_range(combo.get("strike_interval"), default.combo.strike_interval),
            rest_between_combos=_merge_range(
                combo.get("rest_between_combos"), default.combo.rest_between_combos
            ),
            total_combos=_leaf(combo, "total_combos", default.combo.total_combos),
        ),
        rest=RestSettings(
            enabled=_leaf(rest, "enabled", default.rest.enabled, cast=bool),
            break_duration=_leaf(rest, "break_duration", default.rest.break_duration),
        ),
    )


def merge_with_defaults(partial: Any) -> TrainingProfile:
    p = _as_dict(partial)

    by_id: Dict[str, Any] = {}
    raw = p.get("difficulties")
    if isinstance(raw, list):
        for item in raw:
            if isinstance(item, dict) and isinstance(item.get("id"), str):
                by_id[item["id"]] = item

    difficulties = [merge_difficulty(by_id.get(d.id), d) for d in DIFFICULTIES]

    now = _now_ms()
    pid = p.get("id")
    name = p.get("name")
    return TrainingProfile(
        id=pid if isinstance(pid, str) and pid else str(uuid.uuid4()),
        name=name if isinstance(name, str) and name else "Unnamed Profile",
        difficulties=difficulties,
        is_default=_leaf(p, "is_default", False, cast=bool),
        is_read_only=_leaf(p, "is_read_only", False, cast=bool),
        created_at=_leaf(p, "created_at", now),
        updated_at=_leaf(p, "updated_at", now),
    )


# -----------------------
# Validation
# -----------------------

def _check_range(label: str, r: Range, errors: List[str]) -> None:
    if r.min <= 0 or r.max <= 0:
        errors.append(f"{label} must be positive")
    if r.min > r.max:
        errors.append(f"{label} min cannot be greater than max")


def validate_difficulty(diff: DifficultyProfile) -> ValidationReport:
    report = ValidationReport()
    errors, warnings = report.errors, report.warnings
    n = diff.name or diff.id

    if diff.min_interval <= 0:
        errors.append(f"{n}: minInterval must be positive")
    if diff.max_interval <= 0:
        errors.append(f"{n}: maxInterval must be positive")
    if diff.min_interval > diff.max_interval:
        errors.append(f"{n}: minInterval cannot be greater than maxInterval")

    _check_range(f"{n}: totalHits", diff.total_hits, errors)
    _check_range(f"{n}: comboSize", diff.combo.combo_size, errors)
    _check_range(f"{n}: strikeInterval", diff.combo.strike_interval, errors)
    _check_range(f"{n}: restBetweenCombos", diff.combo.rest_between_combos, errors)
    if diff.combo.total_combos < 1:
        errors.append(f"{n}: totalCombos must be at least 1")

    if diff.rest.break_duration < 0:
        errors.append(f"{n}: breakDuration cannot be negative")

    rec = RECOMMENDED_VALUES.get(diff.id)
    if rec:
        values = {
            "min_interval": ("minInterval", diff.min_interval, "ms"),
            "max_interval": ("maxInterval", diff.max_interval, "ms"),
            "break_duration": ("breakDuration", diff.rest.break_duration, "ms"),
        }
        for key, (label, value, unit) in values.items():
            r = rec[key]
            if value < r.min:
                warnings.append(f"{n}: {label} ({value}{unit}) is below recommended minimum ({r.min}{unit})")
            elif value > r.max:
                warnings.append(f"{n}: {label} ({value}{unit}) is above recommended maximum ({r.max}{unit})")

        hits = rec["total_hits"]
        if diff.total_hits.min < hits.min or diff.total_hits.max > hits.max:
            warnings.append(
                f"{n}: totalHits ({diff.total_hits.min}-{diff.total_hits.max}) "
                f"is outside recommended range ({hits.min}-{hits.max})"
            )

    return report


def validate_profile(profile: TrainingProfile) -> ValidationReport:
    report = ValidationReport()
    if not profile.name or not profile.name.strip():
        report.errors.append("Profile name is required")

    for d in profile.difficulties:
        sub = validate_difficulty(d)
        report.errors.extend(sub.errors)
        report.warnings.extend(sub.warnings)
    return report


def resolve_difficulty(difficulty_id: str, profile: Optional[TrainingProfile] = None) -> DifficultyProfile:
    """
    Fully populated, error-free difficulty for the scheduler.
    Leaves missing from `profile` come from the built-in catalog.
    """
    builtin = get_builtin(difficulty_id)
    if builtin is None:
        raise UnknownDifficultyError(difficulty_id)

    override = profile.difficulty(difficulty_id) if profile is not None else None
    if override is None:
        resolved = builtin
    else:
        resolved = merge_difficulty(override.to_dict(), builtin)

    report = validate_difficulty(resolved)
    if not report.ok:
        raise ProfileValidationError(report.errors)
    for w in report.warnings:
        log.debug("difficulty %s: %s", difficulty_id, w)
    return resolved


# -----------------------
# Library (custom profiles + active id)
# -----------------------

class ProfileLibrary:
    def __init__(self, store):
        self.store = store
        self.default = create_default_profile()
        self._custom: List[TrainingProfile] = self._load_custom()

        active = self.store.get(KEY_ACTIVE, DEFAULT_PROFILE_ID)
        if not isinstance(active, str) or self.get(active) is None:
            active = DEFAULT_PROFILE_ID
        self._active_id = active

    def _load_custom(self) -> List[TrainingProfile]:
        raw = self.store.get(KEY_PROFILES, [])
        if not isinstance(raw, list):
            log.warning("Ignoring saved profiles: expected a list, got %s", type(raw).__name__)
            return []

        out: List[TrainingProfile] = []
        for item in raw:
            if not isinstance(item, dict):
                continue
            p = merge_with_defaults(item)
            p.is_default = False
            p.is_read_only = False
            out.append(p)
        return out

    def _persist(self) -> None:
        if self._custom:
            self.store.set(KEY_PROFILES, [p.to_dict() for p in self._custom])
        else:
            self.store.remove(KEY_PROFILES)
        self.store.set(KEY_ACTIVE, self._active_id)

    # ---- queries

    @property
    def profiles(self) -> List[TrainingProfile]:
        return [self.default, *self._custom]

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def active(self) -> TrainingProfile:
        return self.get(self._active_id) or self.default

    def get(self, profile_id: str) -> Optional[TrainingProfile]:
        for p in self.profiles:
            if p.id == profile_id:
                return p
        return None

    def effective_settings(self, difficulty_id: str) -> DifficultyProfile:
        return resolve_difficulty(difficulty_id, self.active)

    # ---- mutations

    def create(self, name: str) -> TrainingProfile:
        p = create_new_profile(name)
        self._custom.append(p)
        self._persist()
        return p

    def duplicate(self, source_id: str, name: str) -> Optional[TrainingProfile]:
        source = self.get(source_id)
        if source is None:
            return None
        p = duplicate_profile(source, name)
        self._custom.append(p)
        self._persist()
        return p

    def update(self, profile: TrainingProfile) -> TrainingProfile:
        current = self.get(profile.id)
        if current is None or current.is_default or current.is_read_only:
            raise ReadOnlyProfileError(f"Profile {profile.id!r} cannot be modified")

        report = validate_profile(profile)
        if not report.ok:
            raise ProfileValidationError(report.errors)

        updated = replace(profile, is_default=False, is_read_only=False, updated_at=_now_ms())
        self._custom = [updated if p.id == profile.id else p for p in self._custom]
        self._persist()
        return updated

    def delete(self, profile_id: str) -> None:
        if profile_id == DEFAULT_PROFILE_ID:
            return
        self._custom = [p for p in self._custom if p.id != profile_id]
        if self._active_id == profile_id:
            self._active_id = DEFAULT_PROFILE_ID
        self._persist()

    def set_active(self, profile_id: str) -> bool:
        if self.get(profile_id) is None:
            return False
        self._active_id = profile_id
        self.store.set(KEY_ACTIVE, profile_id)
        return True
