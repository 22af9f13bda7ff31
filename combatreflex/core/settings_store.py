from dataclasses import dataclass, asdict

from combatreflex.core.difficulty import DEFAULT_DIFFICULTY_ID, DIFFICULTY_IDS
from combatreflex.core.storage import JsonStore
from combatreflex.training.program import Mode, TrainingType, clamp_sessions

KEY_PREFERENCES = "preferences"


@dataclass
class TrainingPrefs:
    mode: str = Mode.BOTH.value
    training_type: str = TrainingType.SINGLE.value
    difficulty_id: str = DEFAULT_DIFFICULTY_ID
    number_of_sessions: int = 2
    mid_rest: bool = False


class SettingsStore:
    """Last-used configuration."""

    def __init__(self, store: JsonStore):
        self.store = store

    def load(self) -> TrainingPrefs:
        data = self.store.get(KEY_PREFERENCES, None)
        if not isinstance(data, dict):
            return TrainingPrefs()

        s = TrainingPrefs()
        for k, v in data.items():
            if hasattr(s, k):
                setattr(s, k, v)

        # anything stale or hand-edited falls back to its default
        if s.mode not in {m.value for m in Mode}:
            s.mode = Mode.BOTH.value
        if s.training_type not in {t.value for t in TrainingType}:
            s.training_type = TrainingType.SINGLE.value
        if s.difficulty_id not in DIFFICULTY_IDS:
            s.difficulty_id = DEFAULT_DIFFICULTY_ID
        s.number_of_sessions = clamp_sessions(s.number_of_sessions)
        s.mid_rest = bool(s.mid_rest)
        return s

    def save(self, prefs: TrainingPrefs) -> None:
        self.store.set(KEY_PREFERENCES, asdict(prefs))
