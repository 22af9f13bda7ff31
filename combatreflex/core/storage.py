import json
import logging
import random
import string
import time
from dataclasses import asdict, dataclass, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from PySide6.QtCore import QStandardPaths

log = logging.getLogger(__name__)

KEY_HISTORY = "session_history"
MAX_HISTORY_ENTRIES = 10


def app_data_dir() -> Path:
    base = QStandardPaths.writableLocation(QStandardPaths.AppDataLocation)
    p = Path(base) if base else Path.home() / ".combatreflex"
    p.mkdir(parents=True, exist_ok=True)
    return p


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class JsonStore:
    """
    Key -> JSON file store.
    Reads never raise: missing or unparsable content gives the caller's default.
    """

    def __init__(self, base_dir: Optional[Path] = None):
        self.base_dir = Path(base_dir) if base_dir is not None else app_data_dir()
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, key: str) -> Path:
        return self.base_dir / f"{key}.json"

    def get(self, key: str, default: Any = None) -> Any:
        path = self.path_for(key)
        if not path.exists():
            return default
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, ValueError) as e:
            log.warning("Unreadable %s, using defaults: %r", path.name, e)
            return default

    def set(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(value, f, ensure_ascii=False, indent=2)
        tmp.replace(path)

    def remove(self, key: str) -> None:
        try:
            self.path_for(key).unlink()
        except FileNotFoundError:
            pass

    def keys(self) -> List[str]:
        return sorted(p.stem for p in self.base_dir.glob("*.json"))

    def clear(self, prefix: str = "") -> None:
        for key in self.keys():
            if key.startswith(prefix):
                self.remove(key)


def _entry_id() -> str:
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session-{int(time.time() * 1000)}-{suffix}"


@dataclass(frozen=True)
class SessionHistoryEntry:
    mode: str
    training_type: str
    difficulty_id: str
    hits_completed: int
    total_hits: int
    duration_ms: int
    session_number: int
    total_sessions: int
    combos_completed: int = 0
    total_combos: Optional[int] = None
    aborted: bool = False
    id: str = ""
    timestamp: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionHistoryEntry":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class SessionHistory:
    """Newest-first, capped list of finished (or stopped) sessions."""

    def __init__(self, store: JsonStore, max_entries: int = MAX_HISTORY_ENTRIES):
        self.store = store
        self.max_entries = max(1, int(max_entries))

    def load(self) -> List[SessionHistoryEntry]:
        data = self.store.get(KEY_HISTORY, [])
        if not isinstance(data, list):
            return []

        items: List[SessionHistoryEntry] = []
        for raw in data:
            if not isinstance(raw, dict):
                continue
            try:
                items.append(SessionHistoryEntry.from_dict(raw))
            except TypeError:
                log.debug("Skipping malformed history item: %r", raw)
        return items[: self.max_entries]

    def record(self, entry: SessionHistoryEntry) -> SessionHistoryEntry:
        stamped = SessionHistoryEntry.from_dict({
            **entry.to_dict(),
            "id": entry.id or _entry_id(),
            "timestamp": entry.timestamp or _now_iso(),
        })
        items = [stamped, *self.load()][: self.max_entries]
        self.store.set(KEY_HISTORY, [it.to_dict() for it in items])
        return stamped

    def clear(self) -> None:
        self.store.set(KEY_HISTORY, [])
