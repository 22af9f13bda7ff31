import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

_COLUMNS = ["timestamp", "t_ms", "event", "session", "action", "hits", "combos", "detail"]


class SessionLogger:
    """
    One CSV per run. Subscribe with `scheduler.add_listener(logger.on_event)`;
    every scheduler event becomes a row.
    """

    def __init__(self, out_dir: Optional[Union[str, Path]] = None):
        if out_dir is None:
            from combatreflex.core.storage import app_data_dir
            out_dir = app_data_dir() / "logs"
        Path(out_dir).mkdir(parents=True, exist_ok=True)
        ts = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self.path = Path(out_dir) / f"run_{ts}.csv"

        self._file = self.path.open("w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        self._writer.writerow(_COLUMNS)

    @property
    def closed(self) -> bool:
        return self._file.closed

    def on_event(self, event: str, payload: Dict[str, Any]):
        if self._file.closed:
            return
        rest = {k: v for k, v in payload.items() if k not in ("t", "session", "action", "hits", "combos")}
        ts = datetime.now().isoformat(timespec="milliseconds")
        self._writer.writerow([
            ts,
            payload.get("t", ""),
            event,
            payload.get("session", ""),
            payload.get("action", ""),
            payload.get("hits", ""),
            payload.get("combos", ""),
            json.dumps(rest, sort_keys=True) if rest else "",
        ])
        self._file.flush()
        if event == "complete":
            self.close()

    def close(self):
        if not self._file.closed:
            self._file.close()
