from datetime import datetime
from typing import List

from PySide6.QtWidgets import (
    QWidget,
    QVBoxLayout,
    QLabel,
    QPushButton,
    QHBoxLayout,
    QTableWidget,
    QTableWidgetItem,
    QHeaderView,
)
from PySide6.QtCore import Qt

import pyqtgraph as pg

from combatreflex.core.stats import completion_rate, format_time, hits_per_minute
from combatreflex.core.storage import SessionHistory, SessionHistoryEntry


def _fmt_dt(ts: str) -> str:
    try:
        dt = datetime.fromisoformat(ts)
        if dt.tzinfo:
            dt = dt.astimezone()
        return dt.strftime("%Y-%m-%d %I:%M %p")
    except (TypeError, ValueError):
        return "—"


def _fmt_result(e: SessionHistoryEntry) -> str:
    if e.training_type == "combo" and e.total_combos:
        return f"{e.combos_completed}/{e.total_combos} combos"
    return f"{e.hits_completed}/{e.total_hits}"


COLUMNS = ["Date / Time", "Session", "Type", "Difficulty", "Result", "Duration", "Rate"]


class SessionHistoryScreen(QWidget):
    def __init__(self, history: SessionHistory, on_back):
        super().__init__()

        self.history = history
        self.on_back = on_back
        self._items: List[SessionHistoryEntry] = []

        root = QVBoxLayout(self)
        root.setContentsMargins(28, 22, 28, 22)
        root.setSpacing(12)

        # --------------------------------------------------
        # Header
        # --------------------------------------------------
        header = QHBoxLayout()

        title = QLabel("Session History")
        title.setStyleSheet("font-size: 24px; font-weight: 800;")

        back_btn = QPushButton("Back")
        back_btn.clicked.connect(self.on_back)
        back_btn.setCursor(Qt.PointingHandCursor)

        clear_btn = QPushButton("Clear")
        clear_btn.clicked.connect(self._clear)
        clear_btn.setCursor(Qt.PointingHandCursor)

        for btn in (back_btn, clear_btn):
            btn.setStyleSheet("""
                QPushButton {
                    background: rgba(255,255,255,0.06);
                    border: 1px solid rgba(255,255,255,0.14);
                    border-radius: 12px;
                    padding: 8px 12px;
                    font-weight: 650;
                }
                QPushButton:hover {
                    background: rgba(255,255,255,0.14);
                }
            """)

        header.addWidget(title, 1)
        header.addWidget(clear_btn)
        header.addWidget(back_btn)

        root.addLayout(header)

        # --------------------------------------------------
        # Chart (oldest -> newest, left to right)
        # --------------------------------------------------
        pg.setConfigOptions(antialias=True)

        self.plot = pg.PlotWidget()
        self.plot.setMinimumHeight(180)
        self.plot.setBackground(None)
        self.plot.showGrid(x=False, y=True, alpha=0.2)
        self.plot.setTitle("Completion % (bars) and hits/min (line)")
        self.plot.setYRange(0, 100)
        self.plot.getAxis("bottom").setTicks([[]])

        self.rate_bars = pg.BarGraphItem(x=[], height=[], width=0.6, brush=(34, 197, 94, 110))
        self.plot.addItem(self.rate_bars)
        self.hpm_curve = self.plot.plot([], [], pen=pg.mkPen((59, 130, 246), width=2), symbol="o")

        root.addWidget(self.plot)

        # --------------------------------------------------
        # Table
        # --------------------------------------------------
        self.table = QTableWidget(0, len(COLUMNS))
        self.table.setHorizontalHeaderLabels(COLUMNS)

        self.table.verticalHeader().setVisible(False)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setSelectionMode(QTableWidget.SingleSelection)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setShowGrid(False)

        hh = self.table.horizontalHeader()
        hh.setSectionResizeMode(0, QHeaderView.Stretch)
        for i in range(1, len(COLUMNS)):
            hh.setSectionResizeMode(i, QHeaderView.ResizeToContents)

        hh.setStyleSheet("""
            QHeaderView::section {
                padding-left: 12px;
                padding-right: 12px;
                text-align: left;
                background: rgba(255,255,255,0.02);
                border: none;
                font-weight: 750;
            }
        """)

        self.empty = QLabel("No sessions yet. Finish a training to see it here.")
        self.empty.setObjectName("muted")
        self.empty.setAlignment(Qt.AlignCenter)

        root.addWidget(self.table, 1)
        root.addWidget(self.empty)

        self.refresh()

    # --------------------------------------------------
    # Lifecycle
    # --------------------------------------------------
    def showEvent(self, event):
        super().showEvent(event)
        self.refresh()

    def refresh(self):
        self._items = self.history.load()  # newest first
        self.table.setRowCount(len(self._items))
        self.empty.setVisible(not self._items)

        for row, e in enumerate(self._items):
            rate = completion_rate(e.hits_completed, e.total_hits)
            values = [
                _fmt_dt(e.timestamp),
                f"{e.session_number}/{e.total_sessions}",
                f"{e.training_type} · {e.mode}",
                e.difficulty_id,
                _fmt_result(e) + ("  (stopped)" if e.aborted else ""),
                format_time(e.duration_ms),
                f"{rate}%",
            ]

            for col, value in enumerate(values):
                item = QTableWidgetItem(value)
                item.setTextAlignment(
                    Qt.AlignVCenter | (Qt.AlignLeft if col == 0 else Qt.AlignCenter)
                )
                self.table.setItem(row, col, item)

        self._refresh_chart()

    def _refresh_chart(self):
        ordered = list(reversed(self._items))
        xs = list(range(len(ordered)))
        rates = [completion_rate(e.hits_completed, e.total_hits) for e in ordered]
        hpm = [hits_per_minute(e.hits_completed, e.duration_ms) for e in ordered]

        self.rate_bars.setOpts(x=xs, height=rates, width=0.6)
        self.hpm_curve.setData(xs, hpm)
        top = max([100.0, *hpm]) if hpm else 100.0
        self.plot.setYRange(0, top * 1.05)

    def _clear(self):
        self.history.clear()
        self.refresh()
