from __future__ import annotations

import heapq
import itertools
import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional

log = logging.getLogger(__name__)


@dataclass(order=True)
class _Entry:
    due: int
    seq: int
    epoch: int = field(compare=False)
    callback: Callable[[], None] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class TimerHandle:
    __slots__ = ("_entry",)

    def __init__(self, entry: _Entry):
        self._entry = entry

    @property
    def due(self) -> int:
        return self._entry.due

    @property
    def active(self) -> bool:
        return not self._entry.cancelled


class TimerQueue:
    """
    The one timing authority for a program.

    - Virtual millisecond clock; `advance_to` runs due callbacks in order
    - `clear()` cancels everything pending in a single step and bumps the
      epoch, so an entry popped before the clear never runs after it
    - `on_change` fires whenever the next due time may have moved, so a
      real event loop can re-arm a single timer
    - `clock`, when set, is a real-time source: outside of dispatch `now`
      catches up to it, so work scheduled from UI events starts from the
      current time rather than from the last timer that fired
    """

    def __init__(self, start_ms: int = 0):
        self._now = int(start_ms)
        self._heap: List[_Entry] = []
        self._seq = itertools.count()
        self._epoch = 0
        self._dispatching = False
        self.on_change: Optional[Callable[[], None]] = None
        self.clock: Optional[Callable[[], int]] = None

    @property
    def now(self) -> int:
        # inside a callback, now stays at that entry's due time
        if self.clock is not None and not self._dispatching:
            self._now = max(self._now, int(self.clock()))
        return self._now

    @property
    def pending(self) -> int:
        return sum(1 for e in self._heap if not e.cancelled)

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change()

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        entry = _Entry(
            due=self.now + max(0, int(delay_ms)),
            seq=next(self._seq),
            epoch=self._epoch,
            callback=callback,
        )
        heapq.heappush(self._heap, entry)
        self._changed()
        return TimerHandle(entry)

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle._entry.cancelled = True

    def clear(self) -> None:
        for e in self._heap:
            e.cancelled = True
        self._heap.clear()
        self._epoch += 1
        self._changed()

    def next_due(self) -> Optional[int]:
        while self._heap and self._heap[0].cancelled:
            heapq.heappop(self._heap)
        return self._heap[0].due if self._heap else None

    def advance_to(self, t_ms: int) -> int:
        """Run everything due up to `t_ms`. Returns how many callbacks ran."""
        ran = 0
        outer = self._dispatching
        self._dispatching = True
        try:
            while True:
                due = self.next_due()
                if due is None or due > t_ms:
                    break
                entry = heapq.heappop(self._heap)
                self._now = max(self._now, entry.due)
                if entry.cancelled or entry.epoch != self._epoch:
                    continue
                entry.cancelled = True
                entry.callback()
                ran += 1
        finally:
            self._dispatching = outer
        self._now = max(self._now, int(t_ms))
        self._changed()
        return ran

    def advance(self, delta_ms: int) -> int:
        return self.advance_to(self._now + int(delta_ms))

    def run_until_idle(self, limit_ms: int = 24 * 60 * 60 * 1000) -> int:
        """Drain the queue (tests, headless simulation)."""
        ran = 0
        end = self._now + limit_ms
        while True:
            due = self.next_due()
            if due is None or due > end:
                return ran
            ran += self.advance_to(due)
