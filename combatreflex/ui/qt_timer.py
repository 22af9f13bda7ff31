import logging

from PySide6.QtCore import QElapsedTimer, QObject, QTimer

from combatreflex.training.timers import TimerQueue

log = logging.getLogger(__name__)


class QtTimerDriver(QObject):
    """
    Drives a TimerQueue from the Qt event loop.
    One single-shot QTimer, re-armed for the earliest pending callback
    whenever the queue changes. The queue reads a QElapsedTimer as its
    clock, so work scheduled from a UI event starts from the real current
    time, and late wakeups catch up instead of drifting.
    """

    def __init__(self, queue: TimerQueue = None, parent=None):
        super().__init__(parent)
        self.queue = queue or TimerQueue()
        self._clock = QElapsedTimer()
        self._clock.start()
        self._base = self.queue.now

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self._fire)

        self._firing = False
        self.queue.clock = self.elapsed_ms
        self.queue.on_change = self._rearm

    def elapsed_ms(self) -> int:
        return self._base + int(self._clock.elapsed())

    def _rearm(self):
        if self._firing:
            return
        due = self.queue.next_due()
        if due is None:
            self._timer.stop()
            return
        self._timer.start(max(0, due - self.elapsed_ms()))

    def _fire(self):
        self._firing = True
        try:
            self.queue.advance_to(self.elapsed_ms())
        except Exception:
            log.exception("Timer callback failed")
        finally:
            self._firing = False
        self._rearm()

    def stop(self):
        self._timer.stop()
        self.queue.on_change = None
        self.queue.clock = None
