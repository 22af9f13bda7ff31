from typing import Optional


class HoldToConfirm:
    """
    Press-and-hold gesture.
    Progress climbs 0..100 over `hold_ms` of continuous press and drops to 0
    the moment the press is released early. `poll` reports completion once.
    """

    def __init__(self, hold_ms: int = 1000):
        self.hold_ms = max(1, int(hold_ms))
        self._pressed_at: Optional[int] = None
        self._fired = False

    @property
    def holding(self) -> bool:
        return self._pressed_at is not None

    def press(self, now_ms: int) -> None:
        if self._pressed_at is None:
            self._pressed_at = int(now_ms)
            self._fired = False

    def release(self, now_ms: int = 0) -> None:
        self._pressed_at = None

    def progress(self, now_ms: int) -> float:
        if self._pressed_at is None:
            return 0.0
        elapsed = max(0, int(now_ms) - self._pressed_at)
        return min(100.0, elapsed / self.hold_ms * 100.0)

    def poll(self, now_ms: int) -> bool:
        if self._fired or self.progress(now_ms) < 100.0:
            return False
        self._fired = True
        self._pressed_at = None
        return True
