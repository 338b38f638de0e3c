from __future__ import annotations

import threading
from collections.abc import Callable


def _no_spawn(fn: Callable[[], None]) -> None:
    return None


def _no_sleep(seconds: float) -> None:
    return None


class RoundTimer:
    """Countdown for a single round, one tick per ``interval`` seconds.

    The timer shares its owner's lock. Ticks run with the lock held and
    ``cancel()`` takes it too, so once ``cancel()`` has returned neither
    ``on_tick`` nor ``on_expire`` will be called again.

    Without a ``spawn`` (normally ``socketio.start_background_task``) the
    countdown only advances through explicit ``tick()`` calls.
    """

    def __init__(
        self,
        duration: int,
        lock: threading.RLock,
        on_tick: Callable[[int], None],
        on_expire: Callable[[], None],
        interval: float = 1.0,
        spawn: Callable[[Callable[[], None]], object] | None = None,
        sleep: Callable[[float], None] | None = None,
    ):
        self.remaining = int(duration)
        self.interval = interval
        self._lock = lock
        self._on_tick = on_tick
        self._on_expire = on_expire
        self._spawn = spawn or _no_spawn
        self._sleep = sleep or _no_sleep
        self._started = False
        self._cancelled = False

    @property
    def active(self) -> bool:
        return self._started and not self._cancelled

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def start(self) -> None:
        with self._lock:
            if self._started:
                raise RuntimeError("timer already started")
            self._started = True
        self._spawn(self._run)

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True

    def tick(self) -> bool:
        """Advance one step. Returns False once the timer is finished."""
        with self._lock:
            if not self.active:
                return False
            self.remaining = max(0, self.remaining - 1)
            self._on_tick(self.remaining)
            if self.remaining > 0:
                return True
            self._cancelled = True
            self._on_expire()
            return False

    def _run(self) -> None:
        while True:
            self._sleep(self.interval)
            if not self.tick():
                break
