"""Countdown clock bound to a quiz session."""

from __future__ import annotations

from collections.abc import Callable
import logging
from threading import Event, Thread

logger = logging.getLogger(__name__)


class CountdownTimer:
    """Counts down one second per tick and fires ``on_expire`` once at zero."""

    def __init__(self, duration_seconds: int, on_expire: Callable[[], None] | None = None) -> None:
        if duration_seconds <= 0:
            raise ValueError("Timer duration must be a positive number of seconds.")
        self._remaining: int = duration_seconds
        self._running: bool = False
        self._expired: bool = False
        self._on_expire = on_expire

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    def is_running(self) -> bool:
        return self._running

    def has_expired(self) -> bool:
        return self._expired

    def start(self) -> None:
        if not self._expired:
            self._running = True

    def stop(self) -> None:
        self._running = False

    def tick(self) -> None:
        if not self._running:
            return
        self._remaining = max(0, self._remaining - 1)
        if self._remaining == 0:
            self._running = False
            self._expired = True
            if self._on_expire is not None:
                self._on_expire()

    def format_remaining(self) -> str:
        return format_seconds(self._remaining)


def format_seconds(seconds: int) -> str:
    """Format a second count as ``m:ss``."""
    minutes, remaining = divmod(max(0, seconds), 60)
    return f"{minutes}:{remaining:02d}"


class SessionTicker:
    """Background thread calling ``on_tick`` at a fixed interval until stopped."""

    def __init__(self, on_tick: Callable[[], bool], interval_seconds: float, name: str) -> None:
        self._on_tick = on_tick
        self._interval = interval_seconds
        self._stopped = Event()
        self._thread = Thread(target=self._run, name=name, daemon=True)

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self._stopped.set()

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        # on_tick returns False once the session no longer needs ticks.
        while not self._stopped.wait(self._interval):
            try:
                keep_going = self._on_tick()
            except Exception:
                logger.exception("Ticker %s failed; stopping", self._thread.name)
                return
            if not keep_going:
                return
