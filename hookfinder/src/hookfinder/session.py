"""
Focus and dedup state for one observation scope.

The navigation side owns the session: it calls `begin_scope()` when a new
profile is opened and may `clear_focus()` on navigating away. Hook callbacks
only go through `claim()`, which checks focus and records the dedup key under
one lock so two threads firing for the same subject cannot both notify.
"""
import logging
import threading
from typing import Any, Callable, Hashable, Optional

logger = logging.getLogger(__name__)

Scheduler = Callable[[float, Callable[[], None]], Any]


def start_timer(delay: float, callback: Callable[[], None]) -> threading.Timer:
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()
    return timer


class ObservationSession:

    def __init__(self, clear_delay: float = 2.0, scheduler: Scheduler = start_timer):
        self.clear_delay = clear_delay
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._subject: Optional[str] = None
        self._seen: set[Hashable] = set()
        self._last_notified_key: Optional[Hashable] = None
        self._generation = 0
        self._pending: dict[int, Any] = {}
        self._next_token = 0

    # -- Navigation side -------------------------------------------------------

    def begin_scope(self, subject: Optional[str]) -> None:
        """New profile view: focus on `subject` and forget what was already shown."""
        with self._lock:
            self._cancel_pending()
            self._generation += 1
            self._seen.clear()
            self._subject = subject
        logger.debug("Observation scope started for %s", subject)

    def focus(self, subject: Optional[str]) -> None:
        with self._lock:
            self._subject = subject

    def clear_focus(self) -> None:
        with self._lock:
            self._subject = None

    def clear_seen(self) -> None:
        with self._lock:
            self._seen.clear()
            self._last_notified_key = None

    # -- Hook side -------------------------------------------------------------

    @property
    def subject(self) -> Optional[str]:
        with self._lock:
            return self._subject

    @property
    def last_notified_key(self) -> Optional[Hashable]:
        with self._lock:
            return self._last_notified_key

    def is_focused_on(self, subject: Optional[str]) -> bool:
        with self._lock:
            return subject is not None and self._subject == subject

    def claim(self, subject: Optional[str], key: Hashable) -> bool:
        """
        True exactly once per key while `subject` is in focus. Records the key
        on success; an unfocused subject never records anything.
        """
        with self._lock:
            if subject is None or self._subject != subject:
                return False
            if key in self._seen:
                return False
            self._seen.add(key)
            self._last_notified_key = key
            return True

    def schedule_clear(self, subject: str) -> None:
        """
        After `clear_delay`, drop focus if it still points at `subject` and no
        new scope has begun since. Every pending clear is cancelled by
        `begin_scope()`.
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            generation = self._generation
            self._pending[token] = None

        handle = self._scheduler(self.clear_delay, lambda: self._clear_if_still(subject, generation, token))
        with self._lock:
            if token in self._pending:
                self._pending[token] = handle
                return
        # fired already, or a new scope began while scheduling
        self._cancel(handle)

    @property
    def pending_clears(self) -> int:
        with self._lock:
            return len(self._pending)

    def _clear_if_still(self, subject: str, generation: int, token: int) -> None:
        with self._lock:
            self._pending.pop(token, None)
            if generation != self._generation:
                return
            if self._subject == subject:
                self._subject = None
                logger.debug("Focus on %s expired", subject)

    def _cancel_pending(self) -> None:
        pending, self._pending = self._pending, {}
        for handle in pending.values():
            self._cancel(handle)

    @staticmethod
    def _cancel(handle: Any) -> None:
        cancel = getattr(handle, "cancel", None)
        if cancel is not None:
            cancel()
