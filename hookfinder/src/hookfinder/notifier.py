"""
Turns observed return values into at most one user-visible message per
(subject, signal) within an observation scope.
"""
import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from hookfinder.src.hookfinder.config import Settings
from hookfinder.src.hookfinder.session import ObservationSession

logger = logging.getLogger(__name__)

FOLLOWS_YOU = "follows you ✅"
DOES_NOT_FOLLOW_YOU = "doesn't follow you ❌"
STORY_HIDDEN_FROM_YOU = "This user has hidden their story from you! 🚫"


class Presenter(Protocol):
    def show(self, message: str) -> None:
        ...


class LogPresenter:
    """Fallback surface when the host provides none."""

    def show(self, message: str) -> None:
        logger.info("Notification: %s", message)


@dataclass(frozen=True)
class Notification:
    subject: str
    signal: str
    message: str


def follow_message(identifier: str, label: Optional[str], follows: bool) -> str:
    verdict = FOLLOWS_YOU if follows else DOES_NOT_FOLLOW_YOU
    if label:
        return f"@{label} ({identifier}) {verdict}"
    return f"({identifier}) {verdict}"


class EventNotifier:

    def __init__(self, session: ObservationSession, settings: Settings, presenter: Presenter):
        self.session = session
        self.settings = settings
        self.presenter = presenter

    def follow_status(self, identifier: Optional[str], label: Optional[str],
                      follows: Optional[bool], signal: str) -> Optional[Notification]:
        """Single-signal: once per (subject, signal) whatever the value."""
        if not self.settings.show_follower_toast or follows is None:
            return None
        if not self.session.claim(identifier, (identifier, signal)):
            return None
        return self._emit(identifier, signal, follow_message(identifier, label, bool(follows)))

    def story_hidden(self, identifier: Optional[str], hidden: Optional[bool], signal: str) -> Optional[Notification]:
        """Companion blocking-reel signal; only a true value is news."""
        if not self.settings.show_story_hidden_toast or not hidden:
            return None
        if not self.session.claim(identifier, (identifier, signal)):
            return None
        return self._emit(identifier, signal, STORY_HIDDEN_FROM_YOU)

    def story_signal(self, identifier: Optional[str], value: Optional[bool], signal: str,
                     message: str, negative_message: Optional[str] = None) -> Optional[Notification]:
        """
        Multi-signal: the observed value is part of the dedup key. Under the
        "true_only" policy a false value is dropped; under "log_both" it
        notifies with `negative_message`.
        """
        if not self.settings.show_story_hide_toast or value is None:
            return None
        if not value:
            if self.settings.story_notify_policy != "log_both":
                return None
            message = negative_message or f"{message} (false)"
        if not self.session.claim(identifier, (identifier, signal, bool(value))):
            return None
        return self._emit(identifier, signal, message)

    def _emit(self, subject: str, signal: str, message: str) -> Notification:
        self.presenter.show(message)
        logger.info("Notified %s for %s: %s", signal, subject, message)
        self.session.schedule_clear(subject)
        return Notification(subject=subject, signal=signal, message=message)
