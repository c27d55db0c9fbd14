"""Shared fixtures: a synchronous fake substrate, a manual timer, and catalogs."""

from __future__ import annotations

import pytest

from hookfinder.src.hookfinder.config import Settings
from hookfinder.src.hookfinder.errors import HookInstallError
from hookfinder.src.hookfinder.notifier import EventNotifier
from hookfinder.src.hookfinder.query_service import InMemoryQueryService
from hookfinder.src.hookfinder.session import ObservationSession
from hookfinder.src.hookfinder.substrate import HookParam
from hookfinder.src.hookfinder.targets import BOXED_BOOLEAN, FRIENDSHIP_STATUS


# ── Fakes ────────────────────────────────────────────────────────────────────


class FakeReceiver:
    """Stands in for a live object; accessors map method name -> return value."""

    def __init__(self, **accessors):
        self.accessors = accessors


class FakeSubstrate:
    """Records hooks and invokes them synchronously on `fire()`."""

    def __init__(self, missing=()):
        self.missing = set(missing)
        self.hooks: dict[tuple[str, str], list] = {}
        self.installed: list[tuple[str, str]] = []

    def install_post_call_hook(self, type_name, method_name, callback):
        if type_name in self.missing or (type_name, method_name) in self.missing:
            raise HookInstallError(type_name, method_name, "class not found")
        self.hooks.setdefault((type_name, method_name), []).append(callback)
        self.installed.append((type_name, method_name))

    def call_method(self, receiver, name):
        return receiver.accessors[name]

    def fire(self, type_name, method_name, receiver=None, result=None):
        param = HookParam(receiver=receiver if receiver is not None else FakeReceiver(), result=result)
        return [callback(param) for callback in self.hooks.get((type_name, method_name), [])]


class ManualScheduler:
    """Collects delayed callbacks instead of starting threads."""

    class Handle:
        def __init__(self):
            self.cancelled = False

        def cancel(self):
            self.cancelled = True

    def __init__(self):
        self.pending: list[tuple[float, object, ManualScheduler.Handle]] = []

    def __call__(self, delay, callback):
        handle = ManualScheduler.Handle()
        self.pending.append((delay, callback, handle))
        return handle

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, callback, handle in pending:
            if not handle.cancelled:
                callback()


class RecordingPresenter:
    def __init__(self):
        self.messages: list[str] = []

    def show(self, message):
        self.messages.append(message)


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def session(scheduler) -> ObservationSession:
    return ObservationSession(clear_delay=2.0, scheduler=scheduler)


@pytest.fixture
def presenter() -> RecordingPresenter:
    return RecordingPresenter()


@pytest.fixture
def notifier(session, settings, presenter) -> EventNotifier:
    return EventNotifier(session, settings, presenter)


@pytest.fixture
def substrate() -> FakeSubstrate:
    return FakeSubstrate()


def friendship_catalog(count: int = 20) -> InMemoryQueryService:
    """`count` Boolean getters on the interface, named A00..A{count-1}, in that order."""
    query = InMemoryQueryService()
    for i in range(count):
        query.add_method(FRIENDSHIP_STATUS, f"A{i:02d}", BOXED_BOOLEAN)
    return query


@pytest.fixture
def catalog() -> InMemoryQueryService:
    return friendship_catalog()
