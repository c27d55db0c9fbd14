"""Frida substrate message handling, with a stand-in session instead of a device."""

from __future__ import annotations

import pytest

from hookfinder.src.hookfinder.errors import HookInstallError
from hookfinder.src.hookfinder.frida_substrate import FridaReceiver, FridaSubstrate, render_agent


class FakeExports:
    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.hooked: list[tuple[str, str, str]] = []

    def hook(self, hook_id, class_name, method_name):
        if class_name in self.fail_on:
            raise RuntimeError(f"java.lang.ClassNotFoundException: {class_name}")
        self.hooked.append((hook_id, class_name, method_name))
        return True


class FakeScript:
    def __init__(self, source, exports):
        self.source = source
        self.exports_sync = exports
        self.handlers = {}
        self.loaded = False

    def on(self, signal, handler):
        self.handlers[signal] = handler

    def load(self):
        self.loaded = True

    def deliver(self, message):
        self.handlers["message"](message, None)


class FakeSession:
    def __init__(self, exports):
        self.exports = exports
        self.script = None

    def create_script(self, source):
        self.script = FakeScript(source, self.exports)
        return self.script


@pytest.fixture
def frida_substrate():
    session = FakeSession(FakeExports(fail_on={"com.missing.Type"}))
    substrate = FridaSubstrate(session)
    substrate.load()
    return substrate, session


def test_agent_embeds_probes():
    source = render_agent(["getId", "getUsername"])
    assert 'var PROBES = ["getId", "getUsername"];' in source
    assert "rpc.exports" in source


def test_one_agent_hook_many_observers(frida_substrate):
    substrate, session = frida_substrate
    seen = []
    substrate.install_post_call_hook("a.B", "A01", lambda p: seen.append(("first", p.result)))
    substrate.install_post_call_hook("a.B", "A01", lambda p: seen.append(("second", p.result)))

    assert session.exports.hooked == [("a.B.A01", "a.B", "A01")]

    session.script.deliver({"type": "send", "payload": {
        "type": "hook", "id": "a.B.A01", "result": True, "receiver": {"getId": "42"}, "args": []}})
    assert seen == [("first", True), ("second", True)]


def test_receiver_snapshot_feeds_call_method(frida_substrate):
    substrate, session = frida_substrate
    params = []
    substrate.install_post_call_hook("a.B", "A01", params.append)
    session.script.deliver({"type": "send", "payload": {
        "type": "hook", "id": "a.B.A01", "result": False, "receiver": {"getId": "42"}, "args": ["x"]}})

    [param] = params
    assert isinstance(param.receiver, FridaReceiver)
    assert param.args == ("x",)
    assert substrate.call_method(param.receiver, "getId") == "42"
    with pytest.raises(AttributeError):
        substrate.call_method(param.receiver, "getUsername")


def test_failed_agent_hook_raises_install_error(frida_substrate):
    substrate, _ = frida_substrate
    with pytest.raises(HookInstallError):
        substrate.install_post_call_hook("com.missing.Type", "A00", lambda p: None)
    # a retry is attempted again rather than silently counted as installed
    with pytest.raises(HookInstallError):
        substrate.install_post_call_hook("com.missing.Type", "A00", lambda p: None)


def test_unrelated_messages_are_ignored(frida_substrate):
    substrate, session = frida_substrate
    called = []
    substrate.install_post_call_hook("a.B", "A01", called.append)
    session.script.deliver({"type": "send", "payload": {"type": "ready"}})
    session.script.deliver({"type": "error", "description": "ReferenceError"})
    session.script.deliver({"type": "send", "payload": {"type": "hook", "id": "other", "result": 1}})
    assert called == []


def test_install_before_load():
    substrate = FridaSubstrate(FakeSession(FakeExports()))
    with pytest.raises(HookInstallError):
        substrate.install_post_call_hook("a.B", "A01", lambda p: None)
