"""Live interception through Frida's Java bridge."""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Iterable

from hookfinder.src.hookfinder.errors import HookfinderError, HookInstallError
from hookfinder.src.hookfinder.substrate import HookCallback, HookParam
from hookfinder.src.hookfinder.targets import ID_ACCESSOR, LABEL_ACCESSOR

try:  # pragma: no cover - optional dependency
    import frida  # type: ignore
except ImportError:  # pragma: no cover
    frida = None  # type: ignore

logger = logging.getLogger(__name__)

# One wrapper per Java method; Python fans the message out to every observer.
# Accessor values are read in the agent because the receiver never leaves the process.
AGENT_TEMPLATE = r"""
'use strict';
var PROBES = __PROBES__;

function plain(value) {
  if (value === null || value === undefined) { return null; }
  if (typeof value === 'object') { return value.toString(); }
  return value;
}

function snapshot(receiver) {
  var values = {};
  if (receiver === null || receiver === undefined) { return values; }
  PROBES.forEach(function (name) {
    try {
      if (receiver[name] !== undefined) {
        values[name] = plain(receiver[name].call(receiver));
      }
    } catch (e) {}
  });
  return values;
}

rpc.exports = {
  hook: function (hookId, className, methodName) {
    Java.performNow(function () {
      var klass = Java.use(className);
      var method = klass[methodName];
      if (method === undefined) {
        throw new Error('no method ' + methodName + ' on ' + className);
      }
      method.overloads.forEach(function (overload) {
        overload.implementation = function () {
          var ret = overload.apply(this, arguments);
          var args = [];
          for (var i = 0; i < arguments.length; i++) { args.push(plain(arguments[i])); }
          send({type: 'hook', id: hookId, result: plain(ret), receiver: snapshot(this), args: args});
          return ret;
        };
      });
    });
    return true;
  }
};
"""


def render_agent(probes: Iterable[str]) -> str:
    return AGENT_TEMPLATE.replace("__PROBES__", json.dumps(list(probes)))


@dataclass(frozen=True)
class FridaReceiver:
    """Accessor values captured on the device when the call returned."""

    type_name: str
    values: dict[str, Any] = field(default_factory=dict)


class FridaSubstrate:
    """InterceptionSubstrate backed by a Frida session on the target process."""

    def __init__(self, session, probes: Iterable[str] = (ID_ACCESSOR, LABEL_ACCESSOR)):
        self._session = session
        self.probes = tuple(probes)
        self._script = None
        self._lock = threading.Lock()
        self._observers: dict[str, list[HookCallback]] = {}
        self._hook_types: dict[str, str] = {}

    @classmethod
    def attach(cls, target: str, *, usb: bool = True, **kwargs) -> "FridaSubstrate":
        if frida is None:  # pragma: no cover - optional dependency path
            raise HookfinderError("frida module not available; install `frida` to enable live hooks")
        device = frida.get_usb_device() if usb else frida.get_local_device()
        try:
            session = device.attach(int(target))
        except ValueError:
            session = device.attach(target)
        substrate = cls(session, **kwargs)
        substrate.load()
        return substrate

    def load(self) -> None:
        script = self._session.create_script(render_agent(self.probes))
        script.on("message", self._on_message)
        script.load()
        self._script = script

    # -- InterceptionSubstrate -------------------------------------------------

    def install_post_call_hook(self, type_name: str, method_name: str, callback: HookCallback) -> None:
        if self._script is None:
            raise HookInstallError(type_name, method_name, "agent not loaded")
        hook_id = f"{type_name}.{method_name}"
        with self._lock:
            first = hook_id not in self._observers
            self._observers.setdefault(hook_id, []).append(callback)
            self._hook_types[hook_id] = type_name
        if not first:
            return
        try:
            self._script.exports_sync.hook(hook_id, type_name, method_name)
        except Exception as e:
            with self._lock:
                self._observers.pop(hook_id, None)
            raise HookInstallError(type_name, method_name, str(e)) from e

    def call_method(self, receiver: Any, name: str) -> Any:
        if not isinstance(receiver, FridaReceiver) or name not in receiver.values:
            raise AttributeError(f"{name} was not captured for this receiver")
        return receiver.values[name]

    # -- Message pump ----------------------------------------------------------

    def _on_message(self, message: dict, data) -> None:
        if message.get("type") == "error":
            logger.warning("Agent error: %s", message.get("description"))
            return
        payload = message.get("payload")
        if message.get("type") != "send" or not isinstance(payload, dict) or payload.get("type") != "hook":
            return

        hook_id = payload.get("id")
        with self._lock:
            observers = list(self._observers.get(hook_id, ()))
            type_name = self._hook_types.get(hook_id, "")
        param = HookParam(
            receiver=FridaReceiver(type_name, dict(payload.get("receiver") or {})),
            result=payload.get("result"),
            args=tuple(payload.get("args") or ()),
        )
        for observer in observers:
            observer(param)
