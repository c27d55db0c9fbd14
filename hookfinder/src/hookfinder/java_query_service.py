"""
Query service over a JavaIndexer built from decompiled sources.

Receivers are typed from what the indexer captured (parameters, locals,
fields, static class names). Calls on types outside the index still show up in
the call graph as bare descriptors so "first invoked method" keeps the same
meaning it has against bytecode.
"""
import logging
import re
from typing import Optional

from hookfinder.src.hookfinder.indexer import JavaIndexer
from hookfinder.src.hookfinder.models.ast_models import ClassInfo, MethodCall, MethodInfo
from hookfinder.src.hookfinder.models.descriptors import MethodDescriptor

logger = logging.getLogger(__name__)

IDENTIFIER = re.compile(r"^[A-Za-z_$][\w$]*$")
QUALIFIED_NAME = re.compile(r"^[A-Za-z_$][\w$]*(\.[A-Za-z_$][\w$]*)+$")


class JavaIndexQueryService:

    def __init__(self, indexer: JavaIndexer):
        self.indexer = indexer
        self._entries: list[tuple[MethodDescriptor, MethodInfo, ClassInfo]] = []
        self._by_key: dict[str, tuple[MethodDescriptor, MethodInfo, ClassInfo]] = {}
        self._by_simple_class: dict[str, list[str]] = {}
        self._invoke_cache: dict[str, list[MethodDescriptor]] = {}

        for cls in indexer.classes.values():
            self._by_simple_class.setdefault(cls.simple_name, []).append(cls.fqcn)
            for info in cls.methods:
                descriptor = MethodDescriptor(
                    owning_type=cls.fqcn,
                    name=info.name,
                    return_type=info.return_type,
                    param_types=tuple(info.param_types),
                    _invokes=self._invoked_by,
                )
                entry = (descriptor, info, cls)
                self._entries.append(entry)
                self._by_key.setdefault(descriptor.key, entry)
        logger.debug("Source query service ready: %d classes, %d methods",
                      len(indexer.classes), len(self._entries))

    # -- Queries ---------------------------------------------------------------

    def find_by_declaring_type_and_return_type(self, type_name: str, return_type: str) -> list[MethodDescriptor]:
        return [d for d, _, cls in self._entries if cls.fqcn == type_name and d.return_type == return_type]

    def find_by_used_strings(self, *strings: str) -> list[MethodDescriptor]:
        if not strings:
            return []
        wanted = set(strings)
        return [d for d, info, _ in self._entries if wanted.issubset(info.strings)]

    def find_by_param_types(self, *types: str) -> list[MethodDescriptor]:
        return [d for d, _, _ in self._entries if d.param_types == tuple(types)]

    def find_by_param_count(self, count: int) -> list[MethodDescriptor]:
        return [d for d, _, _ in self._entries if len(d.param_types) == count]

    # -- Call graph ------------------------------------------------------------

    def _invoked_by(self, method: MethodDescriptor) -> list[MethodDescriptor]:
        cached = self._invoke_cache.get(method.key)
        if cached is not None:
            return cached
        entry = self._by_key.get(method.key)
        if entry is None:
            return []
        _, info, cls = entry

        seen: set[str] = set()
        invoked: list[MethodDescriptor] = []
        for call in info.calls:
            for target in self._resolve_call(call, info, cls):
                if target.key not in seen:
                    seen.add(target.key)
                    invoked.append(target)
        self._invoke_cache[method.key] = invoked
        return invoked

    def _resolve_call(self, call: MethodCall, info: MethodInfo, cls: ClassInfo) -> list[MethodDescriptor]:
        if call.name == "<init>":
            owner = call.receiver
        else:
            owner = self._receiver_type(call.receiver, info, cls)

        if owner is None:
            # Untyped receiver (chained call, array element, ...): match by name and arity
            return [d for d, m, _ in self._entries
                    if m.name == call.name and len(m.param_types) == call.arg_count]

        target_cls = self.indexer.classes.get(owner)
        if target_cls is None:
            return [MethodDescriptor(owning_type=owner, name=call.name, return_type=None)]

        overloads = target_cls.overloads(call.name)
        same_arity = [m for m in overloads if len(m.param_types) == call.arg_count]
        return [self._descriptor_for(target_cls, m) for m in (same_arity or overloads)]

    def _receiver_type(self, receiver: Optional[str], info: MethodInfo, cls: ClassInfo) -> Optional[str]:
        if receiver is None or receiver == "this":
            return cls.fqcn
        if receiver == "super":
            return None
        if receiver.startswith("this.") and IDENTIFIER.match(receiver[5:]):
            return cls.fields.get(receiver[5:])
        if IDENTIFIER.match(receiver):
            if receiver in info.locals:
                return info.locals[receiver]
            if receiver in cls.fields:
                return cls.fields[receiver]
            owners = self._by_simple_class.get(receiver)
            if owners:
                return owners[0]  # static call on an indexed class
            return None
        if QUALIFIED_NAME.match(receiver) and receiver in self.indexer.classes:
            return receiver
        return None

    def _descriptor_for(self, cls: ClassInfo, info: MethodInfo) -> MethodDescriptor:
        key = MethodDescriptor(cls.fqcn, info.name, info.return_type, tuple(info.param_types)).key
        return self._by_key[key][0]
