"""
Query service contract plus a catalog-backed implementation.

Every query returns descriptors in the service's native enumeration order.
Ordinal strategies depend on that order, so implementations must never sort,
dedupe or otherwise reorder their results.
"""
from typing import Iterable, Optional, Protocol, Sequence

from hookfinder.src.hookfinder.models.descriptors import MethodDescriptor


class QueryService(Protocol):
    def find_by_declaring_type_and_return_type(self, type_name: str, return_type: str) -> list[MethodDescriptor]:
        ...

    def find_by_used_strings(self, *strings: str) -> list[MethodDescriptor]:
        ...

    def find_by_param_types(self, *types: str) -> list[MethodDescriptor]:
        ...

    def find_by_param_count(self, count: int) -> list[MethodDescriptor]:
        ...


class InMemoryQueryService:
    """
    Answers queries from an explicit catalog of methods, in insertion order.
    Useful for tests and for replaying a dump taken from a real index.
    """

    def __init__(self):
        self._methods: list[MethodDescriptor] = []
        self._strings: dict[str, tuple[str, ...]] = {}  # descriptor key -> literals
        self._edges: dict[str, list[MethodDescriptor]] = {}  # descriptor key -> callees

    def add_method(self, owning_type: str, name: str, return_type: Optional[str],
                   param_types: Sequence[str] = (), strings: Iterable[str] = ()) -> MethodDescriptor:
        method = MethodDescriptor(
            owning_type=owning_type,
            name=name,
            return_type=return_type,
            param_types=tuple(param_types),
            _invokes=self._invoked_by,
        )
        self._methods.append(method)
        self._strings[method.key] = tuple(strings)
        return method

    def add_call(self, caller: MethodDescriptor, callee: MethodDescriptor) -> None:
        self._edges.setdefault(caller.key, []).append(callee)

    def _invoked_by(self, method: MethodDescriptor) -> list[MethodDescriptor]:
        return list(self._edges.get(method.key, ()))

    # -- Queries ---------------------------------------------------------------

    def find_by_declaring_type_and_return_type(self, type_name: str, return_type: str) -> list[MethodDescriptor]:
        return [m for m in self._methods
                if m.owning_type == type_name and m.return_type == return_type]

    def find_by_used_strings(self, *strings: str) -> list[MethodDescriptor]:
        if not strings:
            return []
        wanted = set(strings)
        return [m for m in self._methods if wanted.issubset(self._strings.get(m.key, ()))]

    def find_by_param_types(self, *types: str) -> list[MethodDescriptor]:
        return [m for m in self._methods if m.param_types == tuple(types)]

    def find_by_param_count(self, count: int) -> list[MethodDescriptor]:
        return [m for m in self._methods if len(m.param_types) == count]

    def __len__(self) -> int:
        return len(self._methods)
