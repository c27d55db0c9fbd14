# --- Method identity as seen by a query service -----------------------------
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence

BOOLEAN_TYPES = frozenset({"boolean", "java.lang.Boolean", "Boolean", "Z", "Ljava/lang/Boolean;"})


def is_boolean_like(type_name: Optional[str]) -> bool:
    """Primitive or boxed boolean, in source or descriptor spelling."""
    return type_name in BOOLEAN_TYPES


def simple_name(type_name: str) -> str:
    """'com.instagram.user.model.FriendshipStatus' -> 'FriendshipStatus'."""
    return type_name.rsplit(".", 1)[-1]


def type_contains(actual: Optional[str], expected: str) -> bool:
    """
    Substring type match. Obfuscated builds sometimes report types with a
    synthetic suffix or in descriptor form, so a plain containment check is
    what the fingerprints rely on.
    """
    return actual is not None and expected in actual


@dataclass(frozen=True)
class MethodDescriptor:
    """
    One method as reported by a query service. Immutable; the call-graph
    successors are resolved lazily through the service that produced it.
    """
    owning_type: str
    name: str
    return_type: Optional[str]
    param_types: tuple[str, ...] = ()
    _invokes: Optional[Callable[["MethodDescriptor"], Sequence["MethodDescriptor"]]] = field(
        default=None, compare=False, repr=False
    )

    def invoked_methods(self) -> list["MethodDescriptor"]:
        """Direct call-graph successors, in the service's enumeration order."""
        if self._invokes is None:
            return []
        return list(self._invokes(self))

    @property
    def key(self) -> str:
        params = ",".join(self.param_types)
        return f"{self.owning_type}.{self.name}({params}){self.return_type or 'void'}"

    def __str__(self) -> str:
        return self.key
