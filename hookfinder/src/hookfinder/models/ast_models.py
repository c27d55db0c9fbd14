# --- Data models for the source index ---------------------------------------
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class MethodCall:
    """Represents a call site found inside a method body."""
    name: str  # simple method name being called (e.g., "getId", "<init>")
    receiver: Optional[str]  # receiver text if present (e.g., "this.status", "user")
    arg_count: int
    line: int
    col: int


@dataclass
class MethodInfo:
    """Information about a method declaration in a class."""
    name: str  # possibly obfuscated, e.g. "A0L"
    param_types: list[str]  # qualified, generics erased
    param_names: list[str]
    return_type: Optional[str]  # qualified; None for constructors
    line: int
    col: int
    calls: list[MethodCall] = field(default_factory=list)  # source order
    strings: list[str] = field(default_factory=list)  # literals used in the body
    locals: dict[str, str] = field(default_factory=dict)  # local/param name -> qualified type


@dataclass
class ClassInfo:
    """Information about a class, interface or enum in a package."""
    simple_name: str  # e.g., "FriendshipStatus"
    fqcn: str  # e.g., "com.instagram.user.model.FriendshipStatus"
    kind: str  # "class" | "interface" | "enum"
    line: int
    col: int
    methods: list[MethodInfo] = field(default_factory=list)  # declaration order
    fields: dict[str, str] = field(default_factory=dict)  # field name -> qualified type

    def overloads(self, name: str) -> list[MethodInfo]:
        return [m for m in self.methods if m.name == name]
