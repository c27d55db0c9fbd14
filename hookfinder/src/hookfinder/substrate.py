"""
The capability the installer needs from the live process: attach a post-call
observer to a named method and read values off a receiver. Everything that
touches a real runtime sits behind this interface.
"""
from dataclasses import dataclass, field
from typing import Any, Callable, Protocol


@dataclass
class HookParam:
    """What an observer sees after the original call returned."""
    receiver: Any
    result: Any
    args: tuple = field(default_factory=tuple)


HookCallback = Callable[[HookParam], None]


class InterceptionSubstrate(Protocol):

    def install_post_call_hook(self, type_name: str, method_name: str, callback: HookCallback) -> None:
        """Bind `callback` after every overload of `type_name.method_name`.

        Raises HookInstallError when the type or method cannot be found.
        Installing twice on the same method adds a second independent observer.
        """
        ...

    def call_method(self, receiver: Any, name: str) -> Any:
        """Invoke a zero-argument method on `receiver`; raises if it is absent."""
        ...
