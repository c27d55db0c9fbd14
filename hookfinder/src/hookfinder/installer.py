"""
Binds resolved methods to observers through an InterceptionSubstrate.

Observers run after the original call on whatever thread the host used and
only read receiver/result. A failing observer is logged and dropped; nothing
propagates back into the host's call.
"""
import logging
import threading
from typing import Any, Callable, Iterable, Optional, Union

from hookfinder.src.hookfinder.models.resolution import (
    ErrorKind,
    Failure,
    Hooked,
    InstallError,
    ResolutionResult,
    SignalMatch,
)
from hookfinder.src.hookfinder.notifier import EventNotifier
from hookfinder.src.hookfinder.status import FeatureStatus
from hookfinder.src.hookfinder.substrate import HookParam, InterceptionSubstrate
from hookfinder.src.hookfinder.targets import (
    FEATURE_FOLLOWER,
    FEATURE_STORY_HIDDEN,
    FEATURE_STORY_HIDE,
    FOLLOW_STATUS,
    FRIENDSHIP_STATUS,
    ID_ACCESSOR,
    LABEL_ACCESSOR,
    implementation_of,
)

logger = logging.getLogger(__name__)

InstallOutcome = Union[Hooked, InstallError]


class IdentifierSlot:
    """Last id produced by the identifier accessor hook."""

    def __init__(self):
        self._lock = threading.Lock()
        self._value: Optional[str] = None

    def set(self, value: Optional[str]) -> None:
        with self._lock:
            self._value = value

    def get(self) -> Optional[str]:
        with self._lock:
            return self._value


def as_bool(value: Any) -> Optional[bool]:
    return None if value is None else bool(value)


class InterceptionInstaller:

    def __init__(self, substrate: InterceptionSubstrate, status: FeatureStatus,
                 interface_types: Iterable[str] = (FRIENDSHIP_STATUS,)):
        self.substrate = substrate
        self.status = status
        self.interface_types = frozenset(interface_types)

    def concrete_type(self, type_name: str) -> str:
        if type_name in self.interface_types:
            return implementation_of(type_name)
        return type_name

    # -- Single hook -----------------------------------------------------------

    def install_hook(self, type_name: str, method_name: str, callback: Callable[[HookParam], None],
                     label: str, feature: Optional[str] = None) -> InstallOutcome:
        try:
            self.substrate.install_post_call_hook(type_name, method_name, self._guarded(label, callback))
        except Exception as e:
            logger.warning("%s: failed to hook %s.%s: %s", label, type_name, method_name, e)
            failure = Failure(ErrorKind.INSTALLATION_FAILURE, label, str(e))
            return InstallError(type_name, method_name, label, failure)

        if feature:
            self.status.set_hooked(feature)
        logger.info("%s: hooked %s.%s", label, type_name, method_name)
        return Hooked(type_name, method_name, label)

    def _guarded(self, label: str, callback: Callable[[HookParam], None]):
        def observer(param: HookParam) -> Optional[Failure]:
            try:
                callback(param)
            except Exception as e:
                logger.warning("%s: hook callback failed: %s", label, e, exc_info=True)
                return Failure(ErrorKind.RUNTIME_OBSERVATION_FAILURE, label, str(e))
            return None
        return observer

    def _try_call(self, receiver: Any, name: str) -> Any:
        """Best-effort accessor read; obfuscated builds often lack it."""
        try:
            return self.substrate.call_method(receiver, name)
        except Exception as e:
            logger.debug("%s() unavailable on %r: %s", name, type(receiver).__name__, e)
            return None

    # -- Follow status ---------------------------------------------------------

    def install_follow_status(self, result: ResolutionResult, notifier: EventNotifier,
                              identifier_type: Optional[str] = None) -> list[InstallOutcome]:
        """
        Hooks the followed-by getter, its companion blocking-reel getter and,
        when the getter lives on the interface, the id accessor of
        `identifier_type` that supplies the subject id.
        """
        outcomes: list[InstallOutcome] = []
        hook_type = self.concrete_type(result.owning_type)
        substituted = hook_type != result.owning_type
        slot = IdentifierSlot()

        if substituted and identifier_type is not None:
            outcomes.append(self.install_hook(
                identifier_type, ID_ACCESSOR,
                lambda param: slot.set(param.result),
                label=f"{FOLLOW_STATUS}:id",
            ))

        signal = f"{FOLLOW_STATUS}:{result.primary.name}"

        def on_follow_status(param: HookParam) -> None:
            if substituted:
                identifier = slot.get()
            else:
                identifier = self._try_call(param.receiver, ID_ACCESSOR)
            label = self._try_call(param.receiver, LABEL_ACCESSOR)
            notifier.follow_status(identifier, label, as_bool(param.result), signal)

        primary = self.install_hook(hook_type, result.primary.name, on_follow_status,
                                    label=f"{FOLLOW_STATUS} ({result.strategy})", feature=FEATURE_FOLLOWER)
        outcomes.append(primary)

        if result.companion is not None:
            companion_signal = f"story_hidden:{result.companion.name}"

            def on_blocking_reel(param: HookParam) -> None:
                notifier.story_hidden(notifier.session.subject, as_bool(param.result), companion_signal)

            outcomes.append(self.install_hook(hook_type, result.companion.name, on_blocking_reel,
                                              label="story_hidden", feature=FEATURE_STORY_HIDDEN))
        return outcomes

    # -- Story signals ---------------------------------------------------------

    def install_story_signals(self, matches: Iterable[SignalMatch], notifier: EventNotifier) -> list[InstallOutcome]:
        """Every match gets its own observer, even when two matches share a method."""
        return [self._install_signal(match, notifier) for match in matches]

    def _install_signal(self, match: SignalMatch, notifier: EventNotifier) -> InstallOutcome:
        signal = match.signal
        source = match.source

        def on_story_signal(param: HookParam) -> None:
            identifier = self._try_call(param.receiver, ID_ACCESSOR) or notifier.session.subject
            notifier.story_signal(identifier, as_bool(param.result), source,
                                  signal.message, signal.negative_message)

        return self.install_hook(self.concrete_type(match.method.owning_type), match.method.name,
                                 on_story_signal, label=f"story:{signal.category} ({match.strategy})",
                                 feature=FEATURE_STORY_HIDE)
