"""
Fingerprinting heuristics that locate a method without relying on its name.

Each strategy is a pure function of (query service, its own parameters). A
strategy returns a `StrategyMatch` or a `Failure`; it never raises for a miss.
"""
import abc
import logging
from typing import Optional, Sequence, Union

from hookfinder.src.hookfinder.models.descriptors import MethodDescriptor, is_boolean_like, type_contains
from hookfinder.src.hookfinder.models.resolution import (
    ErrorKind,
    Failure,
    SignalMatch,
    StorySignal,
    StrategyMatch,
)
from hookfinder.src.hookfinder.query_service import QueryService

logger = logging.getLogger(__name__)

Outcome = Union[StrategyMatch, Failure]


class MatchStrategy(abc.ABC):
    """A named search over the query service."""

    tag: str = "strategy"

    @abc.abstractmethod
    def run(self, query: QueryService) -> Outcome:
        ...

    def _miss(self, message: str) -> Failure:
        return Failure(ErrorKind.RESOLUTION_FAILURE, self.tag, message)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.tag}>"


def first_invoked(method: MethodDescriptor, owning_type: str) -> Optional[MethodDescriptor]:
    """First callee on `owning_type` returning boolean-like. Later matches are ignored."""
    for invoked in method.invoked_methods():
        if type_contains(invoked.owning_type, owning_type) and is_boolean_like(invoked.return_type):
            return invoked
    return None


class OrdinalSignatureStrategy(MatchStrategy):
    """
    Picks the method at a fixed position among those declared on `declaring_type`
    with `return_type`.

    The ordinals are empirical: they hold for the binary revision they were
    read from and silently pick the wrong getter once the declaration order
    shifts. Keep them next to the revision they were taken from.
    """

    def __init__(self, declaring_type: str, return_type: str, ordinal: int,
                 companion_ordinal: Optional[int] = None, tag: str = "default"):
        self.declaring_type = declaring_type
        self.return_type = return_type
        self.ordinal = ordinal
        self.companion_ordinal = companion_ordinal
        self.tag = tag

    def run(self, query: QueryService) -> Outcome:
        methods = query.find_by_declaring_type_and_return_type(self.declaring_type, self.return_type)
        if len(methods) <= self.ordinal:
            return self._miss(f"{len(methods)} {self.return_type} methods on {self.declaring_type}, "
                              f"need index {self.ordinal}")
        primary = methods[self.ordinal]
        companion = None
        if self.companion_ordinal is not None and len(methods) > self.companion_ordinal:
            companion = methods[self.companion_ordinal]
        return StrategyMatch(strategy=self.tag, primary=primary,
                             owning_type=primary.owning_type, companion=companion)


class StringAnchorStrategy(MatchStrategy):
    """
    A literal nobody renames (an internal error key) pins the owning class of
    the target. Methods taking (companion type, anchor type) are then searched
    for the first boolean-like call back into the anchor type.
    """

    def __init__(self, anchor_strings: Sequence[str], companion_type: str, tag: str = "fallback - 1"):
        self.anchor_strings = tuple(anchor_strings)
        self.companion_type = companion_type
        self.tag = tag

    def run(self, query: QueryService) -> Outcome:
        anchored = query.find_by_used_strings(*self.anchor_strings)
        if not anchored:
            return self._miss(f"no method uses {self.anchor_strings!r}")
        anchor_type = anchored[0].owning_type

        callers = query.find_by_param_types(self.companion_type, anchor_type)
        if not callers:
            return self._miss(f"no method takes ({self.companion_type}, {anchor_type})")

        for caller in callers:
            invoked = first_invoked(caller, anchor_type)
            if invoked is not None:
                return StrategyMatch(strategy=self.tag, primary=invoked, owning_type=anchor_type)
        return self._miss(f"no boolean-like call into {anchor_type}")


class StructuralShapeStrategy(MatchStrategy):
    """
    Broadest fingerprint: any two-parameter (session, user) method whose body
    calls a boolean-like method on the user type.
    """

    def __init__(self, session_type: str, user_type: str, tag: str = "fallback - 2"):
        self.session_type = session_type
        self.user_type = user_type
        self.tag = tag

    def run(self, query: QueryService) -> Outcome:
        for method in query.find_by_param_count(2):
            params = method.param_types
            if not (type_contains(params[0], self.session_type) and type_contains(params[1], self.user_type)):
                continue
            invoked = first_invoked(method, self.user_type)
            if invoked is not None:
                return StrategyMatch(strategy=self.tag, primary=invoked, owning_type=self.user_type)
        return self._miss(f"no ({self.session_type}, {self.user_type}) method calls a boolean-like getter")


class CompanionIdentifierLookup:
    """
    When resolution lands on the default interface, the receiver carries no
    usable id. Finds the type whose accessor yields the user id instead:
    the class referencing `anchor_string`, narrowed through what its
    `toString` calls first. Pure lookup; installs nothing.
    """

    def __init__(self, default_type: str, anchor_string: str,
                 stringify_name: str = "toString", stringify_type: str = "java.lang.String"):
        self.default_type = default_type
        self.anchor_string = anchor_string
        self.stringify_name = stringify_name
        self.stringify_type = stringify_type

    def lookup(self, query: QueryService, owning_type: str) -> Optional[str]:
        if owning_type != self.default_type:
            return owning_type

        anchored = query.find_by_used_strings(self.anchor_string)
        if not anchored:
            logger.debug("No method uses %r; identifier type unknown", self.anchor_string)
            return None
        candidate = anchored[0].owning_type

        stringifiers = [m for m in query.find_by_declaring_type_and_return_type(candidate, self.stringify_type)
                        if m.name == self.stringify_name]
        if not stringifiers:
            return candidate
        invoked = stringifiers[0].invoked_methods()
        if invoked:
            return invoked[0].owning_type
        return candidate


# --- Multi-signal (story) matching --------------------------------------------

class StringKeySignalStrategy:
    """Boolean-like methods whose code references the signal's literal key."""

    tag = "string-key"

    def __init__(self, signal: StorySignal):
        self.signal = signal

    def run(self, query: QueryService) -> list[SignalMatch]:
        if not self.signal.string_key:
            return []
        return [SignalMatch(self.signal, m, self.tag)
                for m in query.find_by_used_strings(self.signal.string_key)
                if is_boolean_like(m.return_type)]


class NameKeywordSignalStrategy:
    """Classifies boolean-like getters on one type by keywords in their names."""

    tag = "name-keyword"

    def __init__(self, signals: Sequence[StorySignal], declaring_type: str, return_type: str):
        self.signals = tuple(signals)
        self.declaring_type = declaring_type
        self.return_type = return_type

    def run(self, query: QueryService) -> list[SignalMatch]:
        matches = []
        methods = query.find_by_declaring_type_and_return_type(self.declaring_type, self.return_type)
        for index, method in enumerate(methods):
            if not is_boolean_like(method.return_type):
                continue
            for signal in self.signals:
                if signal.matches_name(method.name):
                    matches.append(SignalMatch(signal, method, self.tag, ordinal=index))
        return matches


class ProbeAllSignalStrategy:
    """
    Last resort when nothing was recognised: every boolean getter becomes its
    own generic signal so the log shows which index fires for which profile.
    """

    tag = "probe"

    def __init__(self, declaring_type: str, return_type: str,
                 template: str = "⚠️ Story status detected (method[{index}]: {name})"):
        self.declaring_type = declaring_type
        self.return_type = return_type
        self.template = template

    def run(self, query: QueryService) -> list[SignalMatch]:
        methods = query.find_by_declaring_type_and_return_type(self.declaring_type, self.return_type)
        return [
            SignalMatch(StorySignal(category="probe", message=self.template.format(index=i, name=m.name)),
                        m, self.tag, ordinal=i)
            for i, m in enumerate(methods)
        ]
