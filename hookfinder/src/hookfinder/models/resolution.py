# --- Outcomes of resolution and hook installation ---------------------------
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

from hookfinder.src.hookfinder.models.descriptors import MethodDescriptor


class ErrorKind(Enum):
    RESOLUTION_FAILURE = "resolution_failure"
    INSTALLATION_FAILURE = "installation_failure"
    RUNTIME_OBSERVATION_FAILURE = "runtime_observation_failure"


@dataclass(frozen=True)
class Failure:
    """A recoverable miss. Never raised; returned and inspected by the caller."""
    kind: ErrorKind
    source: str  # strategy tag or hook label
    message: str


@dataclass(frozen=True)
class StrategyMatch:
    """What a single strategy found."""
    strategy: str
    primary: MethodDescriptor
    owning_type: str
    companion: Optional[MethodDescriptor] = None


@dataclass(frozen=True)
class ResolutionResult:
    """Final answer for one semantic target. Created once per load session."""
    target: str
    primary: MethodDescriptor
    owning_type: str
    strategy: str
    companion: Optional[MethodDescriptor] = None

    @classmethod
    def from_match(cls, target: str, match: StrategyMatch) -> "ResolutionResult":
        return cls(
            target=target,
            primary=match.primary,
            owning_type=match.owning_type,
            strategy=match.strategy,
            companion=match.companion,
        )


@dataclass(frozen=True)
class StorySignal:
    """One story-visibility category and how to recognise its getter."""
    category: str  # "hidden" | "muted" | "blocked" | "probe"
    message: str
    negative_message: Optional[str] = None
    string_key: Optional[str] = None  # literal the getter's code path references
    keyword_groups: tuple[tuple[str, ...], ...] = ()  # any group fully contained in the lowercased name

    def matches_name(self, method_name: str) -> bool:
        lowered = method_name.lower()
        return any(all(k in lowered for k in group) for group in self.keyword_groups)


@dataclass(frozen=True)
class SignalMatch:
    signal: StorySignal
    method: MethodDescriptor
    strategy: str
    ordinal: Optional[int] = None

    @property
    def source(self) -> str:
        """Dedup source: one per hooked method, like the runtime sees it."""
        return f"{self.signal.category}:{self.method.name}"


@dataclass(frozen=True)
class NotFound:
    """Terminal outcome when every strategy fell through. Not an error."""
    target: str
    attempts: tuple[Failure, ...] = ()


@dataclass(frozen=True)
class Hooked:
    type_name: str
    method_name: str
    label: str


@dataclass(frozen=True)
class InstallError:
    type_name: str
    method_name: str
    label: str
    failure: Failure


@dataclass
class InstallReport:
    """Everything the startup pass did, for status surfaces and the CLI."""
    resolutions: list[Union[ResolutionResult, NotFound]] = field(default_factory=list)
    hooked: list[Hooked] = field(default_factory=list)
    errors: list[InstallError] = field(default_factory=list)

    def record(self, outcome) -> None:
        if isinstance(outcome, Hooked):
            self.hooked.append(outcome)
        else:
            self.errors.append(outcome)
