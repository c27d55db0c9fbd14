import logging
from typing import Optional, Sequence, Union

from hookfinder.src.hookfinder.models.resolution import (
    ErrorKind,
    Failure,
    NotFound,
    ResolutionResult,
    SignalMatch,
)
from hookfinder.src.hookfinder.query_service import QueryService
from hookfinder.src.hookfinder.strategies import (
    MatchStrategy,
    NameKeywordSignalStrategy,
    ProbeAllSignalStrategy,
    StringKeySignalStrategy,
)

logger = logging.getLogger(__name__)

SignalStrategy = Union[StringKeySignalStrategy, NameKeywordSignalStrategy, ProbeAllSignalStrategy]


class CandidateMatcher:
    """
    Fallback chain for one semantic target. Strategies run in priority order
    and the first one that finds something wins; the rest are not consulted.
    """

    def __init__(self, target: str, strategies: Sequence[MatchStrategy]):
        self.target = target
        self.strategies = tuple(strategies)

    def resolve(self, query: QueryService) -> Union[ResolutionResult, NotFound]:
        attempts: list[Failure] = []
        for strategy in self.strategies:
            try:
                outcome = strategy.run(query)
            except Exception as e:
                # A query service blowing up is just another miss for this strategy
                logger.warning("%s: strategy %r raised: %s", self.target, strategy.tag, e)
                outcome = Failure(ErrorKind.RESOLUTION_FAILURE, strategy.tag, str(e))

            if isinstance(outcome, Failure):
                logger.debug("%s: %s fell through (%s)", self.target, outcome.source, outcome.message)
                attempts.append(outcome)
                continue

            result = ResolutionResult.from_match(self.target, outcome)
            logger.info("%s: resolved via %s -> %s", self.target, result.strategy, result.primary)
            return result

        logger.info("%s: not found after %d strategies", self.target, len(attempts))
        return NotFound(self.target, tuple(attempts))


class MultiSignalMatcher:
    """
    Union of independent signal searches. Every match is kept, duplicates
    included; the probe strategy only runs when the union came back empty.
    """

    def __init__(self, target: str, strategies: Sequence[SignalStrategy],
                 probe: Optional[ProbeAllSignalStrategy] = None):
        self.target = target
        self.strategies = tuple(strategies)
        self.probe = probe

    def match(self, query: QueryService) -> list[SignalMatch]:
        matches: list[SignalMatch] = []
        for strategy in self.strategies:
            try:
                found = strategy.run(query)
            except Exception as e:
                logger.warning("%s: %s search raised: %s", self.target, strategy.tag, e)
                continue
            logger.debug("%s: %s found %d", self.target, strategy.tag, len(found))
            matches.extend(found)

        if not matches and self.probe is not None:
            logger.info("%s: no signal recognised, probing every getter", self.target)
            try:
                matches = self.probe.run(query)
            except Exception as e:
                logger.warning("%s: probe raised: %s", self.target, e)

        for m in matches:
            logger.info("%s: %s via %s -> %s", self.target, m.signal.category, m.strategy, m.method)
        return matches
