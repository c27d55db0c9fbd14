"""Fallback chain ordering and the multi-signal union."""

from __future__ import annotations

from conftest import friendship_catalog

from hookfinder.src.hookfinder.matcher import CandidateMatcher, MultiSignalMatcher
from hookfinder.src.hookfinder.models.descriptors import MethodDescriptor
from hookfinder.src.hookfinder.models.resolution import (
    ErrorKind,
    Failure,
    NotFound,
    ResolutionResult,
    SignalMatch,
    StrategyMatch,
)
from hookfinder.src.hookfinder.query_service import InMemoryQueryService
from hookfinder.src.hookfinder.strategies import MatchStrategy, ProbeAllSignalStrategy
from hookfinder.src.hookfinder.targets import (
    BOXED_BOOLEAN,
    FRIENDSHIP_STATUS,
    STORY_SIGNALS,
    USER,
    USER_ANCHOR,
    USER_SESSION,
    follow_status_matcher,
    story_matcher,
)


class SpyStrategy(MatchStrategy):
    def __init__(self, tag, outcome):
        self.tag = tag
        self.outcome = outcome
        self.calls = 0

    def run(self, query):
        self.calls += 1
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def hit(tag: str) -> StrategyMatch:
    method = MethodDescriptor("X.Y", tag, "boolean")
    return StrategyMatch(strategy=tag, primary=method, owning_type="X.Y")


def miss(tag: str) -> Failure:
    return Failure(ErrorKind.RESOLUTION_FAILURE, tag, "nothing")


class TestCandidateMatcher:

    def test_first_success_short_circuits(self):
        first = SpyStrategy("a", miss("a"))
        second = SpyStrategy("b", hit("b"))
        third = SpyStrategy("c", hit("c"))
        result = CandidateMatcher("t", [first, second, third]).resolve(InMemoryQueryService())

        assert isinstance(result, ResolutionResult)
        assert result.strategy == "b"
        assert (first.calls, second.calls, third.calls) == (1, 1, 0)

    def test_every_ordering_stops_at_first_hit(self):
        tags = ["a", "b", "c"]
        for winner in tags:
            spies = [SpyStrategy(t, hit(t) if t == winner else miss(t)) for t in tags]
            result = CandidateMatcher("t", spies).resolve(InMemoryQueryService())
            assert result.strategy == winner
            after = spies[tags.index(winner) + 1:]
            assert all(s.calls == 0 for s in after)

    def test_not_found_keeps_attempts(self):
        result = CandidateMatcher("t", [SpyStrategy("a", miss("a")), SpyStrategy("b", miss("b"))]).resolve(
            InMemoryQueryService())
        assert isinstance(result, NotFound)
        assert [f.source for f in result.attempts] == ["a", "b"]

    def test_raising_strategy_falls_through(self):
        broken = SpyStrategy("a", RuntimeError("index corrupt"))
        result = CandidateMatcher("t", [broken, SpyStrategy("b", hit("b"))]).resolve(InMemoryQueryService())
        assert result.strategy == "b"


class CountingQuery(InMemoryQueryService):
    """Records which query kinds were asked."""

    def __init__(self):
        super().__init__()
        self.asked: list[str] = []

    def find_by_declaring_type_and_return_type(self, type_name, return_type):
        self.asked.append("declared")
        return super().find_by_declaring_type_and_return_type(type_name, return_type)

    def find_by_used_strings(self, *strings):
        self.asked.append("strings")
        return super().find_by_used_strings(*strings)

    def find_by_param_types(self, *types):
        self.asked.append("param_types")
        return super().find_by_param_types(*types)

    def find_by_param_count(self, count):
        self.asked.append("param_count")
        return super().find_by_param_count(count)


class TestFollowStatusScenarios:

    def test_ordinal_wins_on_full_interface(self):
        query = CountingQuery()
        for i in range(20):
            query.add_method(FRIENDSHIP_STATUS, f"m{i}", BOXED_BOOLEAN)

        result = follow_status_matcher().resolve(query)

        assert isinstance(result, ResolutionResult)
        assert result.strategy == "default"
        assert result.primary.name == "m1"
        assert result.companion.name == "m13"
        assert query.asked == ["declared"]

    def test_anchor_wins_when_interface_is_gone(self):
        query = CountingQuery()
        query.add_method("X.C7a", "A0C", "void", strings=[USER_ANCHOR])
        getter = query.add_method("X.C7a", "A0L", "boolean")
        caller = query.add_method("X.C4Q", "A00", "boolean", [USER_SESSION, "X.C7a"])
        query.add_call(caller, getter)

        result = follow_status_matcher().resolve(query)

        assert result.strategy == "fallback - 1"
        assert result.primary == getter
        assert result.owning_type == "X.C7a"
        assert "param_count" not in query.asked

    def test_shape_is_last_resort(self):
        query = InMemoryQueryService()
        getter = query.add_method(USER, "A0L", "boolean")
        caller = query.add_method("X.C4Q", "A00", "boolean", [USER_SESSION, USER])
        query.add_call(caller, getter)

        result = follow_status_matcher().resolve(query)
        assert result.strategy == "fallback - 2"
        assert result.owning_type == USER

    def test_nothing_anywhere(self):
        result = follow_status_matcher().resolve(InMemoryQueryService())
        assert isinstance(result, NotFound)
        assert [f.source for f in result.attempts] == ["default", "fallback - 1", "fallback - 2"]


class TestMultiSignalMatcher:

    def test_union_keeps_duplicates(self):
        impl = FRIENDSHIP_STATUS + "Impl"
        query = InMemoryQueryService()
        query.add_method(impl, "isBlockingReel", BOXED_BOOLEAN, strings=["is_blocking_reel"])
        query.add_method("X.Z", "A03", "boolean", strings=["hide_story"])

        matches = story_matcher().match(query)

        pairs = [(m.signal.category, m.strategy, m.method.name) for m in matches]
        assert pairs == [
            ("hidden", "string-key", "A03"),
            ("blocked", "string-key", "isBlockingReel"),
            ("blocked", "name-keyword", "isBlockingReel"),
        ]

    def test_probe_only_when_union_empty(self):
        query = friendship_catalog(3)
        assert story_matcher(probe_fallback=False).match(query) == []

        probed = story_matcher(probe_fallback=True).match(query)
        assert [m.strategy for m in probed] == ["probe"] * 3

    def test_probe_skipped_when_something_matched(self):
        query = friendship_catalog(3)
        query.add_method("X.Z", "A03", "boolean", strings=["is_muting_reel"])
        matches = story_matcher(probe_fallback=True).match(query)
        assert [m.signal.category for m in matches] == ["muted"]

    def test_raising_search_is_skipped(self):
        class Broken:
            tag = "broken"

            def run(self, query):
                raise RuntimeError("boom")

        class Fixed:
            tag = "fixed"

            def run(self, query):
                return [SignalMatch(STORY_SIGNALS[0], MethodDescriptor("X", "a", "boolean"), "fixed")]

        matches = MultiSignalMatcher("t", [Broken(), Fixed()],
                                     probe=ProbeAllSignalStrategy(FRIENDSHIP_STATUS, BOXED_BOOLEAN)).match(
            InMemoryQueryService())
        assert [m.strategy for m in matches] == ["fixed"]
