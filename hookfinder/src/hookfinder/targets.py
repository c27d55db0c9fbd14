"""
Known fingerprints of the target app.

Everything here is tied to a binary revision. The ordinals were read off the
FriendshipStatus interface of the 418.x builds; re-check them before trusting
a new revision.
"""
from hookfinder.src.hookfinder.matcher import CandidateMatcher, MultiSignalMatcher
from hookfinder.src.hookfinder.models.resolution import StorySignal
from hookfinder.src.hookfinder.strategies import (
    CompanionIdentifierLookup,
    NameKeywordSignalStrategy,
    OrdinalSignatureStrategy,
    ProbeAllSignalStrategy,
    StringAnchorStrategy,
    StringKeySignalStrategy,
    StructuralShapeStrategy,
)

FRIENDSHIP_STATUS = "com.instagram.user.model.FriendshipStatus"
USER = "com.instagram.user.model.User"
USER_SESSION = "com.instagram.common.session.UserSession"
BOXED_BOOLEAN = "java.lang.Boolean"

FOLLOWED_BY_ORDINAL = 1  # 2nd Boolean getter: followed_by
BLOCKING_REEL_ORDINAL = 13  # 14th Boolean getter: is_blocking_reel

USER_ANCHOR = "ERROR_INSERT_EXPIRED_URL"
USER_ID_ANCHOR = "username_missing_during_update"

IMPL_SUFFIX = "Impl"
ID_ACCESSOR = "getId"
LABEL_ACCESSOR = "getUsername"

FOLLOW_STATUS = "follow_status"
STORY_VISIBILITY = "story_visibility"

# Status markers
FEATURE_FOLLOWER = "ShowFollowerToast"
FEATURE_STORY_HIDDEN = "ShowStoryHiddenToast"
FEATURE_STORY_HIDE = "ShowStoryHideToast"

STORY_SIGNALS = (
    StorySignal(
        category="hidden",
        message="🚫 This user hid their story from you",
        negative_message="This user hasn't hidden their story from you",
        string_key="hide_story",
        keyword_groups=(("hidestory",), ("hide_story",), ("hide", "story")),
    ),
    StorySignal(
        category="muted",
        message="🔇 This user muted your stories",
        negative_message="This user hasn't muted your stories",
        string_key="is_muting_reel",
        keyword_groups=(("mutingreel",), ("muting_reel",), ("mute", "reel")),
    ),
    StorySignal(
        category="blocked",
        message="⛔ This user blocked your stories",
        negative_message="This user hasn't blocked your stories",
        string_key="is_blocking_reel",
        keyword_groups=(("blockingreel",), ("blocking_reel",), ("block", "reel")),
    ),
)


def implementation_of(type_name: str) -> str:
    """Fixed naming convention for the concrete class behind an interface."""
    return type_name + IMPL_SUFFIX


def follow_status_matcher() -> CandidateMatcher:
    return CandidateMatcher(FOLLOW_STATUS, [
        OrdinalSignatureStrategy(FRIENDSHIP_STATUS, BOXED_BOOLEAN,
                                 ordinal=FOLLOWED_BY_ORDINAL,
                                 companion_ordinal=BLOCKING_REEL_ORDINAL),
        StringAnchorStrategy([USER_ANCHOR], companion_type=USER_SESSION),
        StructuralShapeStrategy(USER_SESSION, USER),
    ])


def identifier_lookup() -> CompanionIdentifierLookup:
    return CompanionIdentifierLookup(FRIENDSHIP_STATUS, USER_ID_ANCHOR)


def story_matcher(probe_fallback: bool = False) -> MultiSignalMatcher:
    strategies = [StringKeySignalStrategy(signal) for signal in STORY_SIGNALS]
    strategies.append(NameKeywordSignalStrategy(STORY_SIGNALS, implementation_of(FRIENDSHIP_STATUS), BOXED_BOOLEAN))
    probe = ProbeAllSignalStrategy(FRIENDSHIP_STATUS, BOXED_BOOLEAN) if probe_fallback else None
    return MultiSignalMatcher(STORY_VISIBILITY, strategies, probe=probe)
