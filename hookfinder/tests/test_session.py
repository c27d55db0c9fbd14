"""Focus, dedup and delayed clear on ObservationSession."""

from __future__ import annotations

import threading

from hookfinder.src.hookfinder.session import ObservationSession, start_timer


def test_claim_only_once_per_key(session):
    session.begin_scope("42")
    assert session.claim("42", ("42", "follow")) is True
    assert session.claim("42", ("42", "follow")) is False
    assert session.claim("42", ("42", "story")) is True
    assert session.last_notified_key == ("42", "story")


def test_unfocused_subject_never_claims(session):
    session.begin_scope("42")
    assert session.claim("7", ("7", "follow")) is False
    assert session.claim(None, (None, "follow")) is False
    # the failed attempt must not poison the key for later
    session.focus("7")
    assert session.claim("7", ("7", "follow")) is True


def test_no_focus_means_nothing_claims(session):
    assert session.subject is None
    assert session.claim("42", ("42", "follow")) is False


def test_scope_reset_notifies_again_once(session):
    session.begin_scope("42")
    assert session.claim("42", "k")
    session.begin_scope("42")
    assert session.claim("42", "k") is True
    assert session.claim("42", "k") is False


def test_clear_seen_keeps_focus(session):
    session.begin_scope("42")
    session.claim("42", "k")
    session.clear_seen()
    assert session.subject == "42"
    assert session.last_notified_key is None
    assert session.claim("42", "k") is True


def test_delayed_clear_when_focus_unchanged(session, scheduler):
    session.begin_scope("42")
    session.schedule_clear("42")
    assert scheduler.pending[0][0] == 2.0
    assert session.subject == "42"
    scheduler.run_all()
    assert session.subject is None


def test_delayed_clear_leaves_new_focus_alone(session, scheduler):
    session.begin_scope("42")
    session.schedule_clear("42")
    session.focus("99")
    scheduler.run_all()
    assert session.subject == "99"


def test_new_scope_cancels_pending_clear(session, scheduler):
    session.begin_scope("42")
    session.schedule_clear("42")
    handle = scheduler.pending[0][2]
    session.begin_scope("42")
    assert handle.cancelled
    scheduler.run_all()
    assert session.subject == "42"


def test_concurrent_claims_record_one_winner():
    session = ObservationSession(scheduler=lambda delay, callback: None)
    session.begin_scope("42")
    barrier = threading.Barrier(16)
    wins = []

    def contend():
        barrier.wait()
        if session.claim("42", ("42", "follow")):
            wins.append(1)

    threads = [threading.Thread(target=contend) for _ in range(16)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(wins) == 1


def test_real_timer_clears_focus():
    timers = []

    def scheduler(delay, callback):
        timer = start_timer(delay, callback)
        timers.append(timer)
        return timer

    session = ObservationSession(clear_delay=0.01, scheduler=scheduler)
    session.begin_scope("42")
    session.schedule_clear("42")
    timers[0].join(timeout=2)
    assert session.subject is None
    assert session.pending_clears == 0


def test_rescope_cancels_every_pending_clear(session, scheduler, notifier, presenter):
    session.begin_scope("42")
    notifier.follow_status("42", None, True, "follow_status:A01")
    notifier.story_hidden("42", True, "story_hidden:A13")
    assert len(scheduler.pending) == 2
    assert session.pending_clears == 2

    session.begin_scope("42")
    assert all(handle.cancelled for _, _, handle in scheduler.pending)
    assert session.pending_clears == 0
    scheduler.run_all()
    assert session.subject == "42"

    notifier.follow_status("42", None, True, "follow_status:A01")
    assert presenter.messages[-1] == "(42) follows you ✅"


def test_clear_from_previous_scope_is_ignored_even_if_not_cancelled():
    callbacks = []
    session = ObservationSession(scheduler=lambda delay, callback: callbacks.append(callback))
    session.begin_scope("42")
    session.schedule_clear("42")
    session.schedule_clear("42")
    session.begin_scope("42")

    for callback in callbacks:
        callback()
    assert session.subject == "42"


def test_fired_clear_is_forgotten(session, scheduler):
    session.begin_scope("42")
    session.schedule_clear("42")
    session.schedule_clear("42")
    scheduler.run_all()
    assert session.pending_clears == 0
    assert session.subject is None
