"""Behaviour every event must share, checked against all three."""

import pytest

from winter_arcade.events import Action, press, release
from winter_arcade.games.base import EventSimulation, HeadsUpState
from winter_arcade.games.curling.game import CurlingEvent
from winter_arcade.games.figure_skating.game import FigureSkatingEvent
from winter_arcade.games.ski_jump.game import SkiJumpEvent

DT = 1 / 120
EVENT_CLASSES = [FigureSkatingEvent, CurlingEvent, SkiJumpEvent]


def _play_to_end(ev, on_step=None):
    """SPACE を押して溜め、離して待つ、を終わるまで繰り返す"""
    for _ in range(10):
        if ev.finished:
            return
        ev.handle_input(press(Action.COMMIT))
        for _ in range(60):
            ev.advance(DT)
            if on_step:
                on_step(ev)
        ev.handle_input(release(Action.COMMIT))
        for _ in range(900):
            ev.advance(DT)
            if on_step:
                on_step(ev)
            if ev.finished:
                break
    assert ev.finished


@pytest.fixture(params=EVENT_CLASSES, ids=lambda cls: cls.__name__)
def event(request):
    return request.param()


def test_satisfies_protocol(event):
    assert isinstance(event, EventSimulation)
    hud = event.heads_up_state()
    assert isinstance(hud, HeadsUpState)
    assert hud.event_name == event.name
    assert hud.score == 0
    assert hud.attempts_remaining > 0
    assert hud.instructions


def test_reset_is_idempotent(event):
    fresh = event.snapshot()
    event.reset()
    event.reset()
    assert event.snapshot() == fresh


def test_reset_after_play_restores_initial_state(event):
    fresh = event.snapshot()
    _play_to_end(event)
    event.reset()
    assert event.snapshot() == fresh
    assert not event.finished
    assert event.cues == []


def test_attempts_reach_zero_exactly_at_completion(event):
    def check(ev):
        hud = ev.heads_up_state()
        assert hud.attempts_remaining >= 0
        assert (hud.attempts_remaining == 0) == ev.finished

    _play_to_end(event, on_step=check)


def test_score_never_negative_and_matches_hud(event):
    def check(ev):
        assert ev.score >= 0
        assert ev.heads_up_state().score == ev.score

    _play_to_end(event, on_step=check)


def test_terminal_state_is_inert(event):
    _play_to_end(event)
    before = event.snapshot()
    for action in Action:
        event.handle_input(press(action))
        event.handle_input(press(action, repeat=True))
        event.handle_input(release(action))
    for _ in range(240):
        event.advance(DT)
    assert event.snapshot() == before
    assert event.heads_up_state().attempts_remaining == 0


def test_unknown_actions_do_not_change_state(event):
    before = event.snapshot()
    for action in (Action.CONFIRM, Action.MUTE, Action.QUIT):
        event.handle_input(press(action))
        event.handle_input(release(action))
    assert event.snapshot() == before


def test_snapshot_reports_phase_and_score(event):
    snap = event.snapshot()
    assert snap["score"] == 0
    assert isinstance(snap["phase"], str)
    assert snap["message"] == event.message
