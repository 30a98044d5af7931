import pytest

from winter_arcade.context import APP_CONFIG, ArcadeContext, Screen, Transition
from winter_arcade.events import Action, press, release
from winter_arcade.games.curling.game import Phase as CurlingPhase
from winter_arcade.games.figure_skating.game import Phase as SkatingPhase
from winter_arcade.registry import discover_games
from winter_arcade.sound import SoundBoard

DT = 1 / 120


@pytest.fixture
def ctx():
    return ArcadeContext(discover_games(), sound=SoundBoard())


def _settle_transition(ctx, limit=1000):
    for _ in range(limit):
        ctx.step(DT)
        if not ctx.transition.active:
            return
    raise AssertionError("transition never finished")


class TestTransition:
    def test_runs_pending_action_at_full_black(self):
        calls = []
        t = Transition(speed=4.0)
        assert t.start(lambda: calls.append("go"))
        assert t.active
        t.update(0.125)
        assert calls == []
        t.update(0.125)
        assert calls == ["go"]
        assert t.alpha == 1.0
        t.update(0.25)
        assert t.alpha == 0.0
        assert not t.active

    def test_refuses_overlapping_start(self):
        t = Transition(speed=1.0)
        assert t.start(lambda: None)
        assert not t.start(lambda: None)


def test_events_are_created_once_in_menu_order(ctx):
    assert ctx.keys == ["figure_skating", "curling", "ski_jump"]
    assert ctx.screen is Screen.MENU
    assert ctx.active_event is None


def test_menu_cursor_wraps(ctx):
    ctx.route(press(Action.AIM_DOWN))
    assert ctx.menu_index == 1
    ctx.route(press(Action.AIM_UP))
    ctx.route(press(Action.AIM_UP))
    assert ctx.menu_index == 2


def test_selecting_fades_into_event(ctx):
    ctx.route(press(Action.AIM_DOWN))
    ctx.route(press(Action.CONFIRM))
    assert ctx.transition.active
    assert ctx.screen is Screen.MENU

    # フェード中の入力は捨てられる
    ctx.route(press(Action.AIM_DOWN))
    assert ctx.menu_index == 1

    _settle_transition(ctx)
    assert ctx.screen is Screen.EVENT
    assert ctx.active_key == "curling"
    assert ctx.active_event is ctx.events["curling"]


def test_repeat_presses_only_reach_repeatable_actions(ctx):
    ctx.enter_event("curling")
    curling = ctx.active_event

    ctx.route(press(Action.COMMIT, repeat=True))
    assert curling.phase is CurlingPhase.READY

    ctx.route(press(Action.AIM_UP, repeat=True))
    assert curling.aim_deg == -1.5


def test_event_input_is_forwarded(ctx):
    ctx.enter_event("figure_skating")
    skating = ctx.active_event
    ctx.route(press(Action.COMMIT))
    assert skating.phase is SkatingPhase.CHARGING
    ctx.route(release(Action.COMMIT))
    assert skating.phase is SkatingPhase.AIR


def test_finished_event_moves_to_results(ctx):
    ctx.enter_event("ski_jump")
    ski = ctx.active_event
    for _ in range(5000):
        ctx.step(DT)
        if ctx.screen is Screen.RESULTS:
            break
    assert ctx.screen is Screen.RESULTS
    assert ctx.results.event_name == "Ski Jump"
    assert ctx.results.score == ski.score
    assert ctx.results.message == ski.message

    _settle_transition(ctx)
    ctx.route(press(Action.COMMIT))
    _settle_transition(ctx)
    assert ctx.screen is Screen.MENU


def test_quit_in_event_returns_to_menu(ctx):
    ctx.enter_event("curling")
    ctx.route(press(Action.QUIT))
    assert ctx.transition.active
    _settle_transition(ctx)
    assert ctx.screen is Screen.MENU
    assert not ctx.quit_requested


def test_quit_in_menu_requests_exit(ctx):
    ctx.route(press(Action.QUIT))
    assert ctx.quit_requested


def test_mute_works_even_during_transition(ctx):
    ctx.route(press(Action.COMMIT))
    assert ctx.transition.active
    assert ctx.sound.enabled
    ctx.route(press(Action.MUTE))
    assert not ctx.sound.enabled
    ctx.route(press(Action.MUTE, repeat=True))
    assert not ctx.sound.enabled


def test_reentering_resets_the_same_instance(ctx):
    ctx.enter_event("curling")
    curling = ctx.active_event
    ctx.route(press(Action.AIM_DOWN))
    ctx.route(press(Action.COMMIT))
    ctx.route(release(Action.COMMIT))
    for _ in range(30):
        ctx.step(DT)
    assert curling.phase is CurlingPhase.SLIDING

    ctx.enter_event("curling")
    assert ctx.active_event is curling
    assert curling.phase is CurlingPhase.READY
    assert curling.aim_deg == 0.0


def test_flush_sound_plays_event_cues(ctx, fake_px):
    ctx.enter_event("figure_skating")
    ctx.route(press(Action.COMMIT))
    ctx.flush_sound(fake_px)
    assert fake_px.plays == [(SoundBoard.CHANNEL, SoundBoard.SLOT)]
    assert ctx.sound.last_played == "charge"
    assert ctx.active_event.cues == []


def test_backdrop_moves_with_steps(ctx):
    before = [(p.x, p.y) for p in ctx.backdrop.particles]
    ctx.step(DT)
    after = [(p.x, p.y) for p in ctx.backdrop.particles]
    assert before != after


def test_default_config():
    assert APP_CONFIG.width == 300
    assert APP_CONFIG.height == 200
    assert APP_CONFIG.fixed_dt == pytest.approx(1 / 120)
