from winter_arcade.games.curling.game import CurlingEvent
from winter_arcade.games.figure_skating.game import FigureSkatingEvent
from winter_arcade.games.ski_jump.game import SkiJumpEvent
from winter_arcade.registry import (
    GameInfo,
    _maybe_get_game_class,
    build_events,
    discover_games,
    discover_local_games,
)


class NotAnEvent:
    def reset(self):
        pass


def test_local_discovery_finds_all_events():
    games = discover_local_games()
    assert set(games) == {"figure_skating", "curling", "ski_jump"}
    assert games["curling"].cls is CurlingEvent
    assert all(info.source == "local" for info in games.values())


def test_discover_games_sorted_by_menu_order():
    games = discover_games()
    assert list(games)[:3] == ["figure_skating", "curling", "ski_jump"]
    assert [info.title for info in games.values()][:3] == ["Figure Skating", "Curling", "Ski Jump"]


def test_accepts_class_module_or_factory():
    assert _maybe_get_game_class(SkiJumpEvent) is SkiJumpEvent
    assert _maybe_get_game_class(lambda: FigureSkatingEvent) is FigureSkatingEvent


def test_rejects_incomplete_classes_and_failing_factories():
    assert _maybe_get_game_class(NotAnEvent) is None

    def boom():
        raise RuntimeError("nope")

    assert _maybe_get_game_class(boom) is None
    assert _maybe_get_game_class(42) is None


def test_build_events_instantiates_once():
    games = {"ski_jump": GameInfo(name="ski_jump", cls=SkiJumpEvent, source="local")}
    events = build_events(games)
    assert isinstance(events["ski_jump"], SkiJumpEvent)
    assert games["ski_jump"].menu_order == 2
