from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from .backdrop import Backdrop
from .driver import FIXED_DT, MAX_FRAME_DELTA
from .events import Action, InputEvent
from .games.base import WORLD_HEIGHT, WORLD_WIDTH, EventSimulation, SoundCue
from .registry import GameInfo, build_events
from .scenes import EventScene, MenuScene, ResultsScene, Scene
from .sound import SoundBoard


@dataclass(frozen=True)
class AppConfig:
    title: str = "Winter Arcade"
    width: int = 300                  # Pyxel の画面サイズ
    height: int = 200
    view_scale: float = 1.0 / 3.0     # ワールド座標 (900x600) -> 画面座標
    fps: int = 60
    fixed_dt: float = FIXED_DT
    max_frame: float = MAX_FRAME_DELTA
    transition_speed: float = 2.8     # フェードの速さ（1 秒あたりの不透明度）
    backdrop_seed: int = 42


APP_CONFIG = AppConfig()


class Screen(Enum):
    MENU = auto()
    EVENT = auto()
    RESULTS = auto()


@dataclass
class Results:
    event_name: str = ""
    score: int = 0
    message: str = ""


class Transition:
    """
    画面切り替えのフェード。
    暗転しきった瞬間に保留中の処理を実行し、その後明るく戻す。
    フェード中は新しい切り替えと入力を受け付けない。
    """

    def __init__(self, speed: float) -> None:
        self.speed = speed
        self.alpha = 0.0
        self.direction = 0
        self._pending: Optional[Callable[[], None]] = None

    @property
    def active(self) -> bool:
        return self.direction != 0

    def start(self, action: Callable[[], None]) -> bool:
        if self.active:
            return False
        self._pending = action
        self.direction = 1
        return True

    def update(self, dt: float) -> None:
        if self.direction == 0:
            return
        if self.direction == 1:
            self.alpha += self.speed * dt
            if self.alpha >= 1.0:
                self.alpha = 1.0
                pending, self._pending = self._pending, None
                if pending is not None:
                    pending()
                self.direction = -1
        else:
            self.alpha -= self.speed * dt
            if self.alpha <= 0.0:
                self.alpha = 0.0
                self.direction = 0


class ArcadeContext:
    """
    アプリ全体の状態（競技インスタンス・表示中の画面・結果・フェード・背景）。

    競技は起動時に 1 度だけ生成し、入場のたびに reset() して使い回す。
    同時にアクティブな競技は常に 1 つだけ。
    """

    def __init__(
        self,
        games: Dict[str, GameInfo],
        config: AppConfig = APP_CONFIG,
        sound: Optional[SoundBoard] = None,
    ) -> None:
        self.config = config
        self.games = games
        self.events: Dict[str, EventSimulation] = build_events(games)
        self.keys: List[str] = list(self.events)
        self.screen = Screen.MENU
        self.active_key: Optional[str] = None
        self.results = Results()
        self.transition = Transition(config.transition_speed)
        self.backdrop = Backdrop(WORLD_WIDTH, WORLD_HEIGHT, seed=config.backdrop_seed)
        self.sound = sound or SoundBoard()
        self.menu_index = 0
        self.quit_requested = False
        self._cues: List[SoundCue] = []
        self.scenes: Dict[Screen, Scene] = {
            Screen.MENU: MenuScene(self),
            Screen.EVENT: EventScene(self),
            Screen.RESULTS: ResultsScene(self),
        }

    # --- helper properties -------------------------------------------------

    @property
    def active_event(self) -> Optional[EventSimulation]:
        if self.screen != Screen.EVENT or self.active_key is None:
            return None
        return self.events.get(self.active_key)

    @property
    def scene(self) -> Scene:
        return self.scenes[self.screen]

    # --- 画面遷移 ----------------------------------------------------------

    def select_event(self, key: str) -> bool:
        if key not in self.events:
            return False
        return self.transition.start(lambda: self.enter_event(key))

    def enter_event(self, key: str) -> None:
        event = self.events[key]
        event.reset()
        self.active_key = key
        self.screen = Screen.EVENT

    def return_to_menu(self) -> bool:
        return self.transition.start(self._show_menu)

    def _show_menu(self) -> None:
        self.screen = Screen.MENU

    def _show_results(self, event_name: str, score: int, message: str) -> None:
        self.results = Results(event_name=event_name, score=score, message=message)
        self.screen = Screen.RESULTS

    # --- 入力 --------------------------------------------------------------

    def route(self, event: InputEvent, px=None) -> None:
        """入力を現在の画面へ転送する（フェード中・キーリピートはここで落とす）"""
        if event.action == Action.MUTE:
            if event.is_press and not event.is_repeat:
                self.sound.toggle(px)
            return
        if event.is_repeat and not event.action.repeatable:
            return
        if self.transition.active:
            return
        self.scene.on_event(event)

    # --- 更新 --------------------------------------------------------------

    def step(self, dt: float) -> None:
        """固定タイムステップ 1 回分の更新"""
        self.backdrop.update(dt)

        event = self.active_event
        if event is not None:
            event.advance(dt)
            self._cues.extend(event.cues)
            event.cues.clear()
            if event.finished:
                hud = event.heads_up_state()
                message = event.message
                self.transition.start(lambda: self._show_results(hud.event_name, hud.score, message))

        self.transition.update(dt)

    def cue(self, cue: SoundCue) -> None:
        self._cues.append(cue)

    def flush_sound(self, px) -> None:
        # 入力ハンドラ内で発行された効果音も拾う
        event = self.active_event
        if event is not None and event.cues:
            self._cues.extend(event.cues)
            event.cues.clear()
        cues, self._cues = self._cues, []
        self.sound.play_all(px, cues)
