from __future__ import annotations

from typing import TYPE_CHECKING

from . import views
from .events import Action, InputEvent
from .games.base import SoundCue
from .text import draw_centered_text

if TYPE_CHECKING:
    from .context import ArcadeContext

PROMPT_BLINK = 30  # プロンプト点滅の間隔（フレーム）


# --- シーン基盤 -----------------------------------------------------------------
# 画面ごとに Scene を分け、ArcadeContext が現在の画面に対応するシーンへ入力と描画を振り分ける。


class Scene:

    def __init__(self, ctx: ArcadeContext) -> None:
        self.ctx = ctx

    def on_event(self, event: InputEvent) -> None:
        pass

    def draw(self, px) -> None:
        pass

    def _draw_sky(self, px) -> None:
        cfg = self.ctx.config
        palette = (1, 1, 5, 5, 12, 12, 6, 7)
        for y in range(cfg.height):
            idx = min(int(y / cfg.height * len(palette)), len(palette) - 1)
            px.line(0, y, cfg.width, y, palette[idx])
        self.ctx.backdrop.draw(px, cfg.view_scale)


class MenuScene(Scene):
    """
    競技選択メニュー。

    - UP/DOWN でカーソル移動（端で折り返す）
    - SPACE / ENTER で選択した競技を開始
    - ESC で終了要求（アプリ側で処理）
    """

    def on_event(self, event: InputEvent) -> None:
        if not event.is_press:
            return
        ctx = self.ctx
        if event.action == Action.QUIT:
            ctx.quit_requested = True
            return
        if not ctx.keys:
            return
        if event.action == Action.AIM_UP:
            ctx.menu_index = (ctx.menu_index - 1) % len(ctx.keys)
            ctx.cue(SoundCue("menu", 520))
        elif event.action == Action.AIM_DOWN:
            ctx.menu_index = (ctx.menu_index + 1) % len(ctx.keys)
            ctx.cue(SoundCue("menu", 520))
        elif event.action in (Action.COMMIT, Action.CONFIRM):
            if ctx.select_event(ctx.keys[ctx.menu_index]):
                ctx.cue(SoundCue("select", 700))

    def draw(self, px) -> None:
        ctx = self.ctx
        w = ctx.config.width
        self._draw_sky(px)
        draw_centered_text(ctx.config.title, 24, 7, width=w, outline=True)
        sub = "UP/DOWN: choose  SPACE: start  ESC: quit"
        px.text(w // 2 - len(sub) * 2, 48, sub, 7)

        if not ctx.keys:
            px.text(20, 80, "No events found.", 8)
            return

        top = 72
        for i, key in enumerate(ctx.keys):
            y = top + i * 24
            selected = i == ctx.menu_index
            px.rect(w // 2 - 60, y - 6, 120, 18, 5 if selected else 1)
            px.rectb(w // 2 - 60, y - 6, 120, 18, 10 if selected else 0)
            title = ctx.games[key].title
            px.text(w // 2 - len(title) * 2, y, title, 7)

        px.text(4, ctx.config.height - 8, "M: sound on/off", 6)


class EventScene(Scene):
    """競技中の画面。入力はそのまま競技へ渡す。"""

    def on_event(self, event: InputEvent) -> None:
        if event.action == Action.QUIT:
            if event.is_press:
                self.ctx.return_to_menu()
            return
        active = self.ctx.active_event
        if active is not None:
            active.handle_input(event)

    def draw(self, px) -> None:
        ctx = self.ctx
        active = ctx.active_event
        if active is None:
            px.cls(0)
            return
        views.draw_event(px, active, ctx.config.view_scale)
        views.draw_hud(px, active.heads_up_state(), active.message, ctx.config.width, ctx.config.height)


class ResultsScene(Scene):
    """競技終了後のスコア表示。SPACE / ENTER / ESC でメニューへ戻る。"""

    def on_event(self, event: InputEvent) -> None:
        if not event.is_press:
            return
        if event.action in (Action.COMMIT, Action.CONFIRM, Action.QUIT):
            if self.ctx.return_to_menu():
                self.ctx.cue(SoundCue("select", 700))

    def draw(self, px) -> None:
        ctx = self.ctx
        w = ctx.config.width
        h = ctx.config.height
        results = ctx.results
        self._draw_sky(px)
        draw_centered_text("Results", 30, 7, width=w, outline=True)
        draw_centered_text(results.event_name, 60, 10, width=w, outline=True)
        draw_centered_text(f"{results.score} pts", h // 2, 7, scale=2, width=w, outline=True)
        if results.message:
            px.text(w // 2 - len(results.message) * 2, h // 2 + 40, results.message, 7)

        blink_on = (px.frame_count // PROMPT_BLINK) % 2 == 0
        if blink_on:
            prompt = "Press SPACE to return to menu"
            px.text(w // 2 - len(prompt) * 2, h - 24, prompt, 7)
