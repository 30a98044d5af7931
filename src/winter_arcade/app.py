from __future__ import annotations

import queue
from queue import Queue
import sys
import time
import traceback
from typing import List

from .context import ArcadeContext, Screen
from .driver import FixedStepDriver
from .events import InputEvent
from .input_providers import Provider
from .views import draw_fade


class App:
    def __init__(self, ctx: ArcadeContext, providers: List[Provider], scale: int = 3) -> None:
        self.ctx = ctx
        self.providers = providers
        self.scale = scale
        self.events: "Queue[InputEvent]" = Queue()
        self.driver = FixedStepDriver(ctx.step, ctx.config.fixed_dt, ctx.config.max_frame)
        self._px = None  # Pyxel モジュール（遅延読み込み）

    # --- ライフサイクル ---

    def run(self) -> None:
        import pyxel  # ユニットテスト時の import 失敗を避けるため遅延インポート

        self._px = pyxel
        cfg = self.ctx.config
        # スレッド型プロバイダを起動
        for p in self.providers:
            if hasattr(p, "start"):
                try:
                    p.start(self.events)
                except Exception:
                    traceback.print_exc(file=sys.stderr)

        try:
            pyxel.init(
                cfg.width,
                cfg.height,
                title=cfg.title,
                fps=cfg.fps,
                quit_key=pyxel.KEY_NONE,  # ESC はメニューへ戻る操作に使う
                display_scale=self.scale,
            )
        except TypeError:
            pyxel.init(cfg.width, cfg.height, title=cfg.title, fps=cfg.fps, quit_key=pyxel.KEY_NONE)
        pyxel.run(self._update, self._draw)

    def _update(self) -> None:
        assert self._px is not None
        self.tick(time.monotonic())
        self.ctx.flush_sound(self._px)
        if self.ctx.quit_requested:
            self._shutdown()
            self._px.quit()

    def tick(self, now: float) -> int:
        """1 フレーム分の処理: 入力ポーリング → 入力転送 → 固定ステップ更新"""
        self._poll_providers()
        self._drain_events()
        return self.driver.frame(now)

    def _poll_providers(self) -> None:
        # 1フレーム毎に Pyxel へアクセスが必要なプロバイダをポーリング
        for p in self.providers:
            if hasattr(p, "poll"):
                try:
                    p.poll(self._px, self.events)
                except Exception:
                    # ログが毎フレーム大量に出ないよう、各プロバイダにつき一度だけ詳細を出力
                    if not getattr(p, "_error_logged", False):
                        traceback.print_exc(file=sys.stderr)
                        setattr(p, "_error_logged", True)

    def _drain_events(self) -> None:
        # 入力イベントキューを空にしつつ現在の画面へ転送
        menu_active = self.ctx.screen == Screen.MENU
        while True:
            try:
                e = self.events.get_nowait()
            except queue.Empty:
                break
            # メニュー操作はキーボードのみ
            if menu_active and e.note not in (None, "keyboard"):
                continue
            self.ctx.route(e, self._px)

    def _draw(self) -> None:
        assert self._px is not None
        cfg = self.ctx.config
        try:
            self.ctx.scene.draw(self._px)
            draw_fade(self._px, self.ctx.transition.alpha, cfg.width, cfg.height)
        except Exception:
            # 描画で例外が起きても画面をクリアして安全に継続
            if not getattr(self, "_draw_error_logged", False):
                traceback.print_exc(file=sys.stderr)
                self._draw_error_logged = True
            self._px.cls(0)

    def _shutdown(self) -> None:
        for p in self.providers:
            stop = getattr(p, "stop", None)
            if callable(stop):
                try:
                    stop()
                except Exception:
                    traceback.print_exc(file=sys.stderr)

