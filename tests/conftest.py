from __future__ import annotations

from typing import Any, Dict, List, Set, Tuple

import pytest


class FakeSound:
    def __init__(self) -> None:
        self.settings: Dict[str, Any] = {}

    def set(self, **kwargs: Any) -> None:
        self.settings = kwargs


class FakePx:
    """Pyxel の代わりに入力状態と呼び出しを記録するだけのモジュールもどき"""

    KEY_SPACE = 32
    KEY_UP = 1073741906
    KEY_DOWN = 1073741905
    KEY_B = 98
    KEY_RETURN = 13
    KEY_M = 109
    KEY_ESCAPE = 27

    def __init__(self) -> None:
        self.pressed: Set[int] = set()
        self.repeating: Set[int] = set()
        self.released: Set[int] = set()
        self.sounds = [FakeSound() for _ in range(64)]
        self.plays: List[Tuple[int, int]] = []
        self.frame_count = 0
        self.calls: List[str] = []

    def btnp(self, key: int, hold: Any = None, repeat: Any = None) -> bool:
        if hold is None and repeat is None:
            return key in self.pressed
        return key in self.pressed or key in self.repeating

    def btnr(self, key: int) -> bool:
        return key in self.released

    def play(self, ch: int, snd: int) -> None:
        self.plays.append((ch, snd))

    def next_frame(self) -> None:
        self.pressed.clear()
        self.repeating.clear()
        self.released.clear()
        self.frame_count += 1

    # 描画 API は呼ばれたことだけ記録する
    def __getattr__(self, name: str):
        def _record(*_args: Any, **_kwargs: Any) -> None:
            self.calls.append(name)

        return _record


@pytest.fixture
def fake_px() -> FakePx:
    return FakePx()
