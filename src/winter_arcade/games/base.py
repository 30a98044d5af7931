from __future__ import annotations

import math
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, Dict, Iterator, List, Optional, Protocol, Set, Tuple, runtime_checkable

from ..events import Action, InputEvent

# 全競技で共通の物理定数（ワールド座標: 900x600 px, y は下向き）
GRAVITY = 1800.0
WORLD_WIDTH = 900
WORLD_HEIGHT = 600


class EventKind(Enum):
    FIGURE_SKATING = "figure_skating"
    CURLING = "curling"
    SKI_JUMP = "ski_jump"


@dataclass(frozen=True)
class HeadsUpState:
    # HUD 表示用の読み取り専用の値
    event_name: str
    instructions: str
    attempts_remaining: int
    score: int


@dataclass(frozen=True)
class SoundCue:
    # シミュレーションが発行する効果音要求（再生はアプリ側）
    name: str
    freq: float = 440.0


@runtime_checkable
class EventSimulation(Protocol):
    """各競技が実装する共通インターフェース。"""

    name: str
    kind: EventKind
    menu_order: int
    score: int
    message: str
    cues: List[SoundCue]

    @property
    def finished(self) -> bool: ...

    def reset(self) -> None: ...

    def advance(self, dt: float) -> None: ...

    def handle_input(self, event: InputEvent) -> None: ...

    def heads_up_state(self) -> HeadsUpState: ...

    def snapshot(self) -> Dict[str, Any]: ...


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    # 組み込み round は偶数丸めなので 0.5 は常に切り上げる
    return int(math.floor(value + 0.5))


class Trail:
    """直近位置の有界 FIFO（描画専用、採点には使わない）。"""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self._points: Deque[Tuple[float, float]] = deque(maxlen=limit)

    def push(self, x: float, y: float) -> None:
        self._points.append((x, y))

    def clear(self) -> None:
        self._points.clear()

    def as_tuple(self) -> Tuple[Tuple[float, float], ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Tuple[float, float]]:
        return iter(self._points)


class HeldInputs:
    """
    押しっぱなし入力を入力元（note）ごとに数える。
    キーボードと顔の両方が同じアクションを押しているとき、
    片方の解放で押下が消えないようにする。
    """

    def __init__(self) -> None:
        self._sources: Dict[Action, Set[Optional[str]]] = {}

    def apply(self, event: InputEvent) -> None:
        sources = self._sources.setdefault(event.action, set())
        if event.is_press:
            sources.add(event.note)
        elif event.is_release:
            sources.discard(event.note)

    def held(self, action: Action) -> bool:
        return bool(self._sources.get(action))

    def clear(self) -> None:
        self._sources.clear()
