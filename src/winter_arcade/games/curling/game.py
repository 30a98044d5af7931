from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, assert_never

from ...events import Action, InputEvent
from ..base import GRAVITY, EventKind, HeadsUpState, HeldInputs, SoundCue, Trail, clamp


class Phase(Enum):
    READY = "ready"
    CHARGING = "charging"
    SLIDING = "sliding"
    SCORED = "scored"
    COMPLETE = "complete"


@dataclass(frozen=True)
class CurlingConfig:
    total_stones: int = 3
    rink: Tuple[float, float, float, float] = (80.0, 100.0, 740.0, 400.0)  # x, y, w, h
    house: Tuple[float, float] = (700.0, 300.0)
    house_rings: Tuple[float, ...] = (80.0, 40.0, 15.0)
    stone_start: Tuple[float, float] = (140.0, 300.0)
    stone_radius: float = 14.0
    charge_rate: float = 0.78
    aim_step: float = 1.5           # 1 回の入力で変わる角度（度）
    aim_limit: float = 14.0
    base_speed: float = 320.0
    charge_speed: float = 900.0
    friction: float = 0.2
    brush_friction: float = 0.08    # スウィープ中は摩擦が下がる
    curl: float = 22.0
    curl_reference_speed: float = 900.0
    wall_restitution: float = 0.3
    stop_speed: float = 2.0
    score_display: float = 1.0
    trail_limit: int = 45


CONFIG = CurlingConfig()

# 的からの距離の閾値と得点（内側から順に判定）
SCORE_TIERS = ((15.0, 100), (40.0, 60), (80.0, 30))


def points_for_distance(distance: float) -> int:
    for radius, points in SCORE_TIERS:
        if distance < radius:
            return points
    return 0


@dataclass
class Stone:
    x: float
    y: float
    vx: float = 0.0
    vy: float = 0.0
    curl_sign: int = 1

    @property
    def speed(self) -> float:
        return math.hypot(self.vx, self.vy)


class CurlingEvent:
    """狙い + 押し出しの強さで投げ、スウィープで滑りを調整するカーリング（3 投）"""

    name = "Curling"
    kind = EventKind.CURLING
    menu_order = 1

    _INSTRUCTIONS = {
        Phase.READY: "UP/DOWN to aim, hold SPACE to set power, release to throw.",
        Phase.CHARGING: "Release SPACE to launch the stone.",
        Phase.SLIDING: "Hold B to brush and reduce friction.",
        Phase.SCORED: "Stone stopped. Scoring this throw.",
        Phase.COMPLETE: "End complete. Heading to results.",
    }

    def __init__(self, config: Optional[CurlingConfig] = None) -> None:
        self.config = config or CONFIG
        self.cues: List[SoundCue] = []
        self.stone = Stone(*self.config.stone_start)
        self.trail = Trail(self.config.trail_limit)
        self.held = HeldInputs()
        self.reset()

    # --- ライフサイクル ---

    def reset(self) -> None:
        self.score = 0
        self.stones_used = 0
        self.phase = Phase.READY
        self.charge = 0.0
        self.aim_deg = 0.0
        self.held.clear()
        self.score_timer = 0.0
        self.last_stone_score = 0
        self.last_distance = 0.0
        self.message = "Aim with UP/DOWN, then hold SPACE."
        self.cues.clear()
        self._reset_stone()

    def _reset_stone(self) -> None:
        self.stone.x, self.stone.y = self.config.stone_start
        self.stone.vx = 0.0
        self.stone.vy = 0.0
        self.stone.curl_sign = 1 if self.aim_deg >= 0 else -1
        self.trail.clear()

    @property
    def finished(self) -> bool:
        return self.phase == Phase.COMPLETE

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.config.total_stones - self.stones_used)

    @property
    def brush_held(self) -> bool:
        return self.held.held(Action.BRUSH)

    @property
    def friction(self) -> float:
        return self.config.brush_friction if self.brush_held else self.config.friction

    # --- 入力 ---

    def handle_input(self, event: InputEvent) -> None:
        if self.finished:
            return
        action = event.action
        if action == Action.BRUSH:
            self.held.apply(event)
            return
        aiming = self.phase in (Phase.READY, Phase.CHARGING)

        if event.is_press:
            if action == Action.AIM_UP and aiming:
                self._nudge_aim(-self.config.aim_step)
            elif action == Action.AIM_DOWN and aiming:
                self._nudge_aim(self.config.aim_step)
            elif action == Action.COMMIT and self.phase is Phase.READY:
                self.phase = Phase.CHARGING
                self.charge = 0.0
                self.cues.append(SoundCue("charge", 510))
        elif event.is_release:
            if action == Action.COMMIT and self.phase is Phase.CHARGING:
                self._launch()

    def _nudge_aim(self, delta: float) -> None:
        limit = self.config.aim_limit
        self.aim_deg = clamp(self.aim_deg + delta, -limit, limit)

    def _launch(self) -> None:
        cfg = self.config
        speed = cfg.base_speed + cfg.charge_speed * self.charge
        angle = math.radians(self.aim_deg)
        self.stone.vx = speed * math.cos(angle)
        self.stone.vy = speed * math.sin(angle)
        if self.aim_deg == 0:
            # 真っ直ぐ投げた場合は投球順で曲がる向きを交互にする
            self.stone.curl_sign = 1 if self.stones_used % 2 == 0 else -1
        else:
            self.stone.curl_sign = 1 if self.aim_deg > 0 else -1
        self.phase = Phase.SLIDING
        self.message = f"Stone away at {round(speed)} px/s"
        self.cues.append(SoundCue("launch", 500))

    # --- 更新 ---

    def advance(self, dt: float) -> None:
        phase = self.phase
        if phase is Phase.COMPLETE:
            return
        if phase is Phase.READY:
            pass
        elif phase is Phase.CHARGING:
            self.charge = clamp(self.charge + self.config.charge_rate * dt, 0.0, 1.0)
        elif phase is Phase.SLIDING:
            self._update_sliding(dt)
        elif phase is Phase.SCORED:
            self._update_scored(dt)
        else:
            assert_never(phase)

    def _update_sliding(self, dt: float) -> None:
        cfg = self.config
        stone = self.stone
        speed = stone.speed

        if speed > 0:
            # 摩擦で速さだけを減らし、向きは保つ
            next_speed = max(0.0, speed - self.friction * GRAVITY * dt)
            ratio = next_speed / speed
            stone.vx *= ratio
            stone.vy *= ratio

            stone.vy += stone.curl_sign * cfg.curl * (next_speed / cfg.curl_reference_speed) * dt

            stone.x += stone.vx * dt
            stone.y += stone.vy * dt
            self.trail.push(stone.x, stone.y)

        self._bounce_off_sides()

        if stone.speed <= cfg.stop_speed:
            stone.vx = 0.0
            stone.vy = 0.0
            self._score_stone()

    def _bounce_off_sides(self) -> None:
        cfg = self.config
        _, rink_y, _, rink_h = cfg.rink
        min_y = rink_y + cfg.stone_radius
        max_y = rink_y + rink_h - cfg.stone_radius
        stone = self.stone
        if stone.y < min_y:
            stone.y = min_y
            stone.vy = abs(stone.vy) * cfg.wall_restitution
        elif stone.y > max_y:
            stone.y = max_y
            stone.vy = -abs(stone.vy) * cfg.wall_restitution

    def distance_to_house(self) -> float:
        hx, hy = self.config.house
        return math.hypot(self.stone.x - hx, self.stone.y - hy)

    def _score_stone(self) -> None:
        distance = self.distance_to_house()
        points = points_for_distance(distance)
        self.last_distance = distance
        self.last_stone_score = points
        self.score += points
        self.phase = Phase.SCORED
        self.score_timer = self.config.score_display
        self.message = f"Stone {self.stones_used + 1}: +{points} ({round(distance)} px from button)"
        self.cues.append(SoundCue("score", 280 + points * 3))

    def _update_scored(self, dt: float) -> None:
        self.score_timer -= dt
        if self.score_timer > 0:
            return
        self.stones_used += 1
        if self.stones_used >= self.config.total_stones:
            self.phase = Phase.COMPLETE
            self.message = f"End complete: {self.score} pts"
            return
        self.phase = Phase.READY
        self.charge = 0.0
        self.aim_deg = 0.0
        self.held.clear()
        self._reset_stone()

    # --- 表示用 ---

    def heads_up_state(self) -> HeadsUpState:
        return HeadsUpState(
            event_name=self.name,
            instructions=self._INSTRUCTIONS[self.phase],
            attempts_remaining=self.attempts_remaining,
            score=self.score,
        )

    def snapshot(self) -> Dict[str, Any]:
        stone = self.stone
        return {
            "phase": self.phase.value,
            "score": self.score,
            "stones_used": self.stones_used,
            "charge": self.charge,
            "aim_deg": self.aim_deg,
            "brush_held": self.brush_held,
            "stone": (stone.x, stone.y, stone.vx, stone.vy, stone.curl_sign),
            "trail": self.trail.as_tuple(),
            "rink": self.config.rink,
            "house": self.config.house,
            "house_rings": self.config.house_rings,
            "stone_radius": self.config.stone_radius,
            "score_timer": self.score_timer,
            "last_stone_score": self.last_stone_score,
            "message": self.message,
        }


# レジストリが `module.GAME_CLASS` を参照するため公開
GAME_CLASS = CurlingEvent
