from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, assert_never

from ...events import Action, InputEvent
from ..base import (
    GRAVITY,
    WORLD_HEIGHT,
    WORLD_WIDTH,
    EventKind,
    HeadsUpState,
    HeldInputs,
    SoundCue,
    Trail,
    clamp,
    round_half_up,
)


class Phase(Enum):
    RAMP = "ramp"
    FLIGHT = "flight"
    LANDED = "landed"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SkiJumpConfig:
    ramp_start: Tuple[float, float] = (120.0, 120.0)
    lip: Tuple[float, float] = (330.0, 300.0)
    hill_end: Tuple[float, float] = (860.0, 560.0)
    ramp_acceleration: float = 780.0
    load_rate: float = 0.9
    timing_window: float = 170.0        # 踏切直前のこの距離以内で離すと効果が出る
    initial_timing_factor: float = 0.35
    takeoff_impulse: float = 340.0
    initial_pitch: float = 6.0
    takeoff_pitch: float = 7.0
    pitch_rate: float = 55.0            # 度/秒
    pitch_limit: float = 20.0
    ideal_pitch: float = 8.0
    pitch_tolerance: float = 8.0
    safe_vertical_speed: float = 360.0
    pixels_per_meter: float = 6.0
    telemark_bonus: int = 35
    stable_bonus: int = 15
    landed_display: float = 1.2
    bounds: Tuple[float, float] = (WORLD_WIDTH + 100.0, WORLD_HEIGHT + 120.0)
    trail_limit: int = 60


CONFIG = SkiJumpConfig()


def lift_coefficient(pitch: float) -> float:
    """揚力係数: +8 度付近が最大、二次関数で減衰し 0 で下限"""
    shape = 1.0 - ((pitch - 8.0) ** 2) / 900.0
    return 0.00024 * max(0.0, shape)


def drag_coefficient(pitch: float) -> float:
    return 0.00009 + 0.000004 * (pitch + 2.0) ** 2


def timing_factor_for(distance_to_lip: float, window: float = CONFIG.timing_window) -> float:
    """踏切に近いほど 1.0 に近づく（0.3〜1.0）"""
    normalized = clamp(1.0 - distance_to_lip / window, 0.0, 1.0)
    return 0.3 + normalized * 0.7


def landing_bonus(pitch: float, vy: float, config: SkiJumpConfig = CONFIG) -> Tuple[int, str]:
    safe_pitch = abs(pitch - config.ideal_pitch) <= config.pitch_tolerance
    safe_speed = vy < config.safe_vertical_speed
    if safe_pitch and safe_speed:
        return config.telemark_bonus, "Telemark-style landing bonus"
    if safe_speed:
        return config.stable_bonus, "Stable landing bonus"
    return 0, "Hard landing"


@dataclass
class Skier:
    s: float = 0.0              # 助走路上の移動距離
    speed_along: float = 0.0
    x: float = 0.0
    y: float = 0.0
    vx: float = 0.0
    vy: float = 0.0
    pitch_deg: float = 0.0


class SkiJumpEvent:
    """
    スキージャンプ（1 本勝負）。

    - 助走中に SPACE を押し続けて脚に溜め、踏切の直前で離す
    - 空中では UP/DOWN で姿勢角を調整（揚力と抗力が変わる）
    - 飛距離 + 着地ボーナスが得点。ヒルを越えたら 0 点
    """

    name = "Ski Jump"
    kind = EventKind.SKI_JUMP
    menu_order = 2
    total_attempts = 1

    _INSTRUCTIONS = {
        Phase.RAMP: "Hold SPACE while descending and release near the lip.",
        Phase.FLIGHT: "UP/DOWN tune pitch (-20 to +20 deg) for lift and low drag.",
        Phase.LANDED: "Landing judged. Final score stabilizing.",
        Phase.COMPLETE: "Jump complete. Heading to results.",
    }

    def __init__(self, config: Optional[SkiJumpConfig] = None) -> None:
        self.config = config or CONFIG
        self.cues: List[SoundCue] = []
        self.skier = Skier()
        self.held = HeldInputs()
        self.trail = Trail(self.config.trail_limit)
        self._init_geometry()
        self.reset()

    def _init_geometry(self) -> None:
        cfg = self.config
        sx, sy = cfg.ramp_start
        lx, ly = cfg.lip
        ex, ey = cfg.hill_end
        dx, dy = lx - sx, ly - sy
        self.ramp_length = math.hypot(dx, dy)
        self.ramp_tangent = (dx / self.ramp_length, dy / self.ramp_length)
        # 助走路に垂直で上向きの単位ベクトル
        self.ramp_normal = (self.ramp_tangent[1], -self.ramp_tangent[0])
        self.hill_slope = (ey - ly) / (ex - lx)

    # --- ライフサイクル ---

    def reset(self) -> None:
        cfg = self.config
        self.score = 0
        self.attempts_used = 0
        self.phase = Phase.RAMP
        self.loading = False
        self.load = 0.0
        self.takeoff_locked = False
        self.timing_factor = cfg.initial_timing_factor
        self.done_timer = 0.0
        self.distance_meters = 0.0
        self.bonus = 0
        self.missed_hill = False
        self.held.clear()
        self.message = "Hold SPACE while descending, release near the lip."
        self.cues.clear()

        skier = self.skier
        skier.s = 0.0
        skier.speed_along = 0.0
        skier.x, skier.y = cfg.ramp_start
        skier.vx = 0.0
        skier.vy = 0.0
        skier.pitch_deg = cfg.initial_pitch
        self.trail.clear()

    @property
    def finished(self) -> bool:
        return self.phase == Phase.COMPLETE

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.total_attempts - self.attempts_used)

    @property
    def pitch_up_held(self) -> bool:
        return self.held.held(Action.PITCH_UP)

    @property
    def pitch_down_held(self) -> bool:
        return self.held.held(Action.PITCH_DOWN)

    def hill_y(self, x: float) -> float:
        """着地斜面の高さ（踏切〜ヒル終端の直線。範囲外は端の値）"""
        lx, ly = self.config.lip
        ex, _ = self.config.hill_end
        return ly + self.hill_slope * (clamp(x, lx, ex) - lx)

    # --- 入力 ---

    def handle_input(self, event: InputEvent) -> None:
        if self.finished:
            return
        action = event.action
        if action in (Action.PITCH_UP, Action.PITCH_DOWN):
            self.held.apply(event)
        elif action == Action.COMMIT and self.phase is Phase.RAMP and not self.takeoff_locked:
            if event.is_press:
                self.loading = True
                self.cues.append(SoundCue("load", 510))
            elif event.is_release and self.loading:
                self._lock_takeoff()

    def _lock_takeoff(self) -> None:
        self.loading = False
        distance_to_lip = max(0.0, self.ramp_length - self.skier.s)
        self.timing_factor = timing_factor_for(distance_to_lip, self.config.timing_window)
        self.takeoff_locked = True
        self.message = f"Takeoff timing {self.timing_factor:.2f}"
        self.cues.append(SoundCue("release", 660))

    # --- 更新 ---

    def advance(self, dt: float) -> None:
        phase = self.phase
        if phase is Phase.COMPLETE:
            return
        if phase is Phase.RAMP:
            self._update_ramp(dt)
        elif phase is Phase.FLIGHT:
            self._update_flight(dt)
        elif phase is Phase.LANDED:
            self.done_timer -= dt
            if self.done_timer <= 0:
                self._complete()
        else:
            assert_never(phase)

    def _update_ramp(self, dt: float) -> None:
        cfg = self.config
        skier = self.skier
        skier.speed_along += cfg.ramp_acceleration * dt
        if self.loading and not self.takeoff_locked:
            self.load = clamp(self.load + cfg.load_rate * dt, 0.0, 1.0)

        skier.s += skier.speed_along * dt
        if skier.s >= self.ramp_length:
            skier.s = self.ramp_length
            if not self.takeoff_locked:
                # 離さずに踏切まで来た場合は最良タイミング扱い
                self.timing_factor = 1.0
                self.takeoff_locked = True
                self.loading = False
            self._enter_flight()
            return

        sx, sy = cfg.ramp_start
        tx, ty = self.ramp_tangent
        skier.x = sx + tx * skier.s
        skier.y = sy + ty * skier.s

    def takeoff_impulse(self) -> float:
        load_factor = 0.55 + 0.45 * self.load
        return self.config.takeoff_impulse * load_factor * self.timing_factor

    def _enter_flight(self) -> None:
        cfg = self.config
        skier = self.skier
        impulse = self.takeoff_impulse()
        tx, ty = self.ramp_tangent
        nx, ny = self.ramp_normal

        skier.x, skier.y = cfg.lip
        skier.vx = tx * skier.speed_along + nx * impulse
        skier.vy = ty * skier.speed_along + ny * impulse
        skier.pitch_deg = cfg.takeoff_pitch
        self.phase = Phase.FLIGHT
        self.cues.append(SoundCue("takeoff", 540))

    def _update_pitch(self, dt: float) -> None:
        cfg = self.config
        skier = self.skier
        if self.pitch_up_held:
            skier.pitch_deg = clamp(skier.pitch_deg + cfg.pitch_rate * dt, -cfg.pitch_limit, cfg.pitch_limit)
        if self.pitch_down_held:
            skier.pitch_deg = clamp(skier.pitch_deg - cfg.pitch_rate * dt, -cfg.pitch_limit, cfg.pitch_limit)

    def aero_acceleration(self) -> Tuple[float, float]:
        """現在の速度と姿勢角から揚力・抗力・重力の合成加速度を求める"""
        skier = self.skier
        speed = math.hypot(skier.vx, skier.vy)
        if speed == 0:
            return 0.0, GRAVITY
        ux, uy = skier.vx / speed, skier.vy / speed

        lift = lift_coefficient(skier.pitch_deg) * speed * speed
        drag = drag_coefficient(skier.pitch_deg) * speed * speed
        # 揚力は速度に垂直（進行方向に対して上側）
        lift_x, lift_y = uy, -ux

        ax = -drag * ux + lift * lift_x
        ay = GRAVITY - drag * uy + lift * lift_y
        return ax, ay

    def _update_flight(self, dt: float) -> None:
        skier = self.skier
        self._update_pitch(dt)

        ax, ay = self.aero_acceleration()
        skier.vx += ax * dt
        skier.vy += ay * dt
        skier.x += skier.vx * dt
        skier.y += skier.vy * dt
        self.trail.push(skier.x, skier.y)

        hill_y = self.hill_y(skier.x)
        if skier.x >= self.config.lip[0] and skier.y >= hill_y:
            skier.y = hill_y
            self._resolve_landing()
            return

        max_x, max_y = self.config.bounds
        if skier.x > max_x or skier.y > max_y:
            self.missed_hill = True
            self.score = 0
            self._complete()
            self.message = "Jump missed landing hill"
            self.cues.append(SoundCue("miss", 200))

    def _resolve_landing(self) -> None:
        cfg = self.config
        distance_px = max(0.0, self.skier.x - cfg.lip[0])
        self.distance_meters = distance_px / cfg.pixels_per_meter
        self.bonus, label = landing_bonus(self.skier.pitch_deg, self.skier.vy, cfg)
        self.score = round_half_up(self.distance_meters + self.bonus)
        self.message = f"{label}: {self.distance_meters:.1f} m"
        self.phase = Phase.LANDED
        self.done_timer = cfg.landed_display
        self.cues.append(SoundCue("land", 280 + self.distance_meters * 4))

    def _complete(self) -> None:
        self.attempts_used = self.total_attempts
        self.phase = Phase.COMPLETE

    # --- 表示用 ---

    def heads_up_state(self) -> HeadsUpState:
        return HeadsUpState(
            event_name=self.name,
            instructions=self._INSTRUCTIONS[self.phase],
            attempts_remaining=self.attempts_remaining,
            score=self.score,
        )

    def snapshot(self) -> Dict[str, Any]:
        skier = self.skier
        return {
            "phase": self.phase.value,
            "score": self.score,
            "load": self.load,
            "loading": self.loading,
            "takeoff_locked": self.takeoff_locked,
            "timing_factor": self.timing_factor,
            "skier": (skier.x, skier.y, skier.vx, skier.vy),
            "ramp_s": skier.s,
            "speed_along": skier.speed_along,
            "pitch_deg": skier.pitch_deg,
            "trail": self.trail.as_tuple(),
            "ramp_start": self.config.ramp_start,
            "lip": self.config.lip,
            "hill_end": self.config.hill_end,
            "distance_meters": self.distance_meters,
            "bonus": self.bonus,
            "missed_hill": self.missed_hill,
            "message": self.message,
        }


# レジストリが `module.GAME_CLASS` を参照するため公開
GAME_CLASS = SkiJumpEvent
