from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, assert_never

from ...events import Action, InputEvent
from ..base import GRAVITY, EventKind, HeadsUpState, SoundCue, clamp, round_half_up


class Phase(Enum):
    READY = "ready"
    CHARGING = "charging"
    AIR = "air"
    PAUSE = "pause"
    COMPLETE = "complete"


@dataclass(frozen=True)
class FigureSkatingConfig:
    total_jumps: int = 5
    ground_y: float = 470.0
    skater_x: float = 230.0
    charge_rate: float = 0.9        # 1 秒あたりの溜め量
    needle_speed: float = 1.5       # タイミング針の往復速度
    pause_time: float = 0.6         # 着氷後、次のジャンプまでの待ち時間（秒）
    base_takeoff: float = 620.0
    charge_takeoff: float = 520.0
    timing_takeoff: float = 140.0


CONFIG = FigureSkatingConfig()


@dataclass(frozen=True)
class TimingJudgement:
    label: str
    multiplier: float
    error: float


@dataclass(frozen=True)
class LandingJudgement:
    label: str
    multiplier: float


# 着氷判定: 厳しい順に (許容タイミング誤差, 必要高さ比, 倍率, ラベル)
LANDING_RULES = (
    (0.08, 1.05, 1.35, "Clean landing"),
    (0.16, 0.90, 1.10, "Good landing"),
    (0.24, 0.75, 0.80, "Sketchy landing"),
)
ROUGH_LANDING = LandingJudgement("Rough landing", 0.45)


def evaluate_timing(needle: float) -> TimingJudgement:
    """針の位置からタイミングの質を判定する（中央 0.5 が最良）。"""
    error = abs(needle - 0.5)
    if 0.42 <= needle <= 0.58:
        return TimingJudgement("Perfect timing", 1.25, error)
    if 0.30 <= needle < 0.42 or 0.58 < needle <= 0.70:
        return TimingJudgement("Okay timing", 1.0, error)
    return TimingJudgement("Bad timing", 0.7, error)


def evaluate_landing(timing_error: float, height_ratio: float) -> LandingJudgement:
    for max_error, min_ratio, multiplier, label in LANDING_RULES:
        if timing_error <= max_error and height_ratio >= min_ratio:
            return LandingJudgement(label, multiplier)
    return ROUGH_LANDING


def base_difficulty(jump_index: int) -> int:
    return 120 + 45 * jump_index


def required_height(jump_index: int) -> int:
    return 95 + 22 * jump_index


def jump_points(jump_index: int, timing_multiplier: float, landing_multiplier: float) -> int:
    return round_half_up(base_difficulty(jump_index) * timing_multiplier * landing_multiplier)


class FigureSkatingEvent:
    """溜め + 往復する針でタイミングを取るジャンプ競技（5 本）"""

    name = "Figure Skating"
    kind = EventKind.FIGURE_SKATING
    menu_order = 0

    _INSTRUCTIONS = {
        Phase.READY: "Hold SPACE to charge; release as the needle crosses green.",
        Phase.CHARGING: "Release SPACE to commit timing and power.",
        Phase.AIR: "In the air. Prepare for landing.",
        Phase.PAUSE: "Landing judged. Resetting for the next jump.",
        Phase.COMPLETE: "Routine complete. Heading to results.",
    }

    def __init__(self, config: Optional[FigureSkatingConfig] = None) -> None:
        self.config = config or CONFIG
        self.cues: List[SoundCue] = []
        self.reset()

    # --- ライフサイクル ---

    def reset(self) -> None:
        cfg = self.config
        self.score = 0
        self.jumps_completed = 0
        self.phase = Phase.READY
        self.skater_y = cfg.ground_y
        self.skater_vy = 0.0
        self.peak_y = cfg.ground_y
        self.charge = 0.0
        self.needle = 0.0
        self.needle_direction = 1
        self.timing_error = 0.0
        self.timing_multiplier = 1.0
        self.landing_multiplier = 1.0
        self.last_points = 0
        self.pause_timer = 0.0
        self.message = "Hold SPACE to charge, release near green."
        self.cues.clear()

    @property
    def finished(self) -> bool:
        return self.phase == Phase.COMPLETE

    @property
    def attempts_remaining(self) -> int:
        return max(0, self.config.total_jumps - self.jumps_completed)

    # --- 入力 ---

    def handle_input(self, event: InputEvent) -> None:
        if self.finished or event.action != Action.COMMIT:
            return
        if event.is_press:
            if self.phase is Phase.READY:
                self.phase = Phase.CHARGING
                self.charge = 0.0
                self.cues.append(SoundCue("charge", 520))
        elif event.is_release:
            if self.phase is Phase.CHARGING:
                self._take_off()

    # --- 更新 ---

    def advance(self, dt: float) -> None:
        phase = self.phase
        if phase is Phase.COMPLETE:
            return
        if phase is Phase.READY:
            self._update_needle(dt)
        elif phase is Phase.CHARGING:
            self._update_needle(dt)
            self.charge = clamp(self.charge + self.config.charge_rate * dt, 0.0, 1.0)
        elif phase is Phase.AIR:
            self._update_air(dt)
        elif phase is Phase.PAUSE:
            self._update_pause(dt)
        else:
            assert_never(phase)

    def _update_needle(self, dt: float) -> None:
        """針を 0..1 の間で往復させる（端で反射）"""
        self.needle += self.needle_direction * self.config.needle_speed * dt
        if self.needle > 1.0:
            self.needle = clamp(2.0 - self.needle, 0.0, 1.0)
            self.needle_direction = -1
        if self.needle < 0.0:
            self.needle = clamp(-self.needle, 0.0, 1.0)
            self.needle_direction = 1

    def _take_off(self) -> None:
        cfg = self.config
        timing = evaluate_timing(self.needle)
        self.timing_error = timing.error
        self.timing_multiplier = timing.multiplier

        accuracy = 1.0 - min(self.timing_error / 0.5, 1.0)
        takeoff_speed = cfg.base_takeoff + cfg.charge_takeoff * self.charge + cfg.timing_takeoff * accuracy

        self.skater_vy = -takeoff_speed
        self.peak_y = self.skater_y
        self.phase = Phase.AIR
        self.message = f"{timing.label} locked"
        self.cues.append(SoundCue("takeoff", 620))

    def _update_air(self, dt: float) -> None:
        """鉛直方向の投射運動（最高到達点を記録）"""
        ground_y = self.config.ground_y
        self.skater_vy += GRAVITY * dt
        self.skater_y += self.skater_vy * dt
        if self.skater_y < self.peak_y:
            self.peak_y = self.skater_y

        if self.skater_y >= ground_y and self.skater_vy > 0:
            self.skater_y = ground_y
            self.skater_vy = 0.0
            self._resolve_landing()

    def _resolve_landing(self) -> None:
        jump_index = self.jumps_completed
        jump_height = self.config.ground_y - self.peak_y
        height_ratio = jump_height / required_height(jump_index)

        landing = evaluate_landing(self.timing_error, height_ratio)
        self.landing_multiplier = landing.multiplier
        points = jump_points(jump_index, self.timing_multiplier, landing.multiplier)
        self.last_points = points
        self.score += points
        self.jumps_completed += 1

        self.message = f"{landing.label}: +{points} ({round(jump_height)} px height)"
        self.cues.append(SoundCue("land", 360 + points * 0.2))

        if self.jumps_completed >= self.config.total_jumps:
            self.phase = Phase.COMPLETE
            self.message = f"Routine complete: {self.score} pts"
        else:
            self.phase = Phase.PAUSE
            self.pause_timer = self.config.pause_time

    def _update_pause(self, dt: float) -> None:
        self.pause_timer -= dt
        if self.pause_timer <= 0:
            self.phase = Phase.READY
            self.charge = 0.0
            self.message = "Next jump: hold SPACE to charge."

    # --- 表示用 ---

    def heads_up_state(self) -> HeadsUpState:
        return HeadsUpState(
            event_name=self.name,
            instructions=self._INSTRUCTIONS[self.phase],
            attempts_remaining=self.attempts_remaining,
            score=self.score,
        )

    def snapshot(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "score": self.score,
            "jumps_completed": self.jumps_completed,
            "skater_x": self.config.skater_x,
            "skater_y": self.skater_y,
            "skater_vy": self.skater_vy,
            "peak_y": self.peak_y,
            "ground_y": self.config.ground_y,
            "charge": self.charge,
            "needle": self.needle,
            "needle_direction": self.needle_direction,
            "timing_error": self.timing_error,
            "timing_multiplier": self.timing_multiplier,
            "landing_multiplier": self.landing_multiplier,
            "pause_timer": self.pause_timer,
            "message": self.message,
        }


# レジストリが `module.GAME_CLASS` を参照するため公開
GAME_CLASS = FigureSkatingEvent
