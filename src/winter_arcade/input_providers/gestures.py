from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Mapping, Optional

from ..events import Action, InputEvent, InputKind, press, release

Shapes = Dict[str, float]

NOTE = "face"


@dataclass
class GestureLatch:
    """
    連続値（0..1）を押下 / 解放に変換する二段閾値ラッチ。
    ON 閾値以上で押下、OFF 閾値未満で解放。
    """

    on: float
    off: float
    active: bool = False

    @classmethod
    def with_hysteresis(cls, threshold: float, hysteresis: float) -> "GestureLatch":
        return cls(on=float(threshold), off=float(max(0.0, threshold - hysteresis)))

    def update(self, value: Optional[float]) -> Optional[InputKind]:
        if value is None:
            return None
        if not self.active:
            if value >= self.on:
                self.active = True
                return InputKind.PRESS
        elif value < self.off:
            self.active = False
            return InputKind.RELEASE
        return None

    def drop(self) -> Optional[InputKind]:
        # 顔を見失ったら押しっぱなしを解放する
        if self.active:
            self.active = False
            return InputKind.RELEASE
        return None


# --- blendshape からの特徴量 ---


def _average(shapes: Shapes, left: str, right: str) -> Optional[float]:
    lv = shapes.get(left.lower())
    rv = shapes.get(right.lower())
    if lv is None or rv is None:
        return None
    return float((lv + rv) / 2.0)


def blink_amount(shapes: Shapes) -> Optional[float]:
    # eyeBlink と eyeSquint の大きい方で判定
    blink_avg = _average(shapes, "eyeBlinkLeft", "eyeBlinkRight")
    squint_avg = _average(shapes, "eyeSquintLeft", "eyeSquintRight")
    values = [v for v in (blink_avg, squint_avg) if v is not None]
    return max(values) if values else None


def mouth_openness(shapes: Shapes) -> Optional[float]:
    # jawOpen or (1 - mouthClose) で判定
    jo = shapes.get("jawopen")
    if jo is None:
        mc = shapes.get("mouthclose")
        if mc is not None:
            jo = float(1.0 - mc)
    return jo


def smile_amount(shapes: Shapes) -> Optional[float]:
    # mouthSmileLeft/Right を平均。両方無い場合は mouthCornerPullLeft/Right をフォールバック
    val = _average(shapes, "mouthSmileLeft", "mouthSmileRight")
    if val is None:
        val = _average(shapes, "mouthCornerPullLeft", "mouthCornerPullRight")
    return val


GESTURE_MEASURES: Dict[str, Callable[[Shapes], Optional[float]]] = {
    "mouth": mouth_openness,
    "smile": smile_amount,
    "blink": blink_amount,
}

DEFAULT_THRESHOLDS: Dict[str, float] = {
    "mouth": 0.3,
    "smile": 0.5,
    "blink": 0.5,
}

DEFAULT_GESTURE_ACTIONS: Dict[str, Action] = {
    "mouth": Action.COMMIT,
    "smile": Action.BRUSH,
    "blink": Action.PITCH_UP,
}


class FaceGestures:
    """表情ごとのラッチを持ち、blendshape 辞書を押下 / 解放イベントに変える"""

    def __init__(
        self,
        thresholds: Optional[Mapping[str, float]] = None,
        hysteresis: float = 0.05,
        gesture_actions: Optional[Mapping[str, Action]] = None,
    ) -> None:
        thresholds = {**DEFAULT_THRESHOLDS, **(thresholds or {})}
        self.latches: Dict[str, GestureLatch] = {
            gesture: GestureLatch.with_hysteresis(thresholds[gesture], hysteresis)
            for gesture in GESTURE_MEASURES
        }
        self.actions: Dict[str, Action] = dict(gesture_actions or DEFAULT_GESTURE_ACTIONS)

    def events(self, shapes: Optional[Shapes]) -> List[InputEvent]:
        events: List[InputEvent] = []
        for gesture, latch in self.latches.items():
            if shapes is None:
                kind = latch.drop()
            else:
                kind = latch.update(GESTURE_MEASURES[gesture](shapes))
            if kind is None:
                continue
            action = self.actions.get(gesture)
            if action is None:
                continue
            if kind == InputKind.PRESS:
                events.append(press(action, note=NOTE))
            else:
                events.append(release(action, note=NOTE))
        return events
