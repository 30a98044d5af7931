"""固定タイムステップ駆動。

描画フレームの到着間隔とは独立に、一定幅の時間スライスで
シミュレーションを進める。
"""

from __future__ import annotations

from typing import Callable, Optional

FIXED_DT = 1.0 / 120.0
MAX_FRAME_DELTA = 0.25


class FixedStepDriver:
    def __init__(
        self,
        step: Callable[[float], None],
        fixed_dt: float = FIXED_DT,
        max_frame: float = MAX_FRAME_DELTA,
    ) -> None:
        if fixed_dt <= 0:
            raise ValueError("fixed_dt must be positive")
        self._step = step
        self.fixed_dt = float(fixed_dt)
        self.max_frame = float(max_frame)
        self.accumulator = 0.0
        self.steps_run = 0
        self._last_time: Optional[float] = None

    def reset(self) -> None:
        self.accumulator = 0.0
        self._last_time = None

    def frame(self, timestamp: float) -> int:
        """フレーム時刻 timestamp（秒）までに消化できるステップを実行し、その回数を返す。"""
        if self._last_time is None:
            # 初回フレームは基準時刻を記録するだけ
            self._last_time = timestamp
            return 0

        delta = timestamp - self._last_time
        self._last_time = timestamp
        # 時刻の巻き戻りは経過ゼロとして扱う
        delta = min(max(delta, 0.0), self.max_frame)
        return self.feed(delta)

    def feed(self, elapsed: float) -> int:
        self.accumulator += elapsed
        steps = 0
        while self.accumulator >= self.fixed_dt:
            self._step(self.fixed_dt)
            self.accumulator -= self.fixed_dt
            steps += 1
        self.steps_run += steps
        return steps
