from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List


@dataclass
class Particle:
    x: float
    y: float
    r: float
    vx: float
    vy: float


class Backdrop:
    """メニュー・結果画面の背景で流れる雪の粒（ワールド座標）"""

    def __init__(self, width: float, height: float, count: int = 36, seed: int = 42) -> None:
        self.width = width
        self.height = height
        # シード固定で毎回同じ並びにする
        rnd = random.Random(seed)
        self.particles: List[Particle] = [
            Particle(
                x=rnd.random() * width,
                y=rnd.random() * height,
                r=1.5 + rnd.random() * 2,
                vx=6 + rnd.random() * 14,
                vy=-2 + rnd.random() * 4,
            )
            for _ in range(count)
        ]

    def update(self, dt: float) -> None:
        for p in self.particles:
            p.x += p.vx * dt
            p.y += p.vy * dt
            if p.x > self.width + 10:
                p.x = -10
            if p.y < -10:
                p.y = self.height + 10
            if p.y > self.height + 10:
                p.y = -10

    def draw(self, px, scale: float, color: int = 7) -> None:
        for p in self.particles:
            px.circ(int(p.x * scale), int(p.y * scale), max(0, int(p.r * scale)), color)
