from __future__ import annotations

import math
from typing import Any, Callable, Dict, Tuple

from .games.base import WORLD_HEIGHT, WORLD_WIDTH, EventKind, EventSimulation, HeadsUpState

Snapshot = Dict[str, Any]

# タイミングメーターの色帯（赤 / 黄 / 緑）
TIMING_ZONES = (
    (0.0, 0.3, 8),
    (0.3, 0.42, 10),
    (0.42, 0.58, 11),
    (0.58, 0.7, 10),
    (0.7, 1.0, 8),
)


def _s(value: float, scale: float) -> int:
    return int(round(value * scale))


def _pt(point: Tuple[float, float], scale: float) -> Tuple[int, int]:
    return _s(point[0], scale), _s(point[1], scale)


# --- 共通部品 ---------------------------------------------------------------


def draw_charge_meter(px, x: float, y: float, w: float, h: float, ratio: float, label: str, scale: float) -> None:
    ratio = max(0.0, min(1.0, ratio))
    sx, sy, sw, sh = _s(x, scale), _s(y, scale), max(1, _s(w, scale)), max(2, _s(h, scale))
    px.rect(sx, sy, sw, sh, 7)
    px.rect(sx, sy, int(sw * ratio), sh, 3)
    px.rectb(sx, sy, sw, sh, 0)
    px.text(sx, sy - 7, f"{label}: {round(ratio * 100)}%", 7)


def draw_timing_meter(px, x: float, y: float, w: float, h: float, needle: float, scale: float) -> None:
    sx, sy, sw, sh = _s(x, scale), _s(y, scale), _s(w, scale), max(3, _s(h, scale))
    for start, end, color in TIMING_ZONES:
        zx = sx + int(sw * start)
        px.rect(zx, sy, max(1, int(sw * (end - start)) + 1), sh, color)
    px.rectb(sx, sy, sw, sh, 0)
    nx = sx + int(sw * max(0.0, min(1.0, needle)))
    px.line(nx, sy - 2, nx, sy + sh + 1, 0)
    px.line(nx + 1, sy - 2, nx + 1, sy + sh + 1, 7)


def draw_trail(px, trail, scale: float, color: int) -> None:
    for x, y in trail:
        px.pset(_s(x, scale), _s(y, scale), color)


# --- フィギュアスケート -------------------------------------------------------


def draw_figure_skating(px, snap: Snapshot, scale: float) -> None:
    ground = _s(snap["ground_y"], scale)
    width = _s(WORLD_WIDTH, scale)
    height = _s(WORLD_HEIGHT, scale)
    px.rect(0, 0, width, ground, 1)
    px.rect(0, ground, width, height - ground, 6)
    # リンクの線
    for x in range(40, WORLD_WIDTH, 80):
        px.line(_s(x, scale), ground + 2, _s(x + 40, scale), ground + 2, 12)

    sx = _s(snap["skater_x"], scale)
    sy = _s(snap["skater_y"], scale)
    # 簡易スケーター（頭・胴・脚）
    px.circ(sx, sy - 17, 3, 15)
    px.rect(sx - 2, sy - 14, 5, 9, 14)
    px.line(sx - 1, sy - 5, sx - 3, sy - 1, 0)
    px.line(sx + 1, sy - 5, sx + 3, sy - 1, 0)
    px.line(sx - 5, sy, sx + 5, sy, 13)
    if snap["phase"] == "air":
        peak = _s(snap["peak_y"], scale)
        px.line(sx + 10, peak, sx + 16, peak, 10)

    draw_timing_meter(px, 300, 70, 460, 26, snap["needle"], scale)
    draw_charge_meter(px, 300, 130, 460, 16, snap["charge"], "Jump Power", scale)
    px.text(_s(300, scale), _s(160, scale), f"Jumps: {snap['jumps_completed']}", 7)


# --- カーリング ---------------------------------------------------------------


def draw_curling(px, snap: Snapshot, scale: float) -> None:
    px.cls(5)
    rx, ry, rw, rh = snap["rink"]
    px.rect(_s(rx, scale), _s(ry, scale), _s(rw, scale), _s(rh, scale), 7)
    px.rectb(_s(rx, scale), _s(ry, scale), _s(rw, scale), _s(rh, scale), 12)

    hx, hy = _pt(snap["house"], scale)
    for radius, color in zip(snap["house_rings"], (12, 7, 8)):
        px.circ(hx, hy, _s(radius, scale), color)
    px.pset(hx, hy, 0)

    x, y, _, _, _ = snap["stone"]
    sx, sy = _s(x, scale), _s(y, scale)
    if snap["phase"] in ("ready", "charging"):
        angle = math.radians(snap["aim_deg"])
        length = 120 + snap["charge"] * 130
        ex = _s(x + math.cos(angle) * length, scale)
        ey = _s(y + math.sin(angle) * length, scale)
        px.line(sx, sy, ex, ey, 8)

    draw_trail(px, snap["trail"], scale, 13)
    radius = max(2, _s(snap["stone_radius"], scale))
    px.circ(sx, sy, radius, 13)
    px.circ(sx, sy, max(1, radius - 2), 8)

    draw_charge_meter(px, 120, 65, 320, 16, snap["charge"], "Push Power", scale)
    px.text(_s(480, scale), _s(65, scale), f"Aim: {snap['aim_deg']:+.1f} deg", 7)
    if snap["phase"] == "sliding" and snap["brush_held"]:
        px.text(_s(480, scale), _s(80, scale), "BRUSHING", 10)
    elif snap["phase"] == "scored":
        px.text(_s(480, scale), _s(80, scale), f"+{snap['last_stone_score']}", 10)


# --- スキージャンプ -----------------------------------------------------------


def draw_ski_jump(px, snap: Snapshot, scale: float) -> None:
    px.cls(12)
    bottom = _s(WORLD_HEIGHT, scale)
    sx, sy = _pt(snap["ramp_start"], scale)
    lx, ly = _pt(snap["lip"], scale)
    ex, ey = _pt(snap["hill_end"], scale)

    # 着地斜面と平地
    px.tri(lx, ly, ex, ey, ex, bottom, 7)
    px.tri(lx, ly, lx, bottom, ex, bottom, 7)
    px.rect(ex, ey, _s(WORLD_WIDTH, scale) - ex, bottom - ey, 7)
    px.line(lx, ly, ex, ey, 6)
    # 助走路
    px.line(sx, sy, lx, ly, 4)
    px.line(sx, sy + 1, lx, ly + 1, 4)
    px.line(sx, sy, sx, bottom, 4)

    draw_trail(px, snap["trail"], scale, 1)
    x, y, _, _ = snap["skier"]
    kx, ky = _s(x, scale), _s(y, scale)
    pitch = math.radians(snap["pitch_deg"])
    # スキー板は姿勢角に合わせて傾ける
    dx, dy = math.cos(pitch) * 6, -math.sin(pitch) * 6
    px.line(int(kx - dx), int(ky - dy), int(kx + dx), int(ky + dy), 0)
    px.circ(kx, ky - 3, 2, 8)

    draw_charge_meter(px, 110, 65, 320, 16, snap["load"], "Leg Load", scale)
    if snap["phase"] in ("flight", "landed", "complete"):
        px.text(_s(480, scale), _s(65, scale), f"Pitch: {snap['pitch_deg']:+.1f} deg", 0)
    if snap["phase"] in ("landed", "complete") and not snap["missed_hill"]:
        px.text(_s(480, scale), _s(80, scale), f"{snap['distance_meters']:.1f} m", 0)


VIEWS: Dict[EventKind, Callable[[Any, Snapshot, float], None]] = {
    EventKind.FIGURE_SKATING: draw_figure_skating,
    EventKind.CURLING: draw_curling,
    EventKind.SKI_JUMP: draw_ski_jump,
}


def draw_event(px, event: EventSimulation, scale: float) -> None:
    view = VIEWS.get(event.kind)
    if view is None:
        px.cls(0)
        return
    view(px, event.snapshot(), scale)


def draw_hud(px, hud: HeadsUpState, message: str, width: int, height: int) -> None:
    px.rect(0, 0, width, 12, 0)
    px.text(4, 3, hud.event_name, 7)
    score = f"SCORE: {hud.score}"
    px.text(width // 2 - len(score) * 2, 3, score, 10)
    left = f"LEFT: {hud.attempts_remaining}"
    px.text(width - len(left) * 4 - 4, 3, left, 7)

    px.rect(0, height - 20, width, 20, 0)
    if message:
        px.text(4, height - 17, message, 11)
    px.text(4, height - 9, hud.instructions, 6)


def draw_fade(px, alpha: float, width: int, height: int) -> None:
    if alpha <= 0:
        return
    px.dither(max(0.0, min(1.0, alpha)))
    px.rect(0, 0, width, height, 0)
    px.dither(1.0)
