from __future__ import annotations

import math
import sys
from typing import Iterable, Optional

from .games.base import SoundCue

# Pyxel の音名（c0〜b4 の 60 音）。a2 を 440Hz とみなす
_NOTE_NAMES = ("c", "c#", "d", "d#", "e", "f", "f#", "g", "g#", "a", "a#", "b")
_A2_INDEX = 33
_NOTE_COUNT = 60

# 効果音ごとの音色（t: 三角波, s: 矩形波, p: パルス）
_CUE_TONES = {
    "launch": "s",
    "takeoff": "s",
    "land": "t",
    "score": "t",
    "miss": "p",
}


def note_for_frequency(freq: float) -> str:
    """周波数を一番近い Pyxel の音名に丸める（範囲外は端の音）"""
    if freq <= 0:
        return "c0"
    index = _A2_INDEX + round(12 * math.log2(freq / 440.0))
    index = max(0, min(_NOTE_COUNT - 1, index))
    return f"{_NOTE_NAMES[index % 12]}{index // 12}"


class SoundBoard:
    """
    シミュレーションの SoundCue を Pyxel のサウンドスロットで鳴らす。
    M キーでミュート切り替え。
    """

    SLOT = 10
    CHANNEL = 1

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled
        self.last_played: Optional[str] = None
        self._error_logged = False

    def toggle(self, px) -> None:
        self.enabled = not self.enabled
        # 切り替えの確認音はミュート前後どちらでも鳴らす
        self._beep(px, SoundCue("toggle", 700 if self.enabled else 260), force=True)

    def play_all(self, px, cues: Iterable[SoundCue]) -> None:
        for cue in cues:
            self.play(px, cue)

    def play(self, px, cue: SoundCue) -> None:
        if not self.enabled:
            return
        self._beep(px, cue)

    def _beep(self, px, cue: SoundCue, force: bool = False) -> None:
        if px is None or not (self.enabled or force):
            return
        note = note_for_frequency(cue.freq)
        try:
            px.sounds[self.SLOT].set(
                notes=note,
                tones=_CUE_TONES.get(cue.name, "t"),
                volumes="4",
                effects="f",
                speed=8,
            )
            px.play(self.CHANNEL, self.SLOT)
        except Exception as e:
            # 音が鳴らなくてもゲームは継続（ログは一度だけ）
            if not self._error_logged:
                print(f"[SoundBoard] Sound play error for '{cue.name}': {e}", file=sys.stderr)
                self._error_logged = True
            return
        self.last_played = cue.name
