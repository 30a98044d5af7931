from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


class Action(Enum):
    # ゲーム内で扱う抽象アクション
    COMMIT = auto()      # 溜め開始 / 解放（Space）
    AIM_UP = auto()      # 狙いを上へ（カーリング・メニュー）
    AIM_DOWN = auto()    # 狙いを下へ
    BRUSH = auto()       # スウィープ（カーリング）
    PITCH_UP = auto()    # 機首上げ（スキージャンプ）
    PITCH_DOWN = auto()  # 機首下げ
    CONFIRM = auto()     # 決定（Enter）
    MUTE = auto()        # サウンド切り替え
    QUIT = auto()        # 終了要求

    @property
    def repeatable(self) -> bool:
        # キーリピートを受け付けるのは狙いの微調整だけ
        return self in (Action.AIM_UP, Action.AIM_DOWN)


class InputKind(Enum):
    PRESS = auto()
    RELEASE = auto()


@dataclass
class InputEvent:
    # 入力イベント（押下/解放 + 抽象アクション）
    action: Action
    kind: InputKind = InputKind.PRESS
    is_repeat: bool = False
    note: Optional[str] = None  # 入力元（"keyboard" / "face" など）

    @property
    def is_press(self) -> bool:
        return self.kind == InputKind.PRESS

    @property
    def is_release(self) -> bool:
        return self.kind == InputKind.RELEASE


def press(action: Action, note: Optional[str] = None, repeat: bool = False) -> InputEvent:
    return InputEvent(action=action, kind=InputKind.PRESS, is_repeat=repeat, note=note)


def release(action: Action, note: Optional[str] = None) -> InputEvent:
    return InputEvent(action=action, kind=InputKind.RELEASE, note=note)
