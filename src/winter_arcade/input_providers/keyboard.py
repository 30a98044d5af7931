from __future__ import annotations

from queue import Queue
from typing import Dict, Optional, Tuple

from ..events import Action, press, release

# キー名 -> 発行するアクション（UP/DOWN は狙いと姿勢の両方に使う）
DEFAULT_BINDINGS: Dict[str, Tuple[Action, ...]] = {
    "KEY_SPACE": (Action.COMMIT,),
    "KEY_UP": (Action.AIM_UP, Action.PITCH_UP),
    "KEY_DOWN": (Action.AIM_DOWN, Action.PITCH_DOWN),
    "KEY_B": (Action.BRUSH,),
    "KEY_RETURN": (Action.CONFIRM,),
    "KEY_M": (Action.MUTE,),
    "KEY_ESCAPE": (Action.QUIT,),
}

# 押しっぱなしでリピート入力を出すキー（フレーム数）
REPEAT_KEYS = ("KEY_UP", "KEY_DOWN")
REPEAT_HOLD = 12
REPEAT_INTERVAL = 4


class KeyboardProvider:
    """
    Pyxel のキーボード状態をポーリングする入力プロバイダ。
    - Space  -> COMMIT（押下 / 解放）
    - Up     -> AIM_UP + PITCH_UP
    - Down   -> AIM_DOWN + PITCH_DOWN
    - B      -> BRUSH
    - Enter  -> CONFIRM
    - M      -> MUTE
    - Esc    -> QUIT
    """

    def __init__(self, note: str = "keyboard", bindings: Optional[Dict[str, Tuple[Action, ...]]] = None) -> None:
        self._note = note
        self._bindings = bindings or DEFAULT_BINDINGS
        self._held: Dict[str, bool] = {}

    def poll(self, px, out_queue: Queue) -> None:  # type: ignore[override]
        # Pyxel が利用可能になった後にキーコードへアクセスする（遅延参照）
        if px is None:
            return

        for key_name, actions in self._bindings.items():
            key = getattr(px, key_name, None)
            if key is None:
                continue
            if px.btnp(key):
                self._held[key_name] = True
                for action in actions:
                    out_queue.put(press(action, note=self._note))
            elif key_name in REPEAT_KEYS and px.btnp(key, hold=REPEAT_HOLD, repeat=REPEAT_INTERVAL):
                for action in actions:
                    out_queue.put(press(action, note=self._note, repeat=True))
            if px.btnr(key) and self._held.get(key_name, False):
                self._held[key_name] = False
                for action in actions:
                    out_queue.put(release(action, note=self._note))
