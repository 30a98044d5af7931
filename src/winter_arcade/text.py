from __future__ import annotations

from typing import Optional

from PyxelUniversalFont import Writer as PythonUniversalFont

FONT_NAME = "IPA_Gothic.ttf"
FONT_BASE_SIZE = 16
OUTLINE_OFFSETS = ((-1, 0), (1, 0), (0, -1), (0, 1))

_writer: Optional[PythonUniversalFont] = None


def _get_writer() -> PythonUniversalFont:
    # フォント読み込みは初回描画時まで遅らせる
    global _writer
    if _writer is None:
        _writer = PythonUniversalFont(FONT_NAME)
    return _writer


def centered_x(text: str, scale: int, width: int) -> int:
    # 見出しは半角のみなので 1 文字 = フォントサイズの半分幅
    font_size = FONT_BASE_SIZE * max(1, scale)
    return (width - font_size // 2 * len(text)) // 2


def draw_centered_text(
    text: str,
    y: int,
    color: int,
    scale: int = 1,
    width: int = 300,
    outline: bool = False,
) -> None:
    """見出し（タイトル・結果画面）を横中央に描く。outline なら黒で縁取る"""
    if not text:
        return
    writer = _get_writer()
    font_size = FONT_BASE_SIZE * max(1, scale)
    x = centered_x(text, scale, width)
    offsets = OUTLINE_OFFSETS if outline else ()
    for ox, oy in offsets:
        writer.draw(x + ox, y + oy, text, font_size=font_size, font_color=0, background_color=-1)
    writer.draw(x, y, text, font_size=font_size, font_color=color, background_color=-1)
