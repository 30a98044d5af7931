from __future__ import annotations

import importlib
import pkgutil
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .games.base import EventSimulation

ENTRY_POINT_GROUP = "winter_arcade.games"


@dataclass
class GameInfo:
    # 競技情報（名前 / クラス / 由来）
    name: str
    cls: type
    source: str  # "local" または パッケージ配布物の名前

    @property
    def menu_order(self) -> int:
        return int(getattr(self.cls, "menu_order", 100))

    @property
    def title(self) -> str:
        return str(getattr(self.cls, "name", self.name))


def _maybe_get_game_class(obj: Any) -> Optional[type]:
    # 受け入れる形式: クラス本体 / GAME_CLASS 変数 / クラスを返すファクトリ
    cls: Optional[type] = None
    if isinstance(obj, type):
        cls = obj
    elif hasattr(obj, "GAME_CLASS") and isinstance(obj.GAME_CLASS, type):
        cls = obj.GAME_CLASS
    elif callable(obj):
        try:
            v = obj()
        except Exception:
            return None
        if isinstance(v, type):
            cls = v
    if cls is None:
        return None
    # 共通インターフェースを満たさないクラスは登録しない
    for attr in ("reset", "advance", "handle_input", "heads_up_state", "snapshot"):
        if not callable(getattr(cls, attr, None)):
            return None
    return cls


def discover_local_games(base_pkg: str = "winter_arcade.games") -> Dict[str, GameInfo]:
    # パッケージ内のローカル競技を探索
    found: Dict[str, GameInfo] = {}
    try:
        pkg = importlib.import_module(base_pkg)
    except ImportError:
        return found

    for m in pkgutil.iter_modules(pkg.__path__):
        if not m.ispkg:
            continue
        mod_name = f"{base_pkg}.{m.name}.game"
        try:
            mod = importlib.import_module(mod_name)
        except Exception:
            continue
        cls = _maybe_get_game_class(mod)
        if cls:
            found[m.name] = GameInfo(name=m.name, cls=cls, source="local")
    return found


def discover_entrypoint_games(group: str = ENTRY_POINT_GROUP) -> Dict[str, GameInfo]:
    # エントリポイント経由で登録された外部パッケージの競技を探索
    from importlib import metadata

    found: Dict[str, GameInfo] = {}
    try:
        eps = metadata.entry_points(group=group)
    except Exception:
        return found

    for ep in eps:
        try:
            obj = ep.load()
        except Exception:
            continue
        cls = _maybe_get_game_class(obj)
        if cls:
            dist = getattr(ep, "dist", None)
            source = getattr(dist, "name", None) or ep.module
            found[ep.name] = GameInfo(name=ep.name, cls=cls, source=source)
    return found


def discover_games() -> Dict[str, GameInfo]:
    # ローカル + エントリポイントの両方から集約（メニュー順に並べる）
    games: Dict[str, GameInfo] = {}
    games.update(discover_local_games())
    games.update(discover_entrypoint_games())
    ordered = sorted(games.values(), key=lambda info: (info.menu_order, info.name))
    return {info.name: info for info in ordered}


def build_events(games: Dict[str, GameInfo]) -> Dict[str, EventSimulation]:
    """各競技を 1 度だけ生成する（セッション中は使い回し、入場ごとに reset）"""
    return {name: info.cls() for name, info in games.items()}
