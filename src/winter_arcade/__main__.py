from __future__ import annotations

import argparse
from dataclasses import replace
from typing import List, Optional

from . import __version__
from .registry import discover_games


def _build_provider(spec: str):
    name, _, param = spec.partition(":")
    name = name.strip()
    arg = param.strip()

    if name == "keyboard":
        from .input_providers.keyboard import KeyboardProvider

        return KeyboardProvider()
    if name == "mediapipe_face":
        from .input_providers.mediapipe_face import FaceProvider

        camera_index = 0
        if arg:
            try:
                camera_index = int(arg)
            except ValueError as exc:
                raise SystemExit(f"Invalid camera index '{arg}' for mediapipe_face provider") from exc
        try:
            return FaceProvider(camera_index=camera_index)
        except RuntimeError as exc:
            raise SystemExit(str(exc)) from exc
    raise SystemExit(f"Unknown provider: {name}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Winter Arcade: figure skating, curling and ski jump")
    parser.add_argument("--event", default=None, help="Start directly in this event (skips the menu)")
    parser.add_argument(
        "--provider",
        action="append",
        metavar="SPEC",
        help="Input provider spec (keyboard, mediapipe_face or mediapipe_face:1). Repeat to add more.",
    )
    parser.add_argument("--scale", type=int, default=3, help="Pyxel window scale")
    parser.add_argument("--fps", type=int, default=None, help="Render frame rate (physics always runs at 120 Hz)")
    parser.add_argument("--mute", action="store_true", help="Start with sound off")
    parser.add_argument("--list", action="store_true", help="List discovered events and exit")
    parser.add_argument("--version", action="store_true", help="Print version and exit")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.version:
        print(__version__)
        return

    games = discover_games()
    if args.list:
        if not games:
            print("No events found.")
            return
        for name, info in games.items():
            print(f"- {name}: {info.title} ({info.source})")
        return

    if args.event is not None and args.event not in games:
        # 存在しない競技名が指定された場合は、利用可能な一覧を表示
        available = ", ".join(games.keys()) or "<none>"
        raise SystemExit(f"Event '{args.event}' not found. Available: {available}")

    provider_specs: List[str] = list(args.provider) if args.provider else []
    # キーボードは常に有効にする（メニュー操作用）
    if not any(spec.split(":")[0].strip().lower() == "keyboard" for spec in provider_specs):
        provider_specs.append("keyboard")
    providers = [_build_provider(spec) for spec in provider_specs]

    # pyxel を読み込むモジュールは引数チェックの後で読み込む
    from .app import App
    from .context import APP_CONFIG, ArcadeContext
    from .sound import SoundBoard

    config = APP_CONFIG
    if args.fps is not None:
        if args.fps <= 0:
            raise SystemExit("--fps must be positive")
        config = replace(config, fps=args.fps)

    ctx = ArcadeContext(games, config=config, sound=SoundBoard(enabled=not args.mute))
    if args.event is not None:
        ctx.enter_event(args.event)

    app = App(ctx=ctx, providers=providers, scale=args.scale)
    app.run()


if __name__ == "__main__":
    main()
