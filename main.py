# main.py
"""
Face Blaster entry point.

    python main.py --flip --sensitivity 5

Defaults come from blaster/config.py, then BLASTER_* environment variables,
then the flags below.
"""

import argparse
from dataclasses import replace

from blaster.config import SENSITIVITY_MAX, SENSITIVITY_MIN, Settings, parse_spawn_table


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Head-aimed, mouth-triggered arcade shooter"
    )
    parser.add_argument("--camera", type=int, default=None, help="camera index for cv2.VideoCapture")
    parser.add_argument("--flip", action="store_true", help="mirror camera frames before detection")
    parser.add_argument(
        "--sensitivity",
        type=int,
        default=None,
        help=f"head movement multiplier ({SENSITIVITY_MIN}-{SENSITIVITY_MAX})",
    )
    parser.add_argument(
        "--fire-frames",
        type=int,
        default=None,
        help="consecutive open-mouth frames needed per shot",
    )
    parser.add_argument(
        "--mouth-multiplier",
        type=float,
        default=None,
        help="mouth counts as open above baseline x this",
    )
    parser.add_argument(
        "--spawn-intervals",
        type=str,
        default=None,
        help="level:ms pairs, e.g. 1:3000,2:2500",
    )
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--seed", type=int, default=None, help="seed for spawns and particles")
    return parser


def settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    overrides = {}
    for attr in ("camera", "sensitivity", "fire_frames", "mouth_multiplier", "width", "height", "seed"):
        value = getattr(args, attr)
        if value is not None:
            overrides[attr] = value
    if args.flip:
        overrides["flip"] = True
    if args.spawn_intervals:
        table = parse_spawn_table(args.spawn_intervals)
        if table:
            overrides["spawn_intervals_ms"] = table
    return replace(base, **overrides) if overrides else base


def main(argv=None) -> None:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args, Settings.from_env())
    print(f"[main] sensitivity={settings.sensitivity} fire_frames={settings.fire_frames} "
          f"camera={settings.camera}")

    from blaster import game

    game.run(settings)


if __name__ == "__main__":
    main()
