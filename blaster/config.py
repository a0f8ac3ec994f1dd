# blaster/config.py
"""Tuning constants and the user-settable configuration surface.

Defaults live as module constants; ``Settings`` gathers the ones a player or
launcher may override (environment variables, then command-line flags).
"""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from typing import Dict, Mapping, Optional

# ----------------- simulation -----------------
PLAYER_RADIUS = 20.0
PLAYER_COLOR = (255, 255, 255)
PLAYER_HIT_MARGIN = 5.0           # enemy must overlap the player by this much

PROJECTILE_RADIUS = 5.0
PROJECTILE_SPEED = 6.0            # units/tick
PROJECTILE_COLOR = (0, 255, 136)

PARTICLE_DAMPING = 0.99
PARTICLE_FADE = 0.01
PARTICLE_MAX_RADIUS = 2.0
PARTICLE_MAX_SPEED = 6.0
PARTICLES_PER_RADIUS = 2

ENEMY_SURVIVE_RADIUS = 15.0       # above this a hit only shrinks the enemy
ENEMY_SHRINK = 8.0
ENEMY_RADIUS_MIN, ENEMY_RADIUS_MAX = 10.0, 30.0
ENEMY_SPEED = 1.0

SCORE_SHRINK = 10
SCORE_KILL = 20
SHOT_COST = 1

LEVEL_SCORE_STEP = 500
MAX_LEVEL = 9

# level -> spawn interval [ms]
SPAWN_INTERVALS_MS = {
    1: 3000, 2: 2500, 3: 2000, 4: 1500, 5: 1200,
    6: 1000, 7: 800, 8: 600, 9: 500,
}
SPAWN_FALLBACK_MS = 400
SPAWN_MIN_MS = 1                  # floor for any table or fallback entry

# ----------------- signal conditioning -----------------
AIM_SMOOTHING = 0.7
DEFAULT_SENSITIVITY = 4
SENSITIVITY_MIN, SENSITIVITY_MAX = 1, 8

MOUTH_WINDOW = 10
MOUTH_MULTIPLIER = 2.2
MOUTH_FALLBACK_THRESHOLD = 0.015

FIRE_FRAMES = 6                   # consecutive open-mouth ticks per shot

# ----------------- runtime -----------------
FPS = 60
SCR_W, SCR_H = 960, 540
CAMERA_INDEX = 0

ENV_PREFIX = "BLASTER_"


def clamp_sensitivity(value) -> int:
    value = float(value)
    if not math.isfinite(value):
        return DEFAULT_SENSITIVITY
    return int(min(SENSITIVITY_MAX, max(SENSITIVITY_MIN, round(value))))


def parse_spawn_table(text: str) -> Dict[int, int]:
    """Parse ``"1:3000,2:2500"`` into ``{1: 3000, 2: 2500}``.

    Malformed entries are skipped with a warning.
    """
    table: Dict[int, int] = {}
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        try:
            level_s, ms_s = chunk.split(":", 1)
            level, ms = int(level_s), int(ms_s)
        except ValueError:
            print(f"[config] ignoring malformed spawn entry: {chunk!r}")
            continue
        if level < 1 or ms <= 0:
            print(f"[config] ignoring out-of-range spawn entry: {chunk!r}")
            continue
        table[level] = ms
    return table


@dataclass
class Settings:
    sensitivity: int = DEFAULT_SENSITIVITY
    fire_frames: int = FIRE_FRAMES
    mouth_multiplier: float = MOUTH_MULTIPLIER
    spawn_intervals_ms: Dict[int, int] = field(default_factory=lambda: dict(SPAWN_INTERVALS_MS))
    spawn_fallback_ms: int = SPAWN_FALLBACK_MS
    camera: int = CAMERA_INDEX
    flip: bool = False
    width: int = SCR_W
    height: int = SCR_H
    seed: Optional[int] = None

    def __post_init__(self):
        self.sensitivity = clamp_sensitivity(self.sensitivity)
        self.fire_frames = max(1, int(self.fire_frames))
        multiplier = float(self.mouth_multiplier)
        self.mouth_multiplier = max(1.0, multiplier) if math.isfinite(multiplier) else MOUTH_MULTIPLIER
        self.spawn_intervals_ms = {
            int(level): int(ms) for level, ms in self.spawn_intervals_ms.items() if ms > 0
        }
        self.spawn_fallback_ms = max(1, int(self.spawn_fallback_ms))
        self.width = max(1, int(self.width))
        self.height = max(1, int(self.height))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        settings = cls()
        overrides = {}

        def _read(name, cast):
            raw = env.get(ENV_PREFIX + name)
            if raw is None or raw == "":
                return None
            try:
                value = cast(raw)
            except ValueError:
                value = None
            if value is None or not math.isfinite(value):
                print(f"[config] ignoring {ENV_PREFIX}{name}={raw!r}")
                return None
            return value

        for name, attr, cast in (
            ("SENSITIVITY", "sensitivity", float),
            ("FIRE_FRAMES", "fire_frames", int),
            ("MOUTH_MULTIPLIER", "mouth_multiplier", float),
            ("CAMERA", "camera", int),
        ):
            value = _read(name, cast)
            if value is not None:
                overrides[attr] = value

        table_raw = env.get(ENV_PREFIX + "SPAWN_INTERVALS")
        if table_raw:
            table = parse_spawn_table(table_raw)
            if table:
                overrides["spawn_intervals_ms"] = table

        if overrides:
            settings = replace(settings, **overrides)
        return settings
