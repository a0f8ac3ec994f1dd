# blaster/spawner.py
from __future__ import annotations

import colorsys
import math
import random
from typing import List, Mapping, Optional

from blaster.config import (
    ENEMY_RADIUS_MAX,
    ENEMY_RADIUS_MIN,
    ENEMY_SPEED,
    SPAWN_FALLBACK_MS,
    SPAWN_INTERVALS_MS,
    SPAWN_MIN_MS,
)
from blaster.world import Enemy, Viewport


def spawn_interval(level: int, table: Optional[Mapping[int, int]] = None,
                   fallback_ms: int = SPAWN_FALLBACK_MS) -> float:
    """Seconds between spawns at ``level``; levels missing from the table use the fallback."""
    table = SPAWN_INTERVALS_MS if table is None else table
    return table.get(int(level), fallback_ms) / 1000.0


def hue_color(hue: float):
    """HSL(hue, 70%, 60%) as an RGB tuple."""
    r, g, b = colorsys.hls_to_rgb((hue % 360.0) / 360.0, 0.6, 0.7)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


def spawn_enemy(viewport: Viewport, rng=None) -> Enemy:
    """Enemy just outside a random edge, heading for the viewport center."""
    rng = rng or random
    w, h = viewport
    radius = rng.uniform(ENEMY_RADIUS_MIN, ENEMY_RADIUS_MAX)

    if rng.random() < 0.5:
        # left / right edge
        x = -radius if rng.random() < 0.5 else w + radius
        y = rng.random() * h
    else:
        # top / bottom edge
        x = rng.random() * w
        y = -radius if rng.random() < 0.5 else h + radius

    cx, cy = viewport.center
    ang = math.atan2(cy - y, cx - x)
    return Enemy(
        x, y,
        math.cos(ang) * ENEMY_SPEED,
        math.sin(ang) * ENEMY_SPEED,
        radius,
        hue_color(rng.random() * 360.0),
    )


class SpawnScheduler:
    """Level-paced enemy timer, advanced by the game loop's elapsed time.

    The first enemy comes one full interval after start. Any level change
    throws the running timer away and starts a new one at the new interval.
    """
    def __init__(self, table: Optional[Mapping[int, int]] = None,
                 fallback_ms: int = SPAWN_FALLBACK_MS, rng=None):
        self.table = dict(SPAWN_INTERVALS_MS if table is None else table)
        self.fallback_ms = fallback_ms
        self.rng = rng or random
        self.active = False
        self.level = None
        self.interval = 0.0
        self.elapsed = 0.0

    def start(self, level: int) -> None:
        self.active = True
        self._restart(level)

    def stop(self) -> None:
        self.active = False
        self.elapsed = 0.0

    def _restart(self, level: int) -> None:
        self.level = int(level)
        self.interval = max(spawn_interval(self.level, self.table, self.fallback_ms),
                            SPAWN_MIN_MS / 1000.0)
        self.elapsed = 0.0
        print(f"[spawn] level {self.level}: one enemy every {self.interval:.2f}s")

    def update(self, dt: float, level: int, viewport: Viewport) -> List[Enemy]:
        if not self.active:
            return []
        if int(level) != self.level:
            self._restart(level)
        self.elapsed += max(0.0, float(dt))
        spawned = []
        while self.elapsed >= self.interval:
            self.elapsed -= self.interval
            spawned.append(spawn_enemy(viewport, self.rng))
        return spawned
