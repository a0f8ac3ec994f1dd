# blaster/session.py
from __future__ import annotations

import threading
from typing import Callable, List, Optional

from blaster import world
from blaster.config import FIRE_FRAMES, Settings
from blaster.conditioner import AimSignal
from blaster.spawner import SpawnScheduler
from blaster.world import GameState, Viewport

NOT_STARTED = "not_started"
RUNNING = "running"
ENDED = "ended"
FAILED = "failed"


class FireDebouncer:
    """One shot per ``threshold`` consecutive detected open-mouth ticks."""
    def __init__(self, threshold=FIRE_FRAMES):
        self.threshold = max(1, int(threshold))
        self.count = 0

    def update(self, signal: AimSignal) -> bool:
        if not (signal.detected and signal.fire_intent):
            self.count = 0
            return False
        self.count += 1
        if self.count >= self.threshold:
            self.count = 0
            return True
        return False

    def reset(self):
        self.count = 0


class GameSession:
    """Start / end lifecycle around the world step, the spawner and fire debouncing.

    ``signal_source`` is anything with ``pause()``, ``resume()`` and
    ``request_reset()`` (the capture worker); it is paused whenever the session
    stops and reset on every start.
    """
    def __init__(self, viewport: Viewport, settings: Optional[Settings] = None,
                 rng=None, signal_source=None):
        self.settings = settings or Settings()
        self.viewport = Viewport(float(viewport[0]), float(viewport[1]))
        self.rng = rng
        self.signal_source = signal_source
        self.phase = NOT_STARTED
        self.error: Optional[str] = None
        self.state = GameState.fresh(self.viewport, is_running=False)
        self.signal = AimSignal()
        self.shots = 0
        self.debouncer = FireDebouncer(self.settings.fire_frames)
        self.spawner = SpawnScheduler(
            self.settings.spawn_intervals_ms, self.settings.spawn_fallback_ms, rng
        )
        self._listeners: List[Callable[[int, int], None]] = []
        self._lock = threading.RLock()

    # --- observable state ---
    @property
    def is_running(self) -> bool:
        return self.phase == RUNNING

    @property
    def score(self) -> int:
        return self.state.score

    @property
    def level(self) -> int:
        return self.state.level

    def snapshot(self) -> GameState:
        with self._lock:
            return self.state

    def on_game_over(self, callback: Callable[[int, int], None]) -> None:
        """Register ``callback(score, level)``."""
        self._listeners.append(callback)

    # --- lifecycle ---
    def start(self) -> None:
        with self._lock:
            if self.phase == RUNNING:
                return
            if self.phase == FAILED and self.error:
                print(f"[session] cannot start: {self.error}")
                return
            self.state = GameState.fresh(self.viewport, is_running=True)
            self.signal = AimSignal()
            self.shots = 0
            self.debouncer.reset()
            self.spawner.start(self.state.level)
            if self.signal_source is not None:
                self.signal_source.request_reset()
                self.signal_source.resume()
            self.phase = RUNNING
            print("[session] started")

    def end(self) -> None:
        with self._lock:
            if self.phase != RUNNING:
                return
            self._halt()
            self.phase = ENDED
            print(f"[session] ended: score={self.state.score} level={self.state.level}")

    def fail(self, reason) -> None:
        with self._lock:
            if self.phase == FAILED:
                return
            self._halt()
            self.phase = FAILED
            self.error = str(reason)
            print(f"[session] failed: {self.error}")

    def clear_error(self) -> None:
        with self._lock:
            self.error = None
            if self.phase == FAILED:
                self.phase = ENDED

    def _halt(self):
        self.spawner.stop()
        self.debouncer.reset()
        if self.signal_source is not None:
            self.signal_source.pause()
        if self.state.is_running:
            self.state = self.state.replace(is_running=False)

    def resize(self, width, height) -> None:
        with self._lock:
            self.viewport = Viewport(float(width), float(height))
            cx, cy = self.viewport.center
            self.state = self.state.with_player_at(cx, cy)

    # --- per frame ---
    def tick(self, signal: AimSignal, dt: float = 0.0) -> Optional[str]:
        """Advance one tick. Returns the step outcome, or None when not running."""
        with self._lock:
            if self.phase != RUNNING:
                return None
            self.signal = signal
            fire = self.debouncer.update(signal)
            state, outcome = world.step(self.state, signal, self.viewport, fire, self.rng)

            if outcome == world.GAME_OVER:
                score, level = self.state.score, self.state.level
                self.end()
                listeners = list(self._listeners)
            else:
                if fire:
                    self.shots += 1
                spawned = self.spawner.update(dt, state.level, self.viewport)
                if spawned:
                    state = state.with_enemies(spawned)
                self.state = state
                return outcome

        for cb in listeners:
            cb(score, level)
        return outcome
