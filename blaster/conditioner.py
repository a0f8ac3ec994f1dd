# blaster/conditioner.py
"""Face landmarks -> aim position + mouth-open fire intent.

Input per frame is either ``None`` (no face) or the landmark list of one face
as produced by MediaPipe FaceMesh: normalized x/y in [0, 1], z relative depth.
Plain ``(x, y, z)`` sequences are accepted as well.
"""
from __future__ import annotations

from collections import deque
from typing import NamedTuple, Optional, Sequence

import numpy as np

from blaster.config import (
    AIM_SMOOTHING,
    DEFAULT_SENSITIVITY,
    MOUTH_FALLBACK_THRESHOLD,
    MOUTH_MULTIPLIER,
    MOUTH_WINDOW,
    clamp_sensitivity,
)

# FaceMesh landmark ids
LM_LEFT_EYE_INNER = 133
LM_RIGHT_EYE_INNER = 362

# (upper lip, lower lip)
MOUTH_PAIRS = (
    (13, 14),   # center
    (12, 15),   # left
    (16, 17),   # right
)


class AimSignal(NamedTuple):
    x: float = 0.5
    y: float = 0.5
    detected: bool = False
    fire_intent: bool = False


def clamp01(x):
    return float(np.clip(x, 0.0, 1.0))


def l2(a, b):
    return float(np.linalg.norm(a - b))


def landmark_xyz(lm) -> np.ndarray:
    if hasattr(lm, "x"):
        return np.array([lm.x, lm.y, getattr(lm, "z", 0.0)], dtype=np.float64)
    pt = np.asarray(lm, dtype=np.float64).ravel()
    if pt.size < 3:
        pt = np.concatenate([pt, np.zeros(3 - pt.size)])
    return pt[:3]


def between_eyes(landmarks: Sequence) -> Optional[np.ndarray]:
    """Midpoint of the inner eye corners, or None if the mesh is too short."""
    if len(landmarks) <= max(LM_LEFT_EYE_INNER, LM_RIGHT_EYE_INNER):
        return None
    le = landmark_xyz(landmarks[LM_LEFT_EYE_INNER])
    re = landmark_xyz(landmarks[LM_RIGHT_EYE_INNER])
    return 0.5 * (le + re)


def mouth_gap(landmarks: Sequence) -> Optional[float]:
    """Mean 3D upper/lower lip distance over the lip pairs present."""
    gaps = []
    for up, low in MOUTH_PAIRS:
        if max(up, low) < len(landmarks):
            gaps.append(l2(landmark_xyz(landmarks[up]), landmark_xyz(landmarks[low])))
    if not gaps:
        return None
    return float(np.mean(gaps))


class AimTracker:
    """Relative head aim around an anchor, with exponential smoothing.

    The first sample becomes the anchor; later samples move the aim by
    ``(sample - anchor) * sensitivity``. Only the offset is smoothed, so the
    emitted point starts exactly at the anchor.
    """
    def __init__(self, sensitivity=DEFAULT_SENSITIVITY, smoothing=AIM_SMOOTHING):
        self.sensitivity = sensitivity
        self.smoothing = float(np.clip(smoothing, 0.0, 1.0))
        self.anchor = None
        self.offset = np.zeros(2)

    @property
    def sensitivity(self):
        return self._sensitivity

    @sensitivity.setter
    def sensitivity(self, value):
        self._sensitivity = clamp_sensitivity(value)

    @property
    def calibrated(self):
        return self.anchor is not None

    def update(self, point) -> np.ndarray:
        """Feed one reference point; returns the un-mirrored (x, y) aim."""
        xy = np.asarray(point, dtype=np.float64)[:2]
        if self.anchor is None:
            self.anchor = xy.copy()
            self.offset = np.zeros(2)
            return self.anchor.copy()
        target = (xy - self.anchor) * self.sensitivity
        a = self.smoothing
        self.offset = self.offset * (1.0 - a) + target * a
        return self.anchor + self.offset

    def recalibrate(self):
        self.anchor = None
        self.offset = np.zeros(2)


class MouthDetector:
    """Open-mouth detector that calibrates its own closed-mouth baseline.

    Once ``window`` gap samples have been seen, the smallest of them becomes
    the baseline and the mouth counts as open above ``baseline * multiplier``.
    Until then an absolute threshold is used.
    """
    def __init__(self, window=MOUTH_WINDOW, multiplier=MOUTH_MULTIPLIER,
                 fallback=MOUTH_FALLBACK_THRESHOLD):
        self.history = deque(maxlen=max(1, int(window)))
        self.multiplier = float(multiplier)
        self.fallback = float(fallback)
        self.baseline = None

    def update(self, gap: float) -> bool:
        gap = float(gap)
        self.history.append(gap)
        if self.baseline is None and len(self.history) >= self.history.maxlen:
            self.baseline = min(self.history)
        if self.baseline is not None:
            return gap > self.baseline * self.multiplier
        return gap > self.fallback

    def reset(self):
        self.history.clear()
        self.baseline = None


class SignalConditioner:
    def __init__(self, sensitivity=DEFAULT_SENSITIVITY, smoothing=AIM_SMOOTHING,
                 mouth_window=MOUTH_WINDOW, mouth_multiplier=MOUTH_MULTIPLIER,
                 mouth_fallback=MOUTH_FALLBACK_THRESHOLD):
        self.aim = AimTracker(sensitivity, smoothing)
        self.mouth = MouthDetector(mouth_window, mouth_multiplier, mouth_fallback)
        self.last = AimSignal()
        self.reference = None   # last raw reference point, for preview overlays

    @classmethod
    def from_settings(cls, settings):
        return cls(sensitivity=settings.sensitivity, mouth_multiplier=settings.mouth_multiplier)

    def condition(self, landmarks) -> AimSignal:
        point = between_eyes(landmarks) if landmarks is not None else None
        if point is None:
            return self._lost()

        gap = mouth_gap(landmarks)
        fire = self.mouth.update(gap) if gap is not None else False

        x, y = self.aim.update(point)
        self.reference = point
        self.last = AimSignal(clamp01(1.0 - x), clamp01(y), True, bool(fire))
        return self.last

    def _lost(self) -> AimSignal:
        # the anchor survives; the mouth baseline has to be rebuilt
        self.mouth.reset()
        self.reference = None
        self.last = AimSignal(self.last.x, self.last.y, False, False)
        return self.last

    def recalibrate(self):
        self.aim.recalibrate()
        self.mouth.reset()

    def reset(self):
        self.recalibrate()
        self.reference = None
        self.last = AimSignal()
