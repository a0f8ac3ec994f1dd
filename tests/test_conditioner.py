from __future__ import annotations

from types import SimpleNamespace

import pytest

from blaster.conditioner import (
    LM_LEFT_EYE_INNER,
    LM_RIGHT_EYE_INNER,
    MOUTH_PAIRS,
    AimSignal,
    AimTracker,
    MouthDetector,
    SignalConditioner,
    between_eyes,
    mouth_gap,
)

N_LANDMARKS = 468


def make_face(x: float = 0.5, y: float = 0.5, gap: float = 0.01) -> list[list[float]]:
    face = [[0.5, 0.5, 0.0] for _ in range(N_LANDMARKS)]
    face[LM_LEFT_EYE_INNER] = [x - 0.05, y, 0.0]
    face[LM_RIGHT_EYE_INNER] = [x + 0.05, y, 0.0]
    for up, low in MOUTH_PAIRS:
        face[up] = [0.5, 0.0, 0.0]
        face[low] = [0.5, gap, 0.0]
    return face


def test_between_eyes_is_inner_corner_midpoint() -> None:
    face = make_face(0.4, 0.3)
    assert list(between_eyes(face)) == pytest.approx([0.4, 0.3, 0.0])
    assert between_eyes(face[:100]) is None


def test_landmark_objects_are_accepted() -> None:
    face = [SimpleNamespace(x=p[0], y=p[1], z=p[2]) for p in make_face(0.6, 0.4, gap=0.02)]
    assert between_eyes(face)[0] == pytest.approx(0.6)
    assert mouth_gap(face) == pytest.approx(0.02)


def test_mouth_gap_averages_pairs_in_3d() -> None:
    face = make_face()
    face[13], face[14] = [0.0, 0.0, 0.0], [0.0, 0.03, 0.04]   # 0.05
    face[12], face[15] = [0.0, 0.0, 0.0], [0.0, 0.01, 0.0]    # 0.01
    face[16], face[17] = [0.0, 0.0, 0.0], [0.0, 0.0, 0.03]    # 0.03
    assert mouth_gap(face) == pytest.approx(0.03)


def test_mouth_gap_uses_pairs_that_exist() -> None:
    face = make_face()[:15]
    face[13], face[14] = [0.0, 0.0, 0.0], [0.0, 0.02, 0.0]
    assert mouth_gap(face) == pytest.approx(0.02)
    assert mouth_gap(face[:10]) is None


def test_aim_first_sample_sets_anchor() -> None:
    tracker = AimTracker(sensitivity=4, smoothing=0.7)
    out = tracker.update((0.5, 0.5))
    assert tuple(out) == (0.5, 0.5)
    assert tracker.calibrated


def test_aim_offset_is_scaled_and_smoothed() -> None:
    tracker = AimTracker(sensitivity=4, smoothing=0.7)
    tracker.update((0.5, 0.5))
    x, y = tracker.update((0.6, 0.5))
    assert x == pytest.approx(0.78)
    assert y == pytest.approx(0.5)
    # converges on anchor + 4 * displacement
    for _ in range(30):
        x, y = tracker.update((0.6, 0.5))
    assert x == pytest.approx(0.9)


def test_sensitivity_is_clamped() -> None:
    assert AimTracker(sensitivity=12).sensitivity == 8
    assert AimTracker(sensitivity=0).sensitivity == 1
    tracker = AimTracker()
    tracker.sensitivity = 6.4
    assert tracker.sensitivity == 6


def test_conditioner_mirrors_and_clamps() -> None:
    cond = SignalConditioner(sensitivity=4)
    first = cond.condition(make_face(0.5, 0.5))
    assert first == AimSignal(pytest.approx(0.5), pytest.approx(0.5), True, False)

    sig = cond.condition(make_face(0.6, 0.5))
    assert sig.x == pytest.approx(0.22)
    assert sig.y == pytest.approx(0.5)
    assert sig.detected

    for _ in range(10):
        sig = cond.condition(make_face(0.9, 0.05))
    assert sig.x == 0.0
    assert sig.y == 0.0


def test_mouth_baseline_from_closed_samples() -> None:
    mouth = MouthDetector(window=10, multiplier=2.2)
    for _ in range(10):
        mouth.update(0.01)
    assert mouth.baseline == pytest.approx(0.01)
    assert mouth.update(0.03) is True
    assert mouth.update(0.02) is False


def test_mouth_uses_fallback_until_window_is_full() -> None:
    mouth = MouthDetector(window=10, multiplier=2.2, fallback=0.015)
    assert mouth.update(0.02) is True
    assert mouth.update(0.01) is False
    assert mouth.baseline is None


def test_mouth_baseline_is_window_minimum_and_sticks() -> None:
    mouth = MouthDetector(window=4, multiplier=2.0)
    for gap in (0.02, 0.012, 0.05, 0.03):
        mouth.update(gap)
    assert mouth.baseline == pytest.approx(0.012)
    for _ in range(10):
        mouth.update(0.001)
    assert mouth.baseline == pytest.approx(0.012)


def test_face_loss_clears_fire_and_mouth_calibration() -> None:
    cond = SignalConditioner()
    for _ in range(10):
        cond.condition(make_face(gap=0.01))
    assert cond.mouth.baseline is not None
    assert cond.condition(make_face(gap=0.03)).fire_intent is True

    lost = cond.condition(None)
    assert lost.detected is False
    assert lost.fire_intent is False
    assert cond.mouth.baseline is None
    assert len(cond.mouth.history) == 0

    # back on the fallback threshold, baseline rebuilt from new samples only
    assert cond.condition(make_face(gap=0.02)).fire_intent is True
    for _ in range(9):
        cond.condition(make_face(gap=0.02))
    assert cond.mouth.baseline == pytest.approx(0.02)


def test_face_loss_keeps_anchor_and_last_aim() -> None:
    cond = SignalConditioner(sensitivity=4)
    cond.condition(make_face(0.5, 0.5))
    before = cond.condition(make_face(0.6, 0.5))
    lost = cond.condition(None)
    assert (lost.x, lost.y) == (before.x, before.y)
    assert cond.aim.anchor is not None
    assert tuple(cond.aim.anchor) == (pytest.approx(0.5), pytest.approx(0.5))


def test_short_landmark_list_counts_as_no_face() -> None:
    cond = SignalConditioner()
    sig = cond.condition(make_face()[:50])
    assert sig.detected is False
    assert sig.fire_intent is False


def test_recalibrate_takes_next_sample_as_anchor() -> None:
    cond = SignalConditioner(sensitivity=4)
    cond.condition(make_face(0.5, 0.5))
    cond.condition(make_face(0.6, 0.5))
    cond.recalibrate()
    sig = cond.condition(make_face(0.6, 0.5))
    assert sig.x == pytest.approx(0.4)
    assert sig.y == pytest.approx(0.5)


def test_reset_restores_defaults() -> None:
    cond = SignalConditioner()
    cond.condition(make_face(0.7, 0.2))
    cond.reset()
    assert cond.last == AimSignal()
    assert not cond.aim.calibrated
    assert cond.mouth.baseline is None
