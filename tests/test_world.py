from __future__ import annotations

import math
import random

import pytest

from blaster import world
from blaster.conditioner import AimSignal
from blaster.world import (
    CONTINUE,
    GAME_OVER,
    Enemy,
    GameState,
    Particle,
    Player,
    Projectile,
    Viewport,
    level_for_score,
)

VIEW = Viewport(1000.0, 600.0)
RED = (255, 0, 0)


def _state(**kw) -> GameState:
    return GameState(Player(500.0, 300.0), is_running=True, **kw)


def _still_projectile(x: float, y: float) -> Projectile:
    return Projectile(x, y, 0.0, 0.0)


def test_level_is_derived_from_score() -> None:
    for score, level in ((0, 1), (499, 1), (500, 2), (1999, 4), (4000, 9), (99999, 9)):
        assert level_for_score(score) == level
        assert _state(score=score).level == level


def test_fresh_state_centers_player() -> None:
    state = GameState.fresh(VIEW)
    assert (state.player.x, state.player.y) == (500.0, 300.0)
    assert state.score == 0
    assert state.level == 1
    assert state.projectiles == [] and state.enemies == [] and state.particles == []


def test_particles_fade_and_drop_when_alpha_reaches_zero() -> None:
    state = _state(particles=[Particle(10.0, 10.0, 1.0, 0.0, RED, alpha=0.025)])
    alphas = []
    expected = 0.025
    for _ in range(5):
        state, outcome = world.step(state, AimSignal(), VIEW)
        assert outcome == CONTINUE
        expected -= 0.01
        if expected <= 0:
            assert state.particles == []
            break
        assert len(state.particles) == 1
        alphas.append(state.particles[0].alpha)
    assert alphas == sorted(alphas, reverse=True)
    assert len(alphas) == 2


def test_particle_velocity_is_damped_and_never_culled_by_position() -> None:
    state = _state(particles=[Particle(-50.0, -50.0, 2.0, -1.0, RED)])
    state, _ = world.step(state, AimSignal(), VIEW)
    p = state.particles[0]
    assert p.vx == pytest.approx(1.98)
    assert p.vy == pytest.approx(-0.99)
    assert p.x == pytest.approx(-48.02)
    assert p.alpha == pytest.approx(0.99)


def test_projectiles_leaving_bounds_are_dropped_on_the_edge() -> None:
    state = _state(projectiles=[
        Projectile(994.0, 100.0, 6.0, 0.0),   # lands exactly on width
        Projectile(6.0, 100.0, -6.0, 0.0),    # lands exactly on 0
        Projectile(200.0, 100.0, 6.0, 0.0),
    ])
    state, _ = world.step(state, AimSignal(), VIEW)
    assert [(p.x, p.y) for p in state.projectiles] == [(206.0, 100.0)]


def test_hit_shrinks_big_enemy_then_kills_it() -> None:
    enemy = Enemy(100.0, 100.0, 1.0, 0.0, 20.0, RED)
    state = _state(enemies=[enemy], projectiles=[_still_projectile(112.0, 100.0)])
    rng = random.Random(1)

    state, outcome = world.step(state, AimSignal(), VIEW, rng=rng)
    assert outcome == CONTINUE
    assert len(state.enemies) == 1
    assert state.enemies[0].radius == pytest.approx(12.0)
    assert state.score == 10
    assert state.projectiles == []
    assert len(state.particles) == 40
    assert all(p.color == RED for p in state.particles)
    assert all((p.x, p.y) == (112.0, 100.0) for p in state.particles)

    state = state.replace(projectiles=[_still_projectile(110.0, 100.0)])
    state, outcome = world.step(state, AimSignal(), VIEW, rng=rng)
    assert outcome == CONTINUE
    assert state.enemies == []
    assert state.score == 30


def test_small_enemy_dies_on_first_hit() -> None:
    enemy = Enemy(100.0, 100.0, 0.0, 0.0, 15.0, RED)
    state = _state(enemies=[enemy], projectiles=[_still_projectile(100.0, 110.0)])
    state, _ = world.step(state, AimSignal(), VIEW)
    assert state.enemies == []
    assert state.score == 20
    assert len(state.particles) == 30


def test_enemy_takes_at_most_one_projectile_per_tick() -> None:
    enemy = Enemy(100.0, 100.0, 0.0, 0.0, 24.0, RED)
    first = _still_projectile(105.0, 100.0)
    second = _still_projectile(95.0, 100.0)
    state = _state(enemies=[enemy], projectiles=[first, second])
    state, _ = world.step(state, AimSignal(), VIEW)
    assert state.enemies[0].radius == pytest.approx(16.0)
    assert state.score == 10
    assert [(p.x, p.y) for p in state.projectiles] == [(95.0, 100.0)]


def test_first_enemy_in_order_claims_a_shared_projectile() -> None:
    a = Enemy(100.0, 100.0, 0.0, 0.0, 12.0, RED)
    b = Enemy(110.0, 100.0, 0.0, 0.0, 12.0, (0, 0, 255))
    state = _state(enemies=[a, b], projectiles=[_still_projectile(105.0, 100.0)])
    state, _ = world.step(state, AimSignal(), VIEW)
    assert len(state.enemies) == 1
    assert state.enemies[0].color == (0, 0, 255)
    assert state.score == 20
    assert state.projectiles == []


def test_player_collision_returns_pre_tick_state() -> None:
    enemy = Enemy(530.0, 300.0, -1.0, 0.0, 20.0, RED)
    safe = Enemy(50.0, 50.0, 1.0, 1.0, 20.0, RED)
    state = _state(enemies=[safe, enemy], particles=[Particle(0.0, 0.0, 1.0, 1.0, RED)], score=42)
    new_state, outcome = world.step(state, AimSignal(), VIEW, fire=True)
    assert outcome == GAME_OVER
    assert new_state is state
    assert (safe.x, enemy.x) == (50.0, 530.0)
    assert state.particles[0].alpha == 1.0
    assert state.score == 42


def test_player_hitbox_is_smaller_than_visual_radius() -> None:
    # center distance 36 < 20 + 20 but not < 20 + 20 - 5
    enemy = Enemy(536.0, 300.0, 0.0, 0.0, 20.0, RED)
    state, outcome = world.step(_state(enemies=[enemy]), AimSignal(), VIEW)
    assert outcome == CONTINUE
    assert len(state.enemies) == 1


def test_step_does_not_mutate_input() -> None:
    enemy = Enemy(100.0, 100.0, 1.0, 0.0, 20.0, RED)
    shot = Projectile(300.0, 300.0, 6.0, 0.0)
    state = _state(enemies=[enemy], projectiles=[shot])
    world.step(state, AimSignal(), VIEW)
    assert (enemy.x, shot.x) == (100.0, 300.0)
    assert state.enemies == [enemy]


def test_fire_creates_aimed_projectile_and_costs_a_point() -> None:
    aim = AimSignal(0.75, 0.5, True, True)
    state, _ = world.step(_state(score=5), aim, VIEW, fire=True)
    assert state.score == 4
    (shot,) = state.projectiles
    assert (shot.x, shot.y) == (500.0, 300.0)
    assert shot.vx == pytest.approx(6.0)
    assert shot.vy == pytest.approx(0.0, abs=1e-9)
    assert math.hypot(shot.vx, shot.vy) == pytest.approx(6.0)


def test_firing_at_zero_score_stays_at_zero() -> None:
    state, _ = world.step(_state(), AimSignal(0.1, 0.1, True, True), VIEW, fire=True)
    assert state.score == 0
    assert len(state.projectiles) == 1


def test_shot_at_player_position_still_has_speed() -> None:
    shot = Projectile.aimed(10.0, 10.0, 10.0, 10.0)
    assert (shot.vx, shot.vy) == (pytest.approx(6.0), pytest.approx(0.0))


def test_level_follows_score_after_kill() -> None:
    enemy = Enemy(100.0, 100.0, 0.0, 0.0, 10.0, RED)
    state = _state(score=495, enemies=[enemy], projectiles=[_still_projectile(100.0, 100.0)])
    state, _ = world.step(state, AimSignal(), VIEW)
    assert state.score == 515
    assert state.level == 2


def test_burst_uses_supplied_rng() -> None:
    a = world.burst(0.0, 0.0, RED, 5, random.Random(3))
    b = world.burst(0.0, 0.0, RED, 5, random.Random(3))
    assert [(p.vx, p.vy, p.radius) for p in a] == [(p.vx, p.vy, p.radius) for p in b]
    assert all(abs(p.vx) <= 3.0 and abs(p.vy) <= 3.0 for p in a)
