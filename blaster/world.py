# blaster/world.py
import copy
import math
import random
from typing import NamedTuple

from blaster.config import (
    ENEMY_SHRINK,
    ENEMY_SURVIVE_RADIUS,
    LEVEL_SCORE_STEP,
    MAX_LEVEL,
    PARTICLE_DAMPING,
    PARTICLE_FADE,
    PARTICLE_MAX_RADIUS,
    PARTICLE_MAX_SPEED,
    PARTICLES_PER_RADIUS,
    PLAYER_COLOR,
    PLAYER_HIT_MARGIN,
    PLAYER_RADIUS,
    PROJECTILE_COLOR,
    PROJECTILE_RADIUS,
    PROJECTILE_SPEED,
    SCORE_KILL,
    SCORE_SHRINK,
    SHOT_COST,
)

# step() outcomes
CONTINUE = "continue"
GAME_OVER = "game_over"


class Viewport(NamedTuple):
    width: float
    height: float

    @property
    def center(self):
        return self.width * 0.5, self.height * 0.5

    def contains(self, x, y):
        # strict: a point exactly on an edge is outside
        return 0.0 < x < self.width and 0.0 < y < self.height


def level_for_score(score):
    return min(MAX_LEVEL, int(score) // LEVEL_SCORE_STEP + 1)


def distance(a, b):
    return math.hypot(a.x - b.x, a.y - b.y)


# ----------------- entities -----------------
class Player:
    def __init__(self, x, y, radius=PLAYER_RADIUS, color=PLAYER_COLOR):
        self.x, self.y = float(x), float(y)
        self.radius = float(radius)
        self.color = color

    def copy(self):
        return copy.copy(self)


class Projectile:
    """Player shot: straight line at constant speed toward the aim point."""
    def __init__(self, x, y, vx, vy, radius=PROJECTILE_RADIUS, color=PROJECTILE_COLOR):
        self.x, self.y = float(x), float(y)
        self.vx, self.vy = float(vx), float(vy)
        self.radius = float(radius)
        self.color = color

    @classmethod
    def aimed(cls, ox, oy, tx, ty, speed=PROJECTILE_SPEED):
        # atan2(0, 0) == 0, so a shot at the origin itself flies along +x
        ang = math.atan2(ty - oy, tx - ox)
        return cls(ox, oy, math.cos(ang) * speed, math.sin(ang) * speed)

    def step(self):
        self.x += self.vx
        self.y += self.vy

    def copy(self):
        return copy.copy(self)


class Enemy:
    def __init__(self, x, y, vx, vy, radius, color):
        self.x, self.y = float(x), float(y)
        self.vx, self.vy = float(vx), float(vy)
        self.radius = float(radius)
        self.color = color

    def step(self):
        self.x += self.vx
        self.y += self.vy

    def copy(self):
        return copy.copy(self)


class Particle:
    """Explosion debris. Slows down and fades out; never culled by position."""
    def __init__(self, x, y, vx, vy, color, radius=1.0, alpha=1.0):
        self.x, self.y = float(x), float(y)
        self.vx, self.vy = float(vx), float(vy)
        self.color = color
        self.radius = float(radius)
        self.alpha = float(alpha)

    def step(self):
        self.vx *= PARTICLE_DAMPING
        self.vy *= PARTICLE_DAMPING
        self.x += self.vx
        self.y += self.vy
        self.alpha -= PARTICLE_FADE

    @property
    def alive(self):
        return self.alpha > 0.0

    def copy(self):
        return copy.copy(self)


def burst(x, y, color, count, rng=None):
    """Spawn ``count`` particles flying out of (x, y)."""
    rng = rng or random
    out = []
    for _ in range(count):
        vx = (rng.random() - 0.5) * (rng.random() * PARTICLE_MAX_SPEED)
        vy = (rng.random() - 0.5) * (rng.random() * PARTICLE_MAX_SPEED)
        out.append(Particle(x, y, vx, vy, color, radius=rng.random() * PARTICLE_MAX_RADIUS))
    return out


# ----------------- game state -----------------
class GameState:
    """One tick's worth of world. step() builds a new one instead of editing it."""
    def __init__(self, player, score=0, is_running=False,
                 projectiles=None, enemies=None, particles=None):
        self.player = player
        self.score = max(0, int(score))
        self.is_running = bool(is_running)
        self.projectiles = list(projectiles or [])
        self.enemies = list(enemies or [])
        self.particles = list(particles or [])

    @property
    def level(self):
        return level_for_score(self.score)

    @classmethod
    def fresh(cls, viewport, is_running=True):
        cx, cy = viewport.center
        return cls(Player(cx, cy), score=0, is_running=is_running)

    def replace(self, **changes):
        fields = dict(
            player=self.player,
            score=self.score,
            is_running=self.is_running,
            projectiles=self.projectiles,
            enemies=self.enemies,
            particles=self.particles,
        )
        fields.update(changes)
        return GameState(**fields)

    def with_player_at(self, x, y):
        player = self.player.copy()
        player.x, player.y = float(x), float(y)
        return self.replace(player=player)

    def with_enemies(self, extra):
        return self.replace(enemies=self.enemies + list(extra))

    def fire(self, tx, ty):
        """Add a shot from the player toward (tx, ty). Each shot costs a point."""
        shot = Projectile.aimed(self.player.x, self.player.y, tx, ty)
        return self.replace(
            projectiles=self.projectiles + [shot],
            score=max(0, self.score - SHOT_COST),
        )


def _advance_particles(particles):
    out = []
    for p in particles:
        p = p.copy()
        p.step()
        if p.alive:
            out.append(p)
    return out


def _advance_projectiles(projectiles, viewport):
    out = []
    for pr in projectiles:
        pr = pr.copy()
        pr.step()
        if viewport.contains(pr.x, pr.y):
            out.append(pr)
    return out


def step(state, aim, viewport, fire=False, rng=None):
    """Advance the world by one tick.

    ``aim`` is the conditioned AimSignal (normalized); it is only consulted when
    ``fire`` is set, to place the shot's target in viewport units.

    Returns ``(new_state, outcome)``. On GAME_OVER the untouched input state is
    returned, so nothing from the fatal tick leaks out.
    """
    particles = _advance_particles(state.particles)
    projectiles = _advance_projectiles(state.projectiles, viewport)

    player = state.player
    score = state.score
    enemies = []
    for enemy in state.enemies:
        enemy = enemy.copy()
        enemy.step()

        if distance(enemy, player) < enemy.radius + player.radius - PLAYER_HIT_MARGIN:
            return state, GAME_OVER

        hit_idx = None
        for i, pr in enumerate(projectiles):
            if distance(enemy, pr) < enemy.radius + pr.radius:
                hit_idx = i
                break

        if hit_idx is None:
            enemies.append(enemy)
            continue

        pr = projectiles[hit_idx]
        projectiles = projectiles[:hit_idx] + projectiles[hit_idx + 1:]
        count = int(math.ceil(enemy.radius * PARTICLES_PER_RADIUS))
        particles.extend(burst(pr.x, pr.y, enemy.color, count, rng))

        if enemy.radius > ENEMY_SURVIVE_RADIUS:
            enemy.radius -= ENEMY_SHRINK
            score += SCORE_SHRINK
            enemies.append(enemy)
        else:
            score += SCORE_KILL

    new_state = state.replace(
        score=score,
        projectiles=projectiles,
        enemies=enemies,
        particles=particles,
    )

    if fire:
        new_state = new_state.fire(aim.x * viewport.width, aim.y * viewport.height)

    return new_state, CONTINUE
