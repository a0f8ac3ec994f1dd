# blaster/game.py
"""pygame front end: window, tick source, drawing.

The loop reads the newest AimSignal from the feed each frame, ticks the session
once, and draws the snapshot it gets back. Capture runs on its own thread.
"""
import random

import pygame

from blaster import hud
from blaster.conditioner import SignalConditioner
from blaster.config import FPS, SENSITIVITY_MAX, SENSITIVITY_MIN, Settings
from blaster.feed import CaptureWorker, SignalFeed
from blaster.render_utils import (
    draw_alpha_circle,
    draw_glow_circle,
    draw_reticle,
    frame_to_surface,
    norm_to_px,
)
from blaster.session import FAILED, GameSession
from blaster.world import Viewport

COLOR_BG = (0, 0, 0)
COLOR_TRAIL = (0, 0, 0, 26)
COLOR_RETICLE = (0, 255, 136)
COLOR_RETICLE_FIRE = (255, 0, 136)
COLOR_MESH = (0, 255, 136, 60)
PREVIEW_SIZE = (240, 160)


def draw_world(surface, state):
    for p in state.particles:
        draw_alpha_circle(surface, (p.x, p.y), max(1.0, p.radius), p.color, p.alpha)
    for pr in state.projectiles:
        draw_glow_circle(surface, (pr.x, pr.y), pr.radius, pr.color, glow=2)
    for e in state.enemies:
        draw_glow_circle(surface, (e.x, e.y), e.radius, e.color, glow=2)
    pl = state.player
    draw_glow_circle(surface, (pl.x, pl.y), pl.radius, pl.color)


def draw_landmarks(surface, points, rect):
    """Faint mesh dots under the tracking point."""
    if len(points) == 0:
        return
    cloud = pygame.Surface(rect.size, pygame.SRCALPHA)
    for xn, yn in points:
        pygame.draw.circle(cloud, COLOR_MESH, norm_to_px(xn, yn, rect.w, rect.h), 1)
    surface.blit(cloud, rect.topleft)


def draw_preview(surface, worker):
    """Camera thumbnail bottom-right with the tracking point on it."""
    w, h = surface.get_size()
    pw, ph = PREVIEW_SIZE
    rect = pygame.Rect(w - pw - 16, h - ph - 16, pw, ph)
    snap = worker.preview() if worker is not None else None
    if snap is None or worker.paused:
        pygame.draw.rect(surface, (10, 10, 10), rect)
        label = "PAUSED" if worker is not None and worker.paused else "NO SIGNAL"
        hud.draw_text(surface, label, rect.center, color=hud.COLOR_OFF, align="center")
    else:
        frame, signal, ref, points = snap
        surface.blit(frame_to_surface(frame, PREVIEW_SIZE), rect.topleft)
        draw_landmarks(surface, points, rect)
        if ref is not None:
            px, py = norm_to_px(ref[0], ref[1], pw, ph)
            color = COLOR_RETICLE_FIRE if signal.fire_intent else COLOR_RETICLE
            pygame.draw.circle(surface, color, (rect.x + px, rect.y + py), 5)
        hud.draw_text(surface, "FIRING" if signal.fire_intent else "READY",
                      (rect.x + 8, rect.bottom - 8), size=20,
                      color=COLOR_RETICLE_FIRE if signal.fire_intent else COLOR_RETICLE,
                      align="bottomleft")
    pygame.draw.rect(surface, (255, 255, 255), rect, 1)


def start_worker(conditioner, feed, settings):
    worker = CaptureWorker(conditioner, feed, camera=settings.camera, flip=settings.flip)
    worker.start()
    return worker


def run(settings=None):
    settings = settings or Settings()
    rng = random.Random(settings.seed) if settings.seed is not None else None

    pygame.init()
    pygame.display.set_caption("Face Blaster")
    screen = pygame.display.set_mode((settings.width, settings.height), pygame.RESIZABLE)
    clock = pygame.time.Clock()
    trail = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
    trail.fill(COLOR_TRAIL)

    feed = SignalFeed()
    conditioner = SignalConditioner.from_settings(settings)
    worker = start_worker(conditioner, feed, settings)
    sensitivity = settings.sensitivity

    session = GameSession(Viewport(*screen.get_size()), settings, rng=rng, signal_source=worker)
    first_game = True
    session.on_game_over(lambda score, level: print(f"[game] game over: score={score} level={level}"))

    running = True
    try:
        while running:
            dt = clock.tick(FPS) / 1000.0

            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    screen = pygame.display.set_mode((event.w, event.h), pygame.RESIZABLE)
                    trail = pygame.Surface(screen.get_size(), pygame.SRCALPHA)
                    trail.fill(COLOR_TRAIL)
                    session.resize(event.w, event.h)
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in (pygame.K_SPACE, pygame.K_RETURN) and not session.is_running:
                        if session.phase != FAILED:
                            first_game = False
                            session.start()
                    elif event.key in (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS):
                        sensitivity = min(SENSITIVITY_MAX, sensitivity + 1)
                        worker.request_sensitivity(sensitivity)
                    elif event.key in (pygame.K_MINUS, pygame.K_KP_MINUS):
                        sensitivity = max(SENSITIVITY_MIN, sensitivity - 1)
                        worker.request_sensitivity(sensitivity)
                    elif event.key == pygame.K_c:
                        worker.request_recalibrate()
                    elif event.key == pygame.K_r and session.phase == FAILED:
                        print("[game] restarting capture")
                        worker.stop()
                        feed.clear_error()
                        session.clear_error()
                        worker = start_worker(conditioner, feed, settings)
                        worker.request_sensitivity(sensitivity)
                        session.signal_source = worker

            if feed.error and session.phase != FAILED:
                session.fail(feed.error)

            signal = feed.latest()
            session.tick(signal, dt)
            state = session.snapshot()

            # 残像つきクリア
            screen.blit(trail, (0, 0))
            draw_world(screen, state)
            w, h = screen.get_size()
            aim_color = COLOR_RETICLE_FIRE if signal.fire_intent else COLOR_RETICLE
            draw_reticle(screen, norm_to_px(signal.x, signal.y, w, h), aim_color,
                         firing=signal.fire_intent)

            if session.is_running:
                hud.draw_score(screen, state.score, state.level)
                hud.draw_status(screen, signal.detected, signal.fire_intent, sensitivity)
                if not signal.detected:
                    hud.draw_instructions(screen)
            else:
                screen.fill(COLOR_BG)
                draw_world(screen, state)
                hud.draw_game_over(screen, state.score, state.level, first_game, session.error)
            draw_preview(screen, worker)

            pygame.display.flip()
    except KeyboardInterrupt:
        print("[game] KeyboardInterrupt, shutting down...")
    finally:
        session.end()
        worker.stop()
        pygame.quit()
    print("[game] done.")
