# blaster/hud.py
from __future__ import annotations

from typing import Optional, Tuple

import pygame

COLOR_TEXT = (255, 255, 255)
COLOR_SCORE = (255, 255, 180)
COLOR_OK = (80, 220, 120)
COLOR_OFF = (220, 70, 70)
COLOR_FIRE = (255, 0, 136)
COLOR_IDLE = (120, 120, 120)
COLOR_PANEL_BG = (0, 0, 20, 170)
COLOR_ACCENT = (0, 255, 255)

_fonts: dict = {}


def get_font(size: int) -> pygame.font.Font:
    font = _fonts.get(size)
    if font is None:
        if not pygame.font.get_init():
            pygame.font.init()
        font = pygame.font.Font(None, size)
        _fonts[size] = font
    return font


def draw_text(
    surface,
    text: str,
    org: Tuple[int, int],
    size: int = 24,
    color: Tuple[int, int, int] = COLOR_TEXT,
    align: str = "topleft",
) -> pygame.Rect:
    surf = get_font(size).render(text, True, color)
    rect = surf.get_rect()
    setattr(rect, align, org)
    surface.blit(surf, rect)
    return rect


def draw_panel(surface, rect: pygame.Rect, border=(255, 255, 255)) -> None:
    panel = pygame.Surface(rect.size, pygame.SRCALPHA)
    panel.fill(COLOR_PANEL_BG)
    surface.blit(panel, rect.topleft)
    pygame.draw.rect(surface, border, rect, 1)


def draw_score(surface, score: int, level: int, x: int = 16, y: int = 16) -> None:
    draw_panel(surface, pygame.Rect(x, y, 170, 60))
    draw_text(surface, f"SCORE: {score}", (x + 10, y + 8), color=COLOR_SCORE)
    draw_text(surface, f"LEVEL: {level}", (x + 10, y + 34))


def draw_status(surface, detected: bool, firing: bool, sensitivity: int) -> None:
    """Face / firing lamps and the current sensitivity, top right."""
    w = surface.get_width()
    rect = pygame.Rect(w - 196, 16, 180, 86)
    draw_panel(surface, rect)
    rows = (
        ("Face Detection", COLOR_OK if detected else COLOR_OFF),
        ("Firing", COLOR_FIRE if firing else COLOR_IDLE),
    )
    for i, (label, lamp) in enumerate(rows):
        cy = rect.y + 16 + i * 24
        pygame.draw.circle(surface, lamp, (rect.x + 14, cy), 6)
        draw_text(surface, label, (rect.x + 28, cy), size=22, align="midleft")
    draw_text(surface, f"Sensitivity: {sensitivity}  (+/-)", (rect.x + 8, rect.y + 64), size=20)


def draw_instructions(surface) -> None:
    w, h = surface.get_size()
    rect = pygame.Rect(0, 0, 420, 64)
    rect.midbottom = (w // 2, h - 60)
    draw_panel(surface, rect)
    draw_text(surface, "Position your face in the camera view", (rect.centerx, rect.y + 20),
              align="center")
    draw_text(surface, "Move your head to aim - open your mouth to fire",
              (rect.centerx, rect.y + 44), size=20, color=(200, 200, 200), align="center")


def draw_game_over(surface, score: int, level: int, first_game: bool,
                   error: Optional[str] = None) -> None:
    """Start / game-over panel in the middle of the screen."""
    w, h = surface.get_size()
    rect = pygame.Rect(0, 0, 440, 220)
    rect.center = (w // 2, h // 2)
    draw_panel(surface, rect, border=COLOR_ACCENT)

    if error:
        title, color = "CAMERA ERROR", COLOR_OFF
    elif first_game:
        title, color = "FACE BLASTER", COLOR_ACCENT
    else:
        title, color = "GAME OVER", COLOR_FIRE
    draw_text(surface, title, (rect.centerx, rect.y + 40), size=56, color=color, align="center")

    if error:
        draw_text(surface, error, (rect.centerx, rect.y + 100), size=22, align="center")
        draw_text(surface, "Press R to retry, Esc to quit", (rect.centerx, rect.y + 170),
                  size=24, color=COLOR_IDLE, align="center")
        return
    if not first_game:
        draw_text(surface, f"Score: {score}   Level: {level}", (rect.centerx, rect.y + 100),
                  size=30, color=COLOR_SCORE, align="center")
    draw_text(surface, "Press SPACE to start", (rect.centerx, rect.y + 150), size=30,
              align="center")
    draw_text(surface, "C: recalibrate aim   Esc: quit", (rect.centerx, rect.y + 186),
              size=20, color=COLOR_IDLE, align="center")
