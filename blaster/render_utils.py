# blaster/render_utils.py
import math

import cv2
import numpy as np
import pygame


# アルファ付きサークル描画
def draw_alpha_circle(surface, center, radius, color, alpha):
    """Draw a filled circle with per-call alpha onto surface."""
    if alpha <= 0.0 or radius <= 0:
        return
    r = int(math.ceil(radius))
    tmp = pygame.Surface((r * 2 + 2, r * 2 + 2), pygame.SRCALPHA)
    a = int(255 * float(np.clip(alpha, 0.0, 1.0)))
    pygame.draw.circle(tmp, (*color[:3], a), (r + 1, r + 1), max(1, int(round(radius))))
    surface.blit(tmp, (int(center[0]) - r - 1, int(center[1]) - r - 1))


def draw_glow_circle(surface, center, radius, color, glow=3):
    """Solid circle with a few fading rings around it (cheap shadowBlur)."""
    for i in range(glow, 0, -1):
        draw_alpha_circle(surface, center, radius + i * 3, color, 0.08 * (glow - i + 1))
    pygame.draw.circle(surface, color, (int(center[0]), int(center[1])), max(1, int(round(radius))))


def draw_reticle(surface, center, color, size=14, firing=False):
    cx, cy = int(center[0]), int(center[1])
    pygame.draw.circle(surface, color, (cx, cy), size, 2)
    gap = size // 3
    for dx, dy in ((1, 0), (-1, 0), (0, 1), (0, -1)):
        p1 = (cx + dx * gap, cy + dy * gap)
        p2 = (cx + dx * (size + 6), cy + dy * (size + 6))
        pygame.draw.line(surface, color, p1, p2, 2)
    if firing:
        pygame.draw.circle(surface, color, (cx, cy), 4)


def norm_to_px(xn, yn, w, h):
    return int(xn * (w - 1)), int(yn * (h - 1))


def frame_to_surface(frame_bgr, size):
    """OpenCV BGR frame -> pygame Surface of ``size``."""
    img = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
    img = cv2.resize(img, size, interpolation=cv2.INTER_AREA)
    # OpenCV は (H, W, 3)、surfarray は (W, H, 3)
    img = np.transpose(img, (1, 0, 2))
    return pygame.surfarray.make_surface(img)
