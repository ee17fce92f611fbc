from __future__ import annotations

import math

from pygame.math import Vector2


def safe_normalize(vector: Vector2) -> Vector2:
    return safe_normalize_xy(vector.x, vector.y)


def safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq < 1e-18:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def rotate(vector: Vector2, theta: float) -> Vector2:
    """Rotate counter-clockwise by ``theta`` radians."""
    cos_t = math.cos(theta)
    sin_t = math.sin(theta)
    return Vector2(vector.x * cos_t - vector.y * sin_t, vector.x * sin_t + vector.y * cos_t)


def magnitude(vector: Vector2) -> float:
    return math.hypot(vector.x, vector.y)


def angle(vector: Vector2) -> float:
    if vector.x == 0.0 and vector.y == 0.0:
        return 0.0
    return math.atan2(vector.y, vector.x)
