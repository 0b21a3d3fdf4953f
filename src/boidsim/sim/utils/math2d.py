from __future__ import annotations

import math

from pygame.math import Vector2

ZERO = Vector2()
REFERENCE_DIRECTION = Vector2(0.0, 1.0)

_EPS_SQ = 1e-24


def _safe_normalize_xy(x: float, y: float, fallback: Vector2 = ZERO) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq <= _EPS_SQ:
        return Vector2(fallback)
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _clamp_speed_xy(x: float, y: float, min_speed: float, max_speed: float) -> tuple[float, float]:
    magnitude_sq = x * x + y * y
    if x == 0.0 and y == 0.0:
        if min_speed <= 0.0:
            return 0.0, 0.0
        return REFERENCE_DIRECTION.x * min_speed, REFERENCE_DIRECTION.y * min_speed
    if magnitude_sq < min_speed * min_speed:
        scale = min_speed / math.sqrt(magnitude_sq)
        return x * scale, y * scale
    if magnitude_sq > max_speed * max_speed:
        scale = max_speed / math.sqrt(magnitude_sq)
        return x * scale, y * scale
    return x, y


def _heading_from_velocity(vector: Vector2, previous: float = 0.0) -> float:
    # Signed angle from REFERENCE_DIRECTION, counter-clockwise positive.
    if vector.length_squared() < 1e-12:
        return previous
    cross = REFERENCE_DIRECTION.x * vector.y - REFERENCE_DIRECTION.y * vector.x
    dot = REFERENCE_DIRECTION.x * vector.x + REFERENCE_DIRECTION.y * vector.y
    return math.atan2(cross, dot)


def _wrap_coordinate(value: float, box_size: float) -> float:
    half = box_size * 0.5
    wrapped = (value + half) % box_size - half
    if wrapped >= half:
        wrapped -= box_size
    return wrapped
