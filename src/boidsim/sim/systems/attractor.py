from __future__ import annotations

import math
from typing import Optional

from pygame.math import Vector2

from ..core.config import SimulationConfig


def attractor_bias(position: Vector2, target: Optional[Vector2], config: SimulationConfig) -> tuple[float, float]:
    if target is None:
        return 0.0, 0.0
    dx = target.x - position.x
    dy = target.y - position.y
    distance = math.hypot(dx, dy)
    # A target sitting on the agent has no direction; NaN fails the range too.
    if not (0.0 < distance < config.attractor_radius):
        return 0.0, 0.0
    scale = config.coeff_attractor / distance
    return dx * scale, dy * scale
