from __future__ import annotations

from pygame.math import Vector2

from ..core.config import BoundaryMode, SimulationConfig
from ..utils.math2d import _wrap_coordinate


def boundary_bias(position: Vector2, config: SimulationConfig) -> tuple[float, float]:
    """Soft push back toward the box; zero inside it or in wrap mode."""
    if config.boundary_mode != BoundaryMode.MARGIN:
        return 0.0, 0.0
    margin = config.box_size * 0.5
    coefficient = config.coeff_boundary
    bias_x = 0.0
    bias_y = 0.0
    if position.x < -margin:
        bias_x += coefficient
    if position.x > margin:
        bias_x -= coefficient
    if position.y < -margin:
        bias_y += coefficient
    if position.y > margin:
        bias_y -= coefficient
    return bias_x, bias_y


def wrap_position(position: Vector2, config: SimulationConfig) -> None:
    if config.boundary_mode != BoundaryMode.WRAP:
        return
    box_size = config.box_size
    position.update(_wrap_coordinate(position.x, box_size), _wrap_coordinate(position.y, box_size))
