from __future__ import annotations

from pygame.math import Vector2

from ..core.config import SimulationConfig
from ..core.rng import DeterministicRng
from ..core.store import AgentStore
from ..utils.math2d import REFERENCE_DIRECTION, _heading_from_velocity, _safe_normalize_xy


def draws_per_agent(config: SimulationConfig) -> int:
    return 5 if config.speed_sample else 4


def spawn_agent(rng: DeterministicRng, config: SimulationConfig) -> tuple[Vector2, Vector2]:
    # Draw order is x, y, vx, vy[, vmag]; changing it breaks seeded replays.
    sample = rng.sample_unit_tuple(draws_per_agent(config))
    x, y, vx, vy = sample[:4]
    box_size = config.box_size
    position = Vector2((x - 0.5) * box_size, (y - 0.5) * box_size)
    direction = _safe_normalize_xy(vx - 0.5, vy - 0.5, REFERENCE_DIRECTION)
    if config.speed_sample:
        speed = config.min_speed + sample[4] * (config.max_speed - config.min_speed)
    else:
        speed = config.fallback_speed
    return position, direction * speed


def populate(store: AgentStore, rng: DeterministicRng, config: SimulationConfig) -> None:
    for index in range(len(store)):
        position, velocity = spawn_agent(rng, config)
        store.set_agent(index, position, velocity, _heading_from_velocity(velocity))
