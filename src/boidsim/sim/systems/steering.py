from __future__ import annotations

from typing import Optional

from pygame.math import Vector2

from ..core.config import SimulationConfig
from ..core.store import AgentStore, NeighborAccumulators
from ..utils.math2d import _clamp_speed_xy
from .attractor import attractor_bias
from .boundary import boundary_bias


def resolve_velocity(
    index: int,
    store: AgentStore,
    accumulators: NeighborAccumulators,
    config: SimulationConfig,
    attractor: Optional[Vector2] = None,
) -> tuple[float, float]:
    position = store.positions[index]
    velocity = store.velocities[index]
    vel_x = velocity.x
    vel_y = velocity.y

    alignment_count = accumulators.alignment_counts[index]
    if alignment_count > 0:
        alignment_sum = accumulators.alignment_sums[index]
        vel_x += config.coeff_alignment * (alignment_sum.x / alignment_count - vel_x)
        vel_y += config.coeff_alignment * (alignment_sum.y / alignment_count - vel_y)

    cohesion_count = accumulators.cohesion_counts[index]
    if cohesion_count > 0:
        cohesion_sum = accumulators.cohesion_sums[index]
        vel_x += config.coeff_cohesion * (cohesion_sum.x / cohesion_count - position.x)
        vel_y += config.coeff_cohesion * (cohesion_sum.y / cohesion_count - position.y)

    attract_x, attract_y = attractor_bias(position, attractor, config)
    vel_x += attract_x
    vel_y += attract_y

    bound_x, bound_y = boundary_bias(position, config)
    vel_x += bound_x
    vel_y += bound_y

    separation_sum = accumulators.separation_sums[index]
    vel_x += config.coeff_separation * separation_sum.x
    vel_y += config.coeff_separation * separation_sum.y

    return _clamp_speed_xy(vel_x, vel_y, config.min_speed, config.max_speed)


def resolve_velocities(
    store: AgentStore,
    accumulators: NeighborAccumulators,
    config: SimulationConfig,
    attractor: Optional[Vector2] = None,
) -> None:
    # Each agent only reads its own velocity, so updating in place is safe.
    for index in range(len(store)):
        vel_x, vel_y = resolve_velocity(index, store, accumulators, config, attractor)
        store.velocities[index].update(vel_x, vel_y)
