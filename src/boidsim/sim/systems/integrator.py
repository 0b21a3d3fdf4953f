from __future__ import annotations

from ..core.config import SimulationConfig
from ..core.store import AgentStore
from ..utils.math2d import _heading_from_velocity
from .boundary import wrap_position


def integrate(store: AgentStore, config: SimulationConfig) -> None:
    dt = config.time_step
    headings = store.headings
    for index, (position, velocity) in enumerate(zip(store.positions, store.velocities)):
        position.update(position.x + velocity.x * dt, position.y + velocity.y * dt)
        wrap_position(position, config)
        headings[index] = _heading_from_velocity(velocity, headings[index])
