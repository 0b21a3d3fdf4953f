from __future__ import annotations

import math
from dataclasses import dataclass

from ..core.config import SimulationConfig
from ..core.store import AgentStore, NeighborAccumulators


@dataclass(slots=True)
class SweepStats:
    pair_checks: int = 0
    separation_pairs: int = 0
    neighbor_pairs: int = 0


def accumulate(store: AgentStore, accumulators: NeighborAccumulators, config: SimulationConfig) -> SweepStats:
    """Visit every unordered pair once and fill the three accumulators.

    Both bands use strict inequalities, so a pair sitting exactly on
    ``separation_radius`` or ``visible_radius`` lands in neither band.
    """
    positions = store.positions
    velocities = store.velocities
    separation_sums = accumulators.separation_sums
    alignment_sums = accumulators.alignment_sums
    alignment_counts = accumulators.alignment_counts
    cohesion_sums = accumulators.cohesion_sums
    cohesion_counts = accumulators.cohesion_counts
    separation_radius = config.separation_radius
    visible_radius = config.visible_radius
    stats = SweepStats()

    count = len(positions)
    for i in range(count):
        pos_i = positions[i]
        vel_i = velocities[i]
        for j in range(i + 1, count):
            pos_j = positions[j]
            dx = pos_i.x - pos_j.x
            dy = pos_i.y - pos_j.y
            distance = math.hypot(dx, dy)
            stats.pair_checks += 1
            if distance < separation_radius:
                sep_i = separation_sums[i]
                sep_j = separation_sums[j]
                sep_i.x += dx
                sep_i.y += dy
                sep_j.x -= dx
                sep_j.y -= dy
                stats.separation_pairs += 1
            elif separation_radius < distance < visible_radius:
                vel_j = velocities[j]
                alignment_sums[i] += vel_j
                alignment_sums[j] += vel_i
                alignment_counts[i] += 1
                alignment_counts[j] += 1
                cohesion_sums[i] += pos_j
                cohesion_sums[j] += pos_i
                cohesion_counts[i] += 1
                cohesion_counts[j] += 1
                stats.neighbor_pairs += 1
    return stats
