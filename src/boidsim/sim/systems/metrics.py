from __future__ import annotations

from ..core.store import AgentStore
from ..types.metrics import TickMetrics
from .neighbors import SweepStats


def create_metrics(tick: int, store: AgentStore, sweep: SweepStats, duration_ms: float) -> TickMetrics:
    speeds = [velocity.length() for velocity in store.velocities]
    if speeds:
        average_speed = sum(speeds) / len(speeds)
        min_speed = min(speeds)
        max_speed = max(speeds)
    else:
        average_speed = min_speed = max_speed = 0.0
    return TickMetrics(
        tick=tick,
        agents=len(store),
        pair_checks=sweep.pair_checks,
        separation_pairs=sweep.separation_pairs,
        neighbor_pairs=sweep.neighbor_pairs,
        average_speed=average_speed,
        min_speed=min_speed,
        max_speed=max_speed,
        tick_duration_ms=duration_ms,
    )
