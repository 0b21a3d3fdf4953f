from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    agents: int
    pair_checks: int
    separation_pairs: int
    neighbor_pairs: int
    average_speed: float
    min_speed: float
    max_speed: float
    tick_duration_ms: float = 0.0
