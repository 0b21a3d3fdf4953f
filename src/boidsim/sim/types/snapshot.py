from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .metrics import TickMetrics


@dataclass(frozen=True, slots=True)
class AgentSnapshot:
    index: int
    x: float
    y: float
    vx: float
    vy: float
    heading: float


@dataclass(frozen=True, slots=True)
class Snapshot:
    tick: int
    metrics: Optional[TickMetrics]
    agents: Tuple[AgentSnapshot, ...]
    world: "SnapshotWorld"
    metadata: "SnapshotMetadata"


@dataclass(frozen=True, slots=True)
class SnapshotWorld:
    box_size: float
    boundary_mode: str
    attractor: Optional[Tuple[float, float]]
    attractor_radius: float


@dataclass(frozen=True, slots=True)
class SnapshotMetadata:
    sim_dt: float
    tick_rate: float
    seed: int
    config_version: str
