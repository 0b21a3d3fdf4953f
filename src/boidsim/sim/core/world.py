from __future__ import annotations

import logging
from time import perf_counter
from typing import Any, Optional

from pygame.math import Vector2

from .config import SimulationConfig
from .rng import DeterministicRng
from .store import AgentStore, NeighborAccumulators
from ..systems import integrator, metrics as metrics_system, neighbors, spawner, steering
from ..systems.neighbors import SweepStats
from ..types.metrics import TickMetrics
from ..types.snapshot import AgentSnapshot, Snapshot, SnapshotMetadata, SnapshotWorld
from ..utils.math2d import _heading_from_velocity

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class World:
    """Fixed-step flock pipeline: clear, accumulate, resolve, integrate.

    Config changes, attractor moves and restarts are staged and only take
    effect at the start of the next tick, so one tick always sees a single
    consistent configuration.
    """

    def __init__(self, config: SimulationConfig, store: Optional[AgentStore] = None):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._attractor: Optional[Vector2] = None
        self._pending_config: Optional[SimulationConfig] = None
        self._pending_attractor: Any = _UNSET
        self._pending_restart: Optional[tuple[Optional[int], bool]] = None
        self._in_tick = False
        self._ticks = 0
        self._metrics: TickMetrics | None = None
        if store is None:
            self._store = AgentStore(config.agent_count)
            spawner.populate(self._store, self._rng, config)
        else:
            self._store = store
            for index, velocity in enumerate(store.velocities):
                store.headings[index] = _heading_from_velocity(velocity)
        self._accumulators = NeighborAccumulators(len(self._store))

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def store(self) -> AgentStore:
        return self._store

    @property
    def accumulators(self) -> NeighborAccumulators:
        return self._accumulators

    @property
    def attractor(self) -> Optional[Vector2]:
        return self._attractor

    @property
    def seed(self) -> int:
        return self._rng.seed

    @property
    def ticks(self) -> int:
        return self._ticks

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def pending_config(self) -> Optional[SimulationConfig]:
        return self._pending_config

    def apply_config(self, config: SimulationConfig) -> SimulationConfig:
        config.validate()
        self._pending_config = config
        return config

    def update_config(self, **changes: Any) -> SimulationConfig:
        base = self._pending_config if self._pending_config is not None else self._config
        return self.apply_config(base.with_updates(**changes))

    def set_attractor(self, target: Optional[Vector2]) -> None:
        self._pending_attractor = None if target is None else Vector2(target)

    def request_restart(self, seed: Optional[int] = None, reseed: bool = True) -> None:
        self._pending_restart = (seed, reseed)

    def restart(self, seed: Optional[int] = None, reseed: bool = True) -> None:
        self.request_restart(seed, reseed)
        self.apply_pending()

    def apply_pending(self) -> None:
        if self._in_tick:
            return
        if self._pending_config is not None:
            previous = self._config
            self._config = self._pending_config
            self._pending_config = None
            if previous.agent_count != self._config.agent_count:
                logger.info(
                    "agent_count changed from %d to %d; takes effect on restart",
                    previous.agent_count,
                    self._config.agent_count,
                )
            logger.debug("Applied config update at tick %d", self._ticks)
        if self._pending_attractor is not _UNSET:
            self._attractor = self._pending_attractor
            self._pending_attractor = _UNSET
        if self._pending_restart is not None:
            seed, reseed = self._pending_restart
            self._pending_restart = None
            self._respawn(seed, reseed)

    def _respawn(self, seed: Optional[int], reseed: bool) -> None:
        if reseed or seed is not None:
            self._rng.reset(seed)
        count = self._config.agent_count
        if count != len(self._store):
            self._store = AgentStore(count)
            self._accumulators = NeighborAccumulators(count)
        spawner.populate(self._store, self._rng, self._config)
        self._ticks = 0
        self._metrics = None
        logger.info("Restarted %d agents with seed %d", count, self._rng.seed)

    def step(self, tick: Optional[int] = None) -> TickMetrics:
        self.apply_pending()
        start = perf_counter()
        config = self._config
        self._in_tick = True
        try:
            self._accumulators.clear()
            sweep: SweepStats = neighbors.accumulate(self._store, self._accumulators, config)
            steering.resolve_velocities(self._store, self._accumulators, config, self._attractor)
            integrator.integrate(self._store, config)
        finally:
            self._in_tick = False
        elapsed_ms = (perf_counter() - start) * 1000.0
        self._ticks += 1
        metrics = metrics_system.create_metrics(
            self._ticks if tick is None else tick, self._store, sweep, elapsed_ms
        )
        self._metrics = metrics
        return metrics

    def snapshot(self, tick: Optional[int] = None) -> Snapshot:
        config = self._config
        store = self._store
        agents = tuple(
            AgentSnapshot(
                index=index,
                x=position.x,
                y=position.y,
                vx=velocity.x,
                vy=velocity.y,
                heading=heading,
            )
            for index, (position, velocity, heading) in enumerate(
                zip(store.positions, store.velocities, store.headings)
            )
        )
        attractor = None if self._attractor is None else (self._attractor.x, self._attractor.y)
        return Snapshot(
            tick=self._ticks if tick is None else tick,
            metrics=self._metrics,
            agents=agents,
            world=SnapshotWorld(
                box_size=config.box_size,
                boundary_mode=config.boundary_mode.value,
                attractor=attractor,
                attractor_radius=config.attractor_radius,
            ),
            metadata=SnapshotMetadata(
                sim_dt=config.time_step,
                tick_rate=1.0 / config.time_step,
                seed=self._rng.seed,
                config_version=config.config_version,
            ),
        )
