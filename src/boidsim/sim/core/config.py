from __future__ import annotations

import math
from dataclasses import dataclass, field, fields, replace
from enum import Enum
from pathlib import Path
from typing import Any

import yaml


class ConfigError(ValueError):
    pass


class BoundaryMode(str, Enum):
    MARGIN = "margin"
    WRAP = "wrap"


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    agent_count: int = 200
    seed: int = 55
    box_size: float = 250.0
    min_speed: float = 15.0
    max_speed: float = 60.0
    separation_radius: float = 3.0
    visible_radius: float = 6.0
    attractor_radius: float = 60.0
    coeff_separation: float = 0.1
    coeff_alignment: float = 0.005
    coeff_cohesion: float = 0.0005
    coeff_boundary: float = 1.0
    coeff_attractor: float = 1.0
    boundary_mode: BoundaryMode = BoundaryMode.MARGIN
    # Draw a fifth value per agent for the initial speed; off means every
    # agent starts at fallback_speed.
    speed_sample: bool = True
    fallback_speed: float = 30.0
    max_ticks_per_advance: int = 8
    config_version: str = "v1"

    def __post_init__(self) -> None:
        if not isinstance(self.boundary_mode, BoundaryMode):
            try:
                self.boundary_mode = BoundaryMode(str(self.boundary_mode).lower())
            except ValueError as exc:
                raise ConfigError(f"Unknown boundary mode: {self.boundary_mode!r}") from exc

    def validate(self) -> "SimulationConfig":
        for name in _REAL_FIELDS:
            value = getattr(self, name)
            if not _is_real(value):
                raise ConfigError(f"{name} must be a number, got {value!r}")
            if not math.isfinite(value):
                raise ConfigError(f"{name} must be finite, got {value!r}")
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ConfigError(f"{name} must be an integer, got {value!r}")
        if not isinstance(self.speed_sample, bool):
            raise ConfigError(f"speed_sample must be true or false, got {self.speed_sample!r}")
        if not isinstance(self.config_version, str):
            raise ConfigError(f"config_version must be a string, got {self.config_version!r}")
        for name in ("separation_radius", "visible_radius", "attractor_radius"):
            if getattr(self, name) < 0.0:
                raise ConfigError(f"{name} must be >= 0, got {getattr(self, name)}")
        if self.separation_radius > self.visible_radius:
            raise ConfigError(
                f"separation_radius ({self.separation_radius}) must not exceed visible_radius ({self.visible_radius})"
            )
        if self.box_size <= 0.0:
            raise ConfigError(f"box_size must be > 0, got {self.box_size}")
        if self.min_speed < 0.0:
            raise ConfigError(f"min_speed must be >= 0, got {self.min_speed}")
        if self.min_speed >= self.max_speed:
            raise ConfigError(f"min_speed ({self.min_speed}) must be below max_speed ({self.max_speed})")
        if self.fallback_speed < 0.0:
            raise ConfigError(f"fallback_speed must be >= 0, got {self.fallback_speed}")
        if self.time_step <= 0.0:
            raise ConfigError(f"time_step must be > 0, got {self.time_step}")
        if self.agent_count < 0:
            raise ConfigError(f"agent_count must be >= 0, got {self.agent_count}")
        if self.max_ticks_per_advance < 1:
            raise ConfigError(f"max_ticks_per_advance must be >= 1, got {self.max_ticks_per_advance}")
        return self

    def with_updates(self, **changes: Any) -> "SimulationConfig":
        unknown = set(changes) - _FIELD_NAMES
        if unknown:
            raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
        try:
            return replace(self, **changes).validate()
        except TypeError as exc:
            raise ConfigError(str(exc)) from exc

    def to_dict(self) -> dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        data["boundary_mode"] = self.boundary_mode.value
        return data

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        return load_config(data.get("simulation", data))


_FIELD_NAMES = {f.name for f in fields(SimulationConfig)}
_INT_FIELDS = ("agent_count", "seed", "max_ticks_per_advance")
_REAL_FIELDS = tuple(
    f.name
    for f in fields(SimulationConfig)
    if f.name not in _INT_FIELDS and f.name not in ("boundary_mode", "speed_sample", "config_version")
)


def _is_real(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2

    @staticmethod
    def from_yaml(path: Path) -> "AppConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        interval = data.get("broadcast_interval", 2)
        if not isinstance(interval, int) or isinstance(interval, bool) or interval < 1:
            raise ConfigError(f"broadcast_interval must be a positive integer, got {interval!r}")
        return AppConfig(simulation=load_config(data.get("simulation", {})), broadcast_interval=interval)


def load_config(raw: dict) -> SimulationConfig:
    if not isinstance(raw, dict):
        raise ConfigError(f"Expected a mapping of config values, got {type(raw).__name__}")
    unknown = set(raw) - _FIELD_NAMES
    if unknown:
        raise ConfigError(f"Unknown config keys: {sorted(unknown)}")
    try:
        return SimulationConfig(**raw).validate()
    except TypeError as exc:
        raise ConfigError(str(exc)) from exc
