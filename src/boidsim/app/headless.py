from __future__ import annotations

import argparse
import csv
import json
import logging
import math
from pathlib import Path
from typing import Optional

from ..sim.core.config import SimulationConfig
from ..sim.core.world import World
from ..sim.types.metrics import TickMetrics

logger = logging.getLogger(__name__)


_BASIC_HEADER = [
    "tick",
    "agents",
    "pair_checks",
    "separation_pairs",
    "neighbor_pairs",
    "avg_speed",
    "tick_ms",
]

_DETAILED_HEADER = [
    "tick",
    "agents",
    "pair_checks",
    "separation_pairs",
    "neighbor_pairs",
    "avg_speed",
    "min_speed",
    "max_speed",
    "tick_ms",
    "separation_pairs_per_agent",
    "neighbor_pairs_per_agent",
    "tick_ms_per_agent",
    "centroid_x",
    "centroid_y",
    "polarization",
    "outside_box",
]


def _format_basic_row(metrics: TickMetrics, tick_ms: float) -> list[object]:
    return [
        metrics.tick,
        metrics.agents,
        metrics.pair_checks,
        metrics.separation_pairs,
        metrics.neighbor_pairs,
        f"{metrics.average_speed:.4f}",
        f"{tick_ms:.3f}",
    ]


def _format_detailed_row(world: World, metrics: TickMetrics, tick_ms: float) -> list[object]:
    agents = metrics.agents
    if agents <= 0:
        separation_per_agent = 0.0
        neighbors_per_agent = 0.0
        tick_ms_per_agent = 0.0
        centroid_x = 0.0
        centroid_y = 0.0
        polarization = 0.0
        outside_box = 0
    else:
        separation_per_agent = metrics.separation_pairs / agents
        neighbors_per_agent = metrics.neighbor_pairs / agents
        tick_ms_per_agent = tick_ms / agents

        half = world.config.box_size * 0.5
        sum_x = 0.0
        sum_y = 0.0
        heading_x = 0.0
        heading_y = 0.0
        outside_box = 0
        for position, velocity in zip(world.store.positions, world.store.velocities):
            sum_x += position.x
            sum_y += position.y
            speed = math.hypot(velocity.x, velocity.y)
            if speed > 0.0:
                heading_x += velocity.x / speed
                heading_y += velocity.y / speed
            if abs(position.x) > half or abs(position.y) > half:
                outside_box += 1
        centroid_x = sum_x / agents
        centroid_y = sum_y / agents
        # 1.0 when every agent flies the same way, near 0.0 for random headings.
        polarization = math.hypot(heading_x, heading_y) / agents

    return [
        metrics.tick,
        agents,
        metrics.pair_checks,
        metrics.separation_pairs,
        metrics.neighbor_pairs,
        f"{metrics.average_speed:.4f}",
        f"{metrics.min_speed:.4f}",
        f"{metrics.max_speed:.4f}",
        f"{tick_ms:.3f}",
        f"{separation_per_agent:.4f}",
        f"{neighbors_per_agent:.4f}",
        f"{tick_ms_per_agent:.4f}",
        f"{centroid_x:.4f}",
        f"{centroid_y:.4f}",
        f"{polarization:.4f}",
        outside_box,
    ]


def _percentile(sorted_values: list[float], percentile: float) -> float:
    if not sorted_values:
        return 0.0
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    pos = (len(sorted_values) - 1) * percentile
    low = int(math.floor(pos))
    high = int(math.ceil(pos))
    if low == high:
        return float(sorted_values[low])
    weight = pos - low
    return float(sorted_values[low] + (sorted_values[high] - sorted_values[low]) * weight)


def _summary_stats(values: list[float]) -> dict[str, float]:
    if not values:
        return {"min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p90": 0.0, "p95": 0.0, "p99": 0.0}
    sorted_values = sorted(values)
    return {
        "min": float(sorted_values[0]),
        "max": float(sorted_values[-1]),
        "avg": float(sum(values) / len(values)),
        "p50": _percentile(sorted_values, 0.50),
        "p90": _percentile(sorted_values, 0.90),
        "p95": _percentile(sorted_values, 0.95),
        "p99": _percentile(sorted_values, 0.99),
    }


def run_headless(
    steps: int,
    seed: Optional[int],
    log_path: Optional[Path],
    deterministic_log: bool = False,
    log_format: str = "detailed",
    summary_path: Optional[Path] = None,
    summary_window: int = 5000,
    config_path: Optional[Path] = None,
) -> World:
    config = SimulationConfig.from_yaml(config_path) if config_path else SimulationConfig()
    if seed is not None:
        config.seed = seed
    world = World(config)

    log_mode = log_format.lower().strip()
    if log_mode not in {"basic", "detailed"}:
        raise ValueError(f"Unknown log format: {log_format}")

    logger.info("Running %d ticks with %d agents (seed %d)", steps, len(world.store), config.seed)

    tick_ms_series: list[float] = []
    speed_series: list[float] = []
    neighbor_pairs_series: list[float] = []
    separation_pairs_series: list[float] = []
    max_tick_ms = (-1.0, -1)

    csv_file = Path(log_path).open("w", newline="") if log_path else None
    try:
        writer = None
        if csv_file is not None:
            writer = csv.writer(csv_file)
            writer.writerow(_DETAILED_HEADER if log_mode == "detailed" else _BASIC_HEADER)

        for tick in range(steps):
            metrics = world.step(tick)
            tick_ms = 0.0 if deterministic_log else metrics.tick_duration_ms

            if summary_path:
                tick_ms_series.append(tick_ms)
                speed_series.append(metrics.average_speed)
                neighbor_pairs_series.append(float(metrics.neighbor_pairs))
                separation_pairs_series.append(float(metrics.separation_pairs))
                if tick_ms > max_tick_ms[0]:
                    max_tick_ms = (tick_ms, tick)

            if writer:
                if log_mode == "detailed":
                    writer.writerow(_format_detailed_row(world, metrics, tick_ms))
                else:
                    writer.writerow(_format_basic_row(metrics, tick_ms))
    finally:
        if csv_file is not None:
            csv_file.close()

    if summary_path:
        window = max(1, int(summary_window))
        tail_slice = slice(max(0, len(tick_ms_series) - window), len(tick_ms_series))
        summary = {
            "steps": steps,
            "seed": config.seed,
            "agents": len(world.store),
            "log_format": log_mode,
            "deterministic_log": deterministic_log,
            "tick_ms": _summary_stats(tick_ms_series),
            "average_speed": _summary_stats(speed_series),
            "neighbor_pairs": _summary_stats(neighbor_pairs_series),
            "separation_pairs": _summary_stats(separation_pairs_series),
            "peaks": {
                "tick_ms": {"value": float(max_tick_ms[0]), "tick": max_tick_ms[1]},
            },
            "tail_window": {
                "window": window,
                "tick_ms": _summary_stats(tick_ms_series[tail_slice]),
                "average_speed": _summary_stats(speed_series[tail_slice]),
                "neighbor_pairs": _summary_stats(neighbor_pairs_series[tail_slice]),
            },
        }
        Path(summary_path).write_text(json.dumps(summary, indent=2))
        logger.info("Wrote summary to %s", summary_path)

    return world


def main() -> None:
    parser = argparse.ArgumentParser(description="Headless boid flock simulation")
    parser.add_argument("--steps", type=int, default=3000)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--config", type=Path, default=None, help="YAML file with simulation settings")
    parser.add_argument("--log", type=Path, default=None, help="CSV file to write metrics")
    parser.add_argument(
        "--log-format",
        choices=["basic", "detailed"],
        default="detailed",
        help="CSV format to write when --log is provided.",
    )
    parser.add_argument(
        "--summary",
        type=Path,
        default=None,
        help="Optional JSON file to write summary stats for the run.",
    )
    parser.add_argument(
        "--summary-window",
        type=int,
        default=5000,
        help="Tail window size (ticks) for summary stats.",
    )
    parser.add_argument(
        "--deterministic-log",
        action="store_true",
        help="Write deterministic CSV (tick_ms is forced to 0.000 so identical seeds match).",
    )
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args()
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    run_headless(
        args.steps,
        args.seed,
        args.log,
        deterministic_log=args.deterministic_log,
        log_format=args.log_format,
        summary_path=args.summary,
        summary_window=args.summary_window,
        config_path=args.config,
    )


if __name__ == "__main__":
    main()
