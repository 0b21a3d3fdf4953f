import csv
import json

import pytest

from boidsim.headless import run_headless


def _read_csv(path):
    with path.open(newline="") as handle:
        return list(csv.reader(handle))


def test_headless_basic_log_header(tmp_path):
    log_path = tmp_path / "basic.csv"
    run_headless(steps=2, seed=1, log_path=log_path, deterministic_log=True, log_format="basic")
    rows = _read_csv(log_path)
    assert len(rows) == 3
    assert rows[0] == [
        "tick",
        "agents",
        "pair_checks",
        "separation_pairs",
        "neighbor_pairs",
        "avg_speed",
        "tick_ms",
    ]
    assert rows[1][-1] == "0.000"


def test_headless_detailed_log_ratios(tmp_path):
    log_path = tmp_path / "detailed.csv"
    world = run_headless(steps=3, seed=2, log_path=log_path, deterministic_log=True, log_format="detailed")
    rows = _read_csv(log_path)
    assert len(rows) == 4
    header = rows[0]
    idx = {name: i for i, name in enumerate(header)}

    first_row = rows[1]
    agents = int(first_row[idx["agents"]])
    pair_checks = int(first_row[idx["pair_checks"]])
    separation_pairs = int(first_row[idx["separation_pairs"]])
    neighbor_pairs = int(first_row[idx["neighbor_pairs"]])

    assert agents == len(world.store)
    assert pair_checks == agents * (agents - 1) // 2
    assert float(first_row[idx["separation_pairs_per_agent"]]) == pytest.approx(separation_pairs / agents, abs=1e-4)
    assert float(first_row[idx["neighbor_pairs_per_agent"]]) == pytest.approx(neighbor_pairs / agents, abs=1e-4)
    assert 0.0 <= float(first_row[idx["polarization"]]) <= 1.0
    assert float(first_row[idx["tick_ms"]]) == 0.0
    min_speed = float(first_row[idx["min_speed"]])
    max_speed = float(first_row[idx["max_speed"]])
    assert world.config.min_speed - 1e-3 <= min_speed <= max_speed <= world.config.max_speed + 1e-3


def test_identical_seeds_write_identical_logs(tmp_path):
    first = tmp_path / "a.csv"
    second = tmp_path / "b.csv"
    run_headless(steps=5, seed=11, log_path=first, deterministic_log=True)
    run_headless(steps=5, seed=11, log_path=second, deterministic_log=True)
    assert first.read_text() == second.read_text()


def test_headless_summary_output(tmp_path):
    summary_path = tmp_path / "summary.json"
    run_headless(
        steps=4,
        seed=3,
        log_path=None,
        deterministic_log=True,
        log_format="basic",
        summary_path=summary_path,
        summary_window=2,
    )
    payload = json.loads(summary_path.read_text())
    assert payload["steps"] == 4
    assert payload["seed"] == 3
    assert payload["log_format"] == "basic"
    assert payload["tick_ms"]["max"] == 0.0
    assert "average_speed" in payload
    assert "neighbor_pairs" in payload
    assert payload["tail_window"]["window"] == 2


def test_headless_reads_yaml_config(tmp_path):
    config_path = tmp_path / "small.yaml"
    config_path.write_text("simulation:\n  agent_count: 5\n  boundary_mode: wrap\n")
    world = run_headless(steps=1, seed=None, log_path=None, config_path=config_path)
    assert len(world.store) == 5
    assert world.config.boundary_mode.value == "wrap"


def test_headless_rejects_unknown_log_format():
    with pytest.raises(ValueError):
        run_headless(steps=1, seed=1, log_path=None, log_format="verbose")
