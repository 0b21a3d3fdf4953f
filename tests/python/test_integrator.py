from __future__ import annotations

import math

from pygame.math import Vector2
from pytest import approx

from boidsim.sim.core.config import BoundaryMode, SimulationConfig
from boidsim.sim.core.store import AgentStore
from boidsim.sim.systems.integrator import integrate
from boidsim.sim.utils.math2d import _heading_from_velocity


def test_position_advances_by_velocity_times_step():
    config = SimulationConfig(time_step=0.25)
    store = AgentStore.from_states([(Vector2(1, 1), Vector2(4, -8)), (Vector2(0, 0), Vector2(0, 2))])

    integrate(store, config)

    assert store.positions[0] == Vector2(2, -1)
    assert store.positions[1] == Vector2(0, 0.5)
    assert store.velocities[0] == Vector2(4, -8)


def test_heading_is_signed_angle_from_up():
    assert _heading_from_velocity(Vector2(0, 3)) == approx(0.0)
    assert _heading_from_velocity(Vector2(-1, 0)) == approx(math.pi / 2)
    assert _heading_from_velocity(Vector2(1, 0)) == approx(-math.pi / 2)
    assert abs(_heading_from_velocity(Vector2(0, -1))) == approx(math.pi)


def test_heading_persists_when_still():
    config = SimulationConfig(time_step=1.0)
    store = AgentStore.from_states([(Vector2(0, 0), Vector2())])
    store.headings[0] = 1.23

    integrate(store, config)

    assert store.headings[0] == approx(1.23)


def test_wrap_mode_wraps_after_move():
    config = SimulationConfig(time_step=1.0, box_size=10.0, boundary_mode=BoundaryMode.WRAP)
    store = AgentStore.from_states([(Vector2(4, -4), Vector2(2, -2))])

    integrate(store, config)

    assert store.positions[0].x == approx(-4.0)
    assert store.positions[0].y == approx(4.0)
