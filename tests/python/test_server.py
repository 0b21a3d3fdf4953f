from fastapi.testclient import TestClient

from boidsim.app.server import SimulationController, create_app
from boidsim.sim.core.config import SimulationConfig


def _client(**overrides):
    config = SimulationConfig(agent_count=overrides.pop("agent_count", 4), seed=overrides.pop("seed", 5), **overrides)
    controller = SimulationController(config)
    return controller, TestClient(create_app(controller, autostart=False))


def test_status_reports_world_state():
    controller, client = _client()
    response = client.get("/api/status")
    assert response.status_code == 200
    body = response.json()
    assert body["running"] is False
    assert body["tick"] == 0
    assert body["agents"] == 4
    assert body["seed"] == 5
    assert body["metrics"] is None


def test_config_update_is_staged_and_validated():
    controller, client = _client()

    response = client.put("/api/config", json={"coeff_alignment": 0.25, "boundary_mode": "wrap"})
    assert response.status_code == 200
    assert response.json()["pending"]["coeff_alignment"] == 0.25
    assert controller.world.config.coeff_alignment == 0.005

    body = client.get("/api/config").json()
    assert body["active"]["boundary_mode"] == "margin"
    assert body["pending"]["boundary_mode"] == "wrap"

    controller.world.step()
    assert controller.world.config.coeff_alignment == 0.25


def test_invalid_config_update_is_rejected():
    controller, client = _client()
    active = controller.world.config

    response = client.put("/api/config", json={"separation_radius": 10.0})
    assert response.status_code == 400
    assert "separation_radius" in response.json()["detail"]

    response = client.put("/api/config", json={"flock_size": 10})
    assert response.status_code == 400

    assert controller.world.pending_config is None
    assert controller.world.config is active


def test_restart_with_seed_and_start_stop():
    controller, client = _client()

    assert client.post("/api/control/start").json() == {"running": True}
    assert controller.running is True
    assert client.post("/api/control/stop").json() == {"running": False}

    response = client.post("/api/control/restart", json={"seed": 99})
    assert response.status_code == 200
    assert response.json()["seed"] == 99
    assert controller.world.seed == 99

    assert client.post("/api/control/restart", json={"seed": "abc"}).status_code == 400


def test_attractor_endpoint_sets_and_clears_target():
    controller, client = _client()

    response = client.post("/api/attractor", json={"x": 3.0, "y": -4.0})
    assert response.status_code == 200
    assert response.json() == {"attractor": {"x": 3.0, "y": -4.0}}
    controller.world.step()
    assert tuple(controller.world.attractor) == (3.0, -4.0)

    assert client.post("/api/attractor", json={"x": "left"}).status_code == 400

    client.post("/api/attractor")
    controller.world.step()
    assert controller.world.attractor is None


def test_speed_multiplier_is_clamped():
    controller, client = _client()
    assert client.post("/api/control/speed", json={"multiplier": 50}).json() == {"multiplier": 5.0}
    assert controller.speed_multiplier == 5.0


def test_non_numeric_config_value_is_rejected_before_staging():
    controller, client = _client()

    response = client.put("/api/config", json={"coeff_cohesion": "fast"})
    assert response.status_code == 400
    assert "coeff_cohesion" in response.json()["detail"]

    assert controller.world.pending_config is None
    controller.world.step()
    assert controller.tick == 1


def test_non_finite_attractor_is_rejected():
    controller, client = _client()

    response = client.post("/api/attractor", json={"x": "nan", "y": 0})
    assert response.status_code == 400
    assert client.post("/api/attractor", json={"x": 0, "y": "inf"}).status_code == 400

    controller.world.step()
    assert controller.world.attractor is None
