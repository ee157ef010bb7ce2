import pytest
from fastapi.testclient import TestClient

from ai_engine.api import app, get_engine
from ai_engine.core import AIMiningCore


@pytest.fixture
def engine(fast_config, clock):
    core = AIMiningCore(config=fast_config, random_state=21, clock=clock)
    core.initialize()
    yield core
    core.stop()


@pytest.fixture
def client(engine):
    app.dependency_overrides[get_engine] = lambda: engine
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def test_root_and_health(client):
    assert client.get("/").json()["message"] == "Fleet Mining AI Engine API"
    assert client.get("/health").json()["status"] == "healthy"


def test_status(client):
    response = client.get("/status")
    assert response.status_code == 200
    body = response.json()
    assert body["initialized"] is True
    assert body["model_layers"] == 3
    assert body["device_count"] == 0
    assert body["last_optimization_time"] is None


def test_register_and_list_devices(client):
    response = client.post("/devices", json={"device_id": "gpu-rig-1", "device_info": {"hashrate": 95.5}})
    assert response.status_code == 201
    client.post("/devices", json={"device_id": "asic-1"})

    body = client.get("/devices").json()
    assert body["count"] == 2
    rows = {row["device_id"]: row for row in body["devices"]}
    assert rows["gpu-rig-1"]["hashrate"] == 95.5
    assert rows["asic-1"]["stratum_worker"] == "asic-1"


def test_update_state(client):
    client.post("/devices", json={"device_id": "asic-1"})

    response = client.patch("/devices/asic-1/state", json={"shares": 10, "accepted": 9, "hashrate": 1100.0})
    assert response.status_code == 200
    assert response.json()["state"]["hashrate"] == 1100.0

    assert client.patch("/devices/ghost-device/state", json={"hashrate": 10}).status_code == 404
    assert client.patch("/devices/asic-1/state", json={"fan_speed": 70}).status_code == 422
    assert client.patch("/devices/asic-1/state", json={"efficiency": 2.0}).status_code == 422


def test_device_optimization(client):
    assert client.get("/devices/gpu-rig-1/optimization").status_code == 404

    client.post("/devices", json={"device_id": "gpu-rig-1"})
    response = client.get("/devices/gpu-rig-1/optimization")

    assert response.status_code == 200
    body = response.json()
    assert body["device_id"] == "gpu-rig-1"
    assert 1 <= body["recommended_settings"]["intensity"] <= 20
    assert client.get("/optimizations/history").json() == []


def test_manual_cycles(client):
    client.post("/devices", json={"device_id": "gpu-rig-1", "device_info": {"hashrate": 80.0}})

    results = client.post("/engine/optimize").json()
    assert [r["device_id"] for r in results] == ["gpu-rig-1"]
    assert len(client.get("/optimizations/history").json()) == 1

    body = client.post("/engine/self-improve").json()
    assert body == {"improved": False, "results": None}


def test_unregister_device(client):
    client.post("/devices", json={"device_id": "cpu-node-1"})
    assert client.delete("/devices/cpu-node-1").status_code == 200
    assert client.delete("/devices/cpu-node-1").status_code == 404


def test_engine_start_stop(client):
    assert client.post("/engine/start").json() == {"running": True}
    assert client.get("/status").json()["running"] is True
    assert client.post("/engine/stop").json() == {"running": False}


def test_engine_requires_initialize(fast_config, clock):
    core = AIMiningCore(config=fast_config, random_state=21, clock=clock)
    app.dependency_overrides[get_engine] = lambda: core
    try:
        with TestClient(app) as test_client:
            assert test_client.post("/engine/start").status_code == 409
            assert test_client.post("/engine/stop").status_code == 409
            assert test_client.post("/engine/optimize").status_code == 409
            assert test_client.get("/status").json()["initialized"] is False
    finally:
        app.dependency_overrides.clear()
