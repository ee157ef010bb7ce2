import pytest
from pydantic import ValidationError

from ai_engine.hardware_profiles import HardwareProfileRegistry, infer_hardware_type
from ai_engine.schemas import StratumConnection
from ai_engine.telemetry_store import DeviceTelemetryStore, counter_delta
from ai_engine.utils.validation import UnknownDeviceError


def test_register_applies_defaults(clock):
    store = DeviceTelemetryStore(clock=clock)
    assert store.register("cpu-node-1") is True

    state = store.get_state("cpu-node-1")
    connection = store.get_connection("cpu-node-1")
    assert state.algorithm == "randomx"
    assert state.hashrate == 0.0
    assert state.difficulty == 1000.0
    assert state.efficiency == 0.75
    assert state.shares == 0
    assert state.last_share_time == clock.now
    assert connection.pool == "default"
    assert connection.worker == "cpu-node-1"
    assert connection.difficulty == 1000.0
    assert connection.last_share == clock.now


def test_register_uses_device_info(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("gpu-rig-1", {"algorithm": "ethash", "hashrate": 95.5, "difficulty": 4000,
                                 "pool": "stratum+tcp://pool.example.com:3333", "worker": "rig01"})

    state = store.get_state("gpu-rig-1")
    connection = store.get_connection("gpu-rig-1")
    assert state.algorithm == "ethash"
    assert state.hashrate == 95.5
    assert connection.worker == "rig01"
    assert connection.algorithm == "ethash"
    assert connection.difficulty == 4000


def test_share_delta_added_to_connection(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("asic-1")

    # Counters move on the miner without new shares: connection untouched
    store.update("asic-1", {"accepted": 90})
    clock.advance(30)
    store.update("asic-1", {"shares": 100})
    assert store.get_connection("asic-1").accepted == 0

    share_time = clock.advance(60)
    state = store.update("asic-1", {"shares": 105, "accepted": 94, "rejected": 1})

    connection = store.get_connection("asic-1")
    assert connection.accepted == 4
    assert connection.rejected == 1
    assert connection.last_share == share_time
    assert state.accepted == 94
    assert state.last_share_time == share_time


def test_miner_counter_reset_starts_new_baseline(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("asic-1")
    store.update("asic-1", {"shares": 50, "accepted": 48, "rejected": 2})
    assert store.get_connection("asic-1").accepted == 48

    # Miner restarted: its counters begin again from zero
    clock.advance(60)
    store.update("asic-1", {"shares": 60, "accepted": 5, "rejected": 0})

    connection = store.get_connection("asic-1")
    assert connection.accepted == 53
    assert connection.rejected == 2

    clock.advance(60)
    store.update("asic-1", {"shares": 70, "accepted": 9})
    assert store.get_connection("asic-1").accepted == 57


def test_counter_delta():
    assert counter_delta(10, 14) == 4
    assert counter_delta(10, 10) == 0
    assert counter_delta(10, 3) == 3
    assert counter_delta(10, 0) == 0


def test_stratum_counters_cannot_be_negative(clock):
    with pytest.raises(ValidationError):
        StratumConnection(worker="asic-1", accepted=-1, last_share=clock.now)


def test_update_without_new_shares_keeps_last_share(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("asic-1")
    registered_at = clock.now

    clock.advance(120)
    store.update("asic-1", {"hashrate": 12.5, "shares": 0})

    assert store.get_state("asic-1").hashrate == 12.5
    assert store.get_connection("asic-1").last_share == registered_at


def test_difficulty_and_algorithm_mirrored(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("gpu-rig-1")
    store.update("gpu-rig-1", {"difficulty": 250000, "algorithm": "kawpow"})

    connection = store.get_connection("gpu-rig-1")
    assert connection.difficulty == 250000
    assert connection.algorithm == "kawpow"


def test_unknown_device_update_creates_nothing(clock):
    store = DeviceTelemetryStore(clock=clock)
    with pytest.raises(UnknownDeviceError) as excinfo:
        store.update("ghost-device", {"hashrate": 10})

    assert excinfo.value.device_id == "ghost-device"
    assert "ghost-device" not in store
    assert store.get_state("ghost-device") is None
    assert len(store) == 0


def test_update_rejects_unknown_fields(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("cpu-node-1")
    with pytest.raises(ValidationError):
        store.update("cpu-node-1", {"fan_speed": 70})
    with pytest.raises(ValidationError):
        store.update("cpu-node-1", {"efficiency": 1.5})


def test_readers_get_copies(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("cpu-node-1")

    state = store.get_state("cpu-node-1")
    state.hashrate = 999.0
    assert store.get_state("cpu-node-1").hashrate == 0.0


def test_unregister(clock):
    store = DeviceTelemetryStore(clock=clock)
    store.register("cpu-node-1")
    assert store.unregister("cpu-node-1") is True
    assert store.device_ids() == []
    with pytest.raises(UnknownDeviceError):
        store.unregister("cpu-node-1")


def test_to_frame(clock):
    store = DeviceTelemetryStore(clock=clock)
    assert store.to_frame().empty

    store.register("cpu-node-1")
    store.register("gpu-rig-1", {"hashrate": 50.0})
    frame = store.to_frame()

    assert len(frame) == 2
    assert {"device_id", "hashrate", "shares", "stratum_pool", "stratum_last_share"} <= set(frame.columns)
    assert frame.set_index("device_id").loc["gpu-rig-1", "hashrate"] == 50.0


def test_infer_hardware_type():
    assert infer_hardware_type("GPU-rig-7") == "gpu"
    assert infer_hardware_type("antminer-asic-s19") == "asic"
    assert infer_hardware_type("unidentifiable-123") == "cpu"


def test_registry_resolution():
    gpu = {"type": "gpu", "model": "A", "cores": 2048, "memory_mb": 8192,
           "clock_ghz": 1.5, "power_draw_w": 150, "efficiency": 0.85}
    registry = HardwareProfileRegistry([gpu])

    assert registry.add(dict(gpu, cores=1)) == "gpu-A"
    assert registry.get("gpu-A").cores == 2048
    assert len(registry) == 1

    assert registry.resolve("gpu-A").model == "A"
    assert registry.resolve("my-gpu-box").model == "A"
    assert registry.resolve("unidentifiable-123") is None
