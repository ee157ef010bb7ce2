import os
import tempfile
from datetime import datetime, timedelta

import pytest

# Keep logs and saved networks out of the source tree
os.environ.setdefault("FLEET_MINING_LOG_DIR", tempfile.mkdtemp(prefix="fleet-mining-logs-"))
os.environ.setdefault("FLEET_MINING_MODEL_DIR", tempfile.mkdtemp(prefix="fleet-mining-models-"))


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, start=datetime(2025, 5, 20, 12, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def fast_config():
    return {
        "bootstrap_examples": 20,
        "bootstrap_epochs": 5,
        "self_improvement_epochs": 3,
        "optimization_interval_seconds": 3600,
        "self_improvement_interval_seconds": 3600,
    }


@pytest.fixture
def clock_factory():
    return FakeClock
