"""
Constants and lookup tables shared across the AI mining engine.
"""

import os
from pathlib import Path

# Base paths
BASE_DIR = Path(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
MODEL_DIR = Path(os.environ.get("FLEET_MINING_MODEL_DIR", BASE_DIR / "models" / "saved"))

# Ensure directories exist
os.makedirs(MODEL_DIR, exist_ok=True)

# Network topology
INPUT_SIZE = 10
OUTPUT_SIZE = 4
LAYER_SIZES = [(10, 16, "relu"), (16, 8, "relu"), (8, 4, "sigmoid")]

HARDWARE_TYPES = ("cpu", "gpu", "asic")

# Feature normalization divisors
MAX_CORES = 2048
MAX_MEMORY_MB = 16384
MAX_CLOCK_GHZ = 4.0
MAX_POWER_W = 1500
DIFFICULTY_SCALE = 1_000_000

# Outputs 0 (hashrate) and 3 (reward) are scaled into [0, 1] by this factor
OUTPUT_SCALE = 1000

# Seconds without a share after which the latency factor reaches 0
LATENCY_WINDOW_SECONDS = 600

DEFAULT_LATENCY_FACTOR = 0.5
DEFAULT_SUITABILITY = 0.5

# Bootstrap hashrate multiplier per hardware type
TYPE_MULTIPLIER = {
    "asic": 1000,
    "gpu": 100,
    "cpu": 10,
}

# Candidate algorithms per hardware type, most specialized last
ALGORITHM_CANDIDATES = {
    "cpu": ["randomx", "cryptonight", "yescrypt"],
    "gpu": ["ethash", "kawpow", "etchash"],
    "asic": ["sha256", "scrypt", "x11"],
}

# Algorithm suitability per hardware type (0-1)
ALGORITHM_SUITABILITY = {
    "randomx": {"cpu": 0.9, "gpu": 0.4, "asic": 0.1},
    "cryptonight": {"cpu": 0.8, "gpu": 0.6, "asic": 0.2},
    "yescrypt": {"cpu": 0.9, "gpu": 0.3, "asic": 0.1},
    "ethash": {"cpu": 0.1, "gpu": 0.9, "asic": 0.5},
    "kawpow": {"cpu": 0.2, "gpu": 0.9, "asic": 0.3},
    "etchash": {"cpu": 0.1, "gpu": 0.8, "asic": 0.4},
    "sha256": {"cpu": 0.2, "gpu": 0.4, "asic": 1.0},
    "scrypt": {"cpu": 0.3, "gpu": 0.5, "asic": 0.9},
    "x11": {"cpu": 0.4, "gpu": 0.6, "asic": 0.8},
}

# Event names
EVENT_STARTED = "started"
EVENT_STOPPED = "stopped"
EVENT_OPTIMIZATION = "optimization"
EVENT_SELF_IMPROVEMENT = "self-improvement"
EVENTS = (EVENT_STARTED, EVENT_STOPPED, EVENT_OPTIMIZATION, EVENT_SELF_IMPROVEMENT)
