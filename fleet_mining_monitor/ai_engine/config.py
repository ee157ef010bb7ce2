"""
Configuration settings for the AI mining engine.
"""

import os

from ai_engine.utils.constants import MODEL_DIR

# Engine configuration
ENGINE_CONFIG = {
    # Neural network training
    "learning_rate": 0.01,
    "momentum": 0.9,                           # Reserved, not applied by backpropagation

    # Scheduler periods
    "optimization_interval_seconds": 1800,     # Every 30 minutes
    "self_improvement_interval_seconds": 3600, # Every hour

    # Bootstrap training on synthetic data
    "bootstrap_examples": 1000,
    "bootstrap_epochs": 500,

    # Continual learning from telemetry
    "self_improvement_epochs": 100,
    "min_history": 10,                         # Optimization results required before retraining
    "self_improvement_enabled": True,

    # Bounded histories
    "history_size": 100,
    "accuracy_history_size": 10,

    # Optional joblib snapshot to warm-start from instead of bootstrap training
    "model_path": None,

    # Hardware archetypes registered on initialize()
    "hardware_profiles": [
        {
            "type": "cpu",
            "model": "Generic x86 CPU",
            "cores": 8,
            "memory_mb": 16384,
            "clock_ghz": 3.5,
            "power_draw_w": 65,
            "efficiency": 0.75
        },
        {
            "type": "gpu",
            "model": "Generic CUDA GPU",
            "cores": 2048,
            "memory_mb": 8192,
            "clock_ghz": 1.5,
            "power_draw_w": 150,
            "efficiency": 0.85
        },
        {
            "type": "asic",
            "model": "Generic ASIC Miner",
            "cores": 1,
            "memory_mb": 0,
            "clock_ghz": 0.0,
            "power_draw_w": 1200,
            "efficiency": 0.95
        }
    ]
}

# Device registration defaults
DEVICE_DEFAULTS = {
    "algorithm": "randomx",
    "hashrate": 0.0,
    "difficulty": 1000.0,
    "temperature": 50.0,
    "power": 100.0,
    "efficiency": 0.75,
    "pool": "default"
}

# API configuration
API_CONFIG = {
    "host": os.environ.get("FLEET_MINING_API_HOST", "0.0.0.0"),
    "port": int(os.environ.get("FLEET_MINING_API_PORT", "8000")),
    "reload": False
}

# Reporting sink (cloud miner) configuration
CLOUD_MINER_CONFIG = {
    "base_url": os.environ.get("CLOUD_MINER_URL"),
    "timeout": 10,
    "max_retries": 3
}
