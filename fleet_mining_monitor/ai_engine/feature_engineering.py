"""
Feature engineering for the mining performance network.

Turns hardware profiles and live device telemetry into normalized
10-feature vectors, and synthesizes labeled training sets either from the
hardware catalog (bootstrap) or from telemetry plus past optimization
results (continual learning).
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from ai_engine.hardware_profiles import HardwareProfileRegistry
from ai_engine.schemas import HardwareProfile, MiningState, OptimizationResult, StratumConnection
from ai_engine.utils.constants import (
    ALGORITHM_SUITABILITY,
    DEFAULT_LATENCY_FACTOR,
    DEFAULT_SUITABILITY,
    DIFFICULTY_SCALE,
    INPUT_SIZE,
    LATENCY_WINDOW_SECONDS,
    MAX_CLOCK_GHZ,
    MAX_CORES,
    MAX_MEMORY_MB,
    MAX_POWER_W,
    OUTPUT_SCALE,
    OUTPUT_SIZE,
    TYPE_MULTIPLIER,
)
from ai_engine.config import DEVICE_DEFAULTS
from ai_engine.utils.logging_config import logger
from ai_engine.utils.validation import InsufficientTrainingDataError

TrainingSet = Tuple[np.ndarray, np.ndarray]


def algorithm_suitability(algorithm: str, hardware_type: str) -> float:
    """Suitability of an algorithm for a hardware type (0-1), 0.5 if unknown."""
    return ALGORITHM_SUITABILITY.get(algorithm, {}).get(hardware_type, DEFAULT_SUITABILITY)


def build_feature_vector(profile: HardwareProfile, difficulty_factor: float,
                         latency_factor: float, suitability: float) -> np.ndarray:
    """
    Build the normalized model input for a hardware profile.

    Layout: [is_cpu, is_gpu, is_asic, cores, memory, clock, power,
    difficulty, latency, algorithm suitability].
    """
    return np.array([
        1.0 if profile.type == "cpu" else 0.0,
        1.0 if profile.type == "gpu" else 0.0,
        1.0 if profile.type == "asic" else 0.0,
        profile.cores / MAX_CORES,
        profile.memory_mb / MAX_MEMORY_MB,
        profile.clock_ghz / MAX_CLOCK_GHZ,
        profile.power_draw_w / MAX_POWER_W,
        difficulty_factor,
        latency_factor,
        suitability
    ])


class FeatureEngineeringPipeline:
    """
    Builds feature vectors from live device telemetry.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None):
        self._clock = clock or datetime.now

    def difficulty_factor(self, connection: Optional[StratumConnection]) -> float:
        """Stratum difficulty scaled into [0, 1]."""
        difficulty = connection.difficulty if connection is not None else DEVICE_DEFAULTS["difficulty"]
        return float(min(max(difficulty / DIFFICULTY_SCALE, 0.0), 1.0))

    def latency_factor(self, connection: Optional[StratumConnection]) -> float:
        """
        Network latency factor (0-1), higher is better.

        Derived from the time since the pool last accepted a share.
        """
        if connection is None:
            return DEFAULT_LATENCY_FACTOR

        seconds_since_share = (self._clock() - connection.last_share).total_seconds()
        return float(min(max(1.0 - seconds_since_share / LATENCY_WINDOW_SECONDS, 0.0), 1.0))

    def device_features(self, state: MiningState, connection: Optional[StratumConnection],
                        profile: HardwareProfile) -> np.ndarray:
        """Feature vector for a registered device."""
        return build_feature_vector(
            profile,
            self.difficulty_factor(connection),
            self.latency_factor(connection),
            algorithm_suitability(state.algorithm, profile.type)
        )


class TrainingDataSynthesizer:
    """
    Generate labeled training examples for the mining performance network.
    """

    def __init__(self, registry: HardwareProfileRegistry,
                 pipeline: Optional[FeatureEngineeringPipeline] = None,
                 random_state: Union[None, int, np.random.Generator] = None):
        """
        Initialize the synthesizer.

        Args:
            registry: Hardware profiles to sample from
            pipeline: Feature pipeline used for live telemetry
            random_state: Seed or numpy Generator for synthetic sampling
        """
        self.registry = registry
        self.pipeline = pipeline or FeatureEngineeringPipeline()
        self.rng = np.random.default_rng(random_state)

    def generate_synthetic(self, count: int) -> TrainingSet:
        """
        Generate bootstrap examples from the hardware catalog.

        Targets come from closed-form heuristics on the sampled profile and
        random difficulty, latency and algorithm suitability factors.

        Args:
            count: Number of examples

        Returns:
            Tuple of (inputs, expected_outputs) arrays

        Raises:
            InsufficientTrainingDataError: If the registry is empty
        """
        profiles = self.registry.profiles()
        if not profiles:
            raise InsufficientTrainingDataError("No hardware profiles available for synthetic data")

        inputs = np.empty((count, INPUT_SIZE))
        outputs = np.empty((count, OUTPUT_SIZE))

        for i in range(count):
            profile = profiles[int(self.rng.integers(len(profiles)))]
            difficulty, latency, suitability = self.rng.random(3)

            hashrate_factor = (
                TYPE_MULTIPLIER[profile.type]
                * (profile.cores / 1000)
                * profile.clock_ghz
                * suitability
            )
            efficiency_factor = profile.efficiency * (1 - latency) * (1 - difficulty * 0.2)
            power_optimization_factor = 0.5 + self.rng.random() * 0.5
            reward_factor = hashrate_factor * efficiency_factor * (1 - difficulty * 0.1)

            inputs[i] = build_feature_vector(profile, difficulty, latency, suitability)
            outputs[i] = [
                min(hashrate_factor / OUTPUT_SCALE, 1.0),
                efficiency_factor,
                power_optimization_factor,
                min(reward_factor / OUTPUT_SCALE, 1.0)
            ]

        logger.info(f"Generated {count} synthetic training examples from {len(profiles)} hardware profiles")
        return inputs, outputs

    def generate_from_history(self, devices: Dict[str, Tuple[MiningState, Optional[StratumConnection]]],
                              history: Sequence[OptimizationResult]) -> TrainingSet:
        """
        Build training examples from live telemetry and optimization history.

        Observed hashrate and efficiency label the first two outputs. Power
        optimization and reward have no ground truth, so the most recent
        usable optimization in the history, whichever device produced it,
        is carried forward as a weak label for every device.

        Args:
            devices: Snapshot of device_id -> (state, connection)
            history: Optimization results, oldest first

        Returns:
            Tuple of (inputs, expected_outputs); empty arrays if no device
            qualifies
        """
        usable = [
            result for result in history
            if result.hashrate_prediction > 0 and result.efficiency_prediction > 0
        ]
        inputs: List[np.ndarray] = []
        outputs: List[List[float]] = []

        if usable:
            latest = usable[-1]

            for device_id, (state, connection) in devices.items():
                profile = self.registry.resolve(device_id)
                if profile is None:
                    logger.debug(f"Skipping {device_id} for training: no matching hardware profile")
                    continue

                inputs.append(self.pipeline.device_features(state, connection, profile))
                outputs.append([
                    min(state.hashrate / OUTPUT_SCALE, 1.0),
                    state.efficiency,
                    latest.power_optimization,
                    min(latest.reward_prediction / OUTPUT_SCALE, 1.0)
                ])

        if not inputs:
            return np.empty((0, INPUT_SIZE)), np.empty((0, OUTPUT_SIZE))

        logger.info(f"Built {len(inputs)} training examples from device telemetry")
        return np.vstack(inputs), np.array(outputs)
