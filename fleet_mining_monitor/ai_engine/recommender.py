"""
Recommendation generation logic that converts network outputs into device settings.
"""

import math
from datetime import datetime
from typing import Sequence

from ai_engine.schemas import HardwareProfile, OptimizationResult, RecommendedSettings
from ai_engine.utils.constants import ALGORITHM_CANDIDATES, OUTPUT_SCALE
from ai_engine.utils.validation import ShapeMismatchError


class RecommendationEngine:
    """
    Deterministic post-processing of network output into mining settings.

    The network output is ``[hashrate, efficiency, power_optimization,
    reward]``, each in [0, 1].
    """

    max_gpu_asic_threads = 32
    max_intensity = 20

    def calculate_recommended_threads(self, profile: HardwareProfile, output: Sequence[float]) -> int:
        """Thread count scaled by predicted efficiency."""
        if profile.type == "cpu":
            base_threads = profile.cores
        elif profile.type == "gpu":
            base_threads = math.ceil(profile.cores / 64)
        else:
            base_threads = 1

        efficiency_factor = 0.5 + output[1] * 0.5
        upper = profile.cores if profile.type == "cpu" else self.max_gpu_asic_threads
        return max(1, min(math.floor(base_threads * efficiency_factor), upper))

    def calculate_intensity(self, output: Sequence[float]) -> int:
        """Intensity 1-20 from predicted efficiency."""
        return min(math.floor(output[1] * self.max_intensity) + 1, self.max_intensity)

    def calculate_memory_usage(self, output: Sequence[float]) -> int:
        """Memory budget as a percentage from predicted hashrate."""
        return min(max(math.floor(output[0] * 100), 0), 100)

    def select_best_algorithm(self, profile: HardwareProfile, output: Sequence[float]) -> str:
        """
        Pick an algorithm for the hardware type.

        Higher predicted reward favors the later, more specialized candidates.
        """
        candidates = ALGORITHM_CANDIDATES.get(profile.type, ALGORITHM_CANDIDATES["cpu"])
        index = min(max(math.floor(output[3] * len(candidates)), 0), len(candidates) - 1)
        return candidates[index]

    def recommend_settings(self, profile: HardwareProfile, output: Sequence[float]) -> RecommendedSettings:
        if len(output) != 4:
            raise ShapeMismatchError(f"Network output must have length 4, got {len(output)}")

        return RecommendedSettings(
            threads=self.calculate_recommended_threads(profile, output),
            intensity=self.calculate_intensity(output),
            memory_usage_percent=self.calculate_memory_usage(output),
            algorithm=self.select_best_algorithm(profile, output)
        )

    def build_optimization_result(self, device_id: str, profile: HardwareProfile,
                                  output: Sequence[float], accuracy: float,
                                  timestamp: datetime) -> OptimizationResult:
        """
        Convert a network output into an OptimizationResult.

        Hashrate and reward are denormalized; efficiency and power stay in
        [0, 1]. Confidence is the model's current fit accuracy.

        Args:
            device_id: Device the prediction belongs to
            profile: Hardware profile the features were built from
            output: Output layer activation
            accuracy: Current model accuracy
            timestamp: Time of the prediction

        Returns:
            OptimizationResult for the device
        """
        output = [float(value) for value in output]
        settings = self.recommend_settings(profile, output)

        return OptimizationResult(
            device_id=device_id,
            timestamp=timestamp,
            hashrate_prediction=output[0] * OUTPUT_SCALE,
            efficiency_prediction=output[1],
            power_optimization=output[2],
            reward_prediction=output[3] * OUTPUT_SCALE,
            confidence=min(max(float(accuracy), 0.0), 1.0),
            recommended_settings=settings
        )
