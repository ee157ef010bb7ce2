"""
Validation utilities and error types for the AI mining engine.
"""

from typing import Any, Dict, List, Optional, Sequence

import numpy as np
from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, model_validator

from ai_engine.schemas import HardwareProfile
from .logging_config import logger


class MiningEngineError(Exception):
    """Base class for AI mining engine errors."""
    pass


class NotInitializedError(MiningEngineError):
    """Raised when an operation requires initialize() to have run."""
    pass


class UnknownDeviceError(MiningEngineError):
    """Raised for updates or reads against an unregistered device id."""

    def __init__(self, device_id: str):
        super().__init__(f"Device {device_id} is not registered")
        self.device_id = device_id


class NoMatchingProfileError(MiningEngineError):
    """Raised when no hardware profile can be resolved for a device."""

    def __init__(self, device_id: str):
        super().__init__(f"No matching hardware profile for device {device_id}")
        self.device_id = device_id


class InsufficientTrainingDataError(MiningEngineError):
    """Raised when there is not enough data to build a training set."""
    pass


class ShapeMismatchError(MiningEngineError):
    """Raised when a vector or weight matrix violates the network topology."""
    pass


class ConfigValidationError(MiningEngineError):
    """Exception raised for engine configuration errors."""
    pass


class EngineSettings(BaseModel):
    """Validation model for the engine configuration."""

    learning_rate: float = Field(..., gt=0.0, le=1.0, description="Backpropagation step size")
    momentum: float = Field(..., ge=0.0, lt=1.0, description="Reserved, not applied")
    optimization_interval_seconds: float = Field(..., gt=0.0)
    self_improvement_interval_seconds: float = Field(..., gt=0.0)
    bootstrap_examples: int = Field(..., ge=1)
    bootstrap_epochs: int = Field(..., ge=0)
    self_improvement_epochs: int = Field(..., ge=1)
    min_history: int = Field(..., ge=1)
    history_size: int = Field(..., ge=1)
    accuracy_history_size: int = Field(..., ge=1)
    self_improvement_enabled: bool = True
    model_path: Optional[str] = None
    hardware_profiles: List[HardwareProfile] = []

    @model_validator(mode="after")
    def check_history_bounds(self):
        """The self-improvement threshold must be reachable."""
        if self.min_history > self.history_size:
            raise ValueError(
                f"min_history ({self.min_history}) cannot exceed history_size ({self.history_size})"
            )
        return self


def validate_engine_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate the engine configuration.

    Args:
        config: Dictionary containing the merged engine configuration

    Returns:
        Validated configuration dictionary; hardware profiles are returned
        as HardwareProfile instances

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        validated = EngineSettings(**config)
    except PydanticValidationError as e:
        logger.error(f"Engine configuration validation error: {str(e)}")
        raise ConfigValidationError(f"Invalid engine configuration: {str(e)}")

    result = validated.model_dump(exclude={"hardware_profiles"})
    result["hardware_profiles"] = list(validated.hardware_profiles)
    return result


def validate_vector(vector: Sequence[float], expected_length: int, name: str = "input") -> np.ndarray:
    """
    Convert a feature or target vector to a float array of a fixed length.

    Raises:
        ShapeMismatchError: If the vector is not one-dimensional with the
            expected length
    """
    array = np.asarray(vector, dtype=float)
    if array.ndim != 1 or array.shape[0] != expected_length:
        raise ShapeMismatchError(
            f"{name} must have length {expected_length}, got shape {array.shape}"
        )
    return array
