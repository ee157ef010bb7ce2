"""
Data schemas for the AI mining engine.

This module defines Pydantic models for hardware profiles, per-device
telemetry and the optimization results produced by the engine.
"""

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

HardwareType = Literal["cpu", "gpu", "asic"]


class HardwareProfile(BaseModel):
    """Normalized description of a device archetype."""
    model_config = ConfigDict(frozen=True)

    type: HardwareType
    model: str
    cores: int = Field(..., ge=0)
    memory_mb: int = Field(..., ge=0)
    clock_ghz: float = Field(..., ge=0.0)
    power_draw_w: float = Field(..., ge=0.0)
    efficiency: float = Field(..., ge=0.0, le=1.0)

    @property
    def profile_id(self) -> str:
        return f"{self.type}-{self.model}"


class DeviceInfo(BaseModel):
    """Registration payload for a mining device."""
    algorithm: Optional[str] = None
    hashrate: Optional[float] = Field(None, ge=0.0)
    difficulty: Optional[float] = None
    temperature: Optional[float] = None
    power: Optional[float] = None
    efficiency: Optional[float] = Field(None, ge=0.0, le=1.0)
    pool: Optional[str] = None
    worker: Optional[str] = None


class MiningState(BaseModel):
    """Current mining counters for one device."""
    algorithm: str = "randomx"
    hashrate: float = Field(0.0, ge=0.0)
    shares: int = 0
    accepted: int = 0
    rejected: int = 0
    difficulty: float = 1000.0
    last_share_time: datetime
    uptime_seconds: int = 0
    temperature_c: float = 50.0
    power_w: float = 100.0
    efficiency: float = Field(0.75, ge=0.0, le=1.0)


class MiningStateUpdate(BaseModel):
    """
    Partial update for a MiningState.

    Only the fields explicitly set by the caller are merged into the stored
    state. Unknown fields are rejected.
    """
    model_config = ConfigDict(extra="forbid")

    algorithm: Optional[str] = None
    hashrate: Optional[float] = Field(None, ge=0.0)
    shares: Optional[int] = Field(None, ge=0)
    accepted: Optional[int] = Field(None, ge=0)
    rejected: Optional[int] = Field(None, ge=0)
    difficulty: Optional[float] = None
    last_share_time: Optional[datetime] = None
    uptime_seconds: Optional[int] = Field(None, ge=0)
    temperature_c: Optional[float] = None
    power_w: Optional[float] = None
    efficiency: Optional[float] = Field(None, ge=0.0, le=1.0)


class StratumConnection(BaseModel):
    """Pool-session bookkeeping for one device."""
    pool: str = "default"
    worker: str
    algorithm: str = "randomx"
    difficulty: float = 1000.0
    accepted: int = Field(0, ge=0)
    rejected: int = Field(0, ge=0)
    last_share: datetime


class RecommendedSettings(BaseModel):
    """Concrete device settings derived from the network output."""
    threads: int = Field(..., ge=1)
    intensity: int = Field(..., ge=1, le=20)
    memory_usage_percent: int = Field(..., ge=0, le=100)
    algorithm: str


class OptimizationResult(BaseModel):
    """Model prediction and recommendation for one device."""
    device_id: str
    timestamp: datetime
    hashrate_prediction: float
    efficiency_prediction: float = Field(..., ge=0.0, le=1.0)
    power_optimization: float = Field(..., ge=0.0, le=1.0)
    reward_prediction: float
    confidence: float = Field(..., ge=0.0, le=1.0)
    recommended_settings: RecommendedSettings
