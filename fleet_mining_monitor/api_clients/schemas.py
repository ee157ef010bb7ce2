"""
Data schemas for payloads sent to fleet mining collaborators.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_serializer


class PerformanceReport(BaseModel):
    """
    Aggregate performance numbers for one miner label.

    ``label`` is ``ai-mining-core`` for the engine itself and
    ``ai-miner-<device_id>`` for individual devices.
    """
    label: str = Field(..., min_length=1)
    hashrate: float = Field(..., ge=0.0)
    efficiency: float = Field(..., ge=0.0, le=1.0)
    timestamp: datetime = Field(default_factory=datetime.now)

    @field_serializer("timestamp")
    def serialize_timestamp(self, value: datetime) -> str:
        return value.isoformat()
