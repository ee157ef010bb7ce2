"""
API for the AI mining engine.
"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field
import uvicorn

from ai_engine.config import API_CONFIG, CLOUD_MINER_CONFIG
from ai_engine.core import AIMiningCore
from ai_engine.schemas import DeviceInfo, MiningStateUpdate, OptimizationResult
from ai_engine.utils.logging_config import logger
from ai_engine.utils.validation import NotInitializedError, UnknownDeviceError

API_VERSION = "0.3.0"


# Define API models
class DeviceRegistration(BaseModel):
    device_id: str = Field(..., min_length=1)
    device_info: Optional[DeviceInfo] = None

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "device_id": "gpu-rig-01",
            "device_info": {
                "algorithm": "ethash",
                "hashrate": 95.5,
                "difficulty": 4000,
                "temperature": 62.0,
                "power": 180.0,
                "efficiency": 0.82,
                "pool": "stratum+tcp://pool.example.com:3333",
                "worker": "rig01"
            }
        }
    })


class StatusResponse(BaseModel):
    initialized: bool
    running: bool
    model_layers: int
    accuracy: float
    iterations: int
    device_count: int
    last_optimization_time: Optional[datetime] = None
    self_improvement_enabled: bool
    self_improvement_cycles: int
    self_improvement_iterations: int
    last_improvement_time: Optional[datetime] = None
    accuracy_history: List[float]
    optimization_history_size: int


class SelfImprovementResponse(BaseModel):
    improved: bool
    results: Optional[Dict[str, Any]] = None


# Initialize the API
app = FastAPI(
    title="Fleet Mining AI Engine API",
    description="API for AI-driven optimization of a heterogeneous mining fleet",
    version=API_VERSION
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, replace with specific origins
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global variables
mining_engine: Optional[AIMiningCore] = None


def create_reporting_sink():
    """HTTP sink when a cloud miner URL is configured, otherwise None."""
    if not CLOUD_MINER_CONFIG["base_url"]:
        return None

    from api_clients.cloud_miner_client import CloudMinerClient

    logger.info(f"Reporting performance to cloud miner at {CLOUD_MINER_CONFIG['base_url']}")
    return CloudMinerClient(
        base_url=CLOUD_MINER_CONFIG["base_url"],
        timeout=CLOUD_MINER_CONFIG["timeout"],
        max_retries=CLOUD_MINER_CONFIG["max_retries"]
    )


# Dependency to get the mining engine
def get_engine() -> AIMiningCore:
    global mining_engine
    if mining_engine is None:
        engine = AIMiningCore(reporting_sink=create_reporting_sink())
        engine.initialize()
        mining_engine = engine

    return mining_engine


@app.get("/")
def read_root():
    """API root endpoint."""
    return {"message": "Fleet Mining AI Engine API", "version": API_VERSION}


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now().isoformat()}


@app.get("/status", response_model=StatusResponse)
def get_status(engine: AIMiningCore = Depends(get_engine)):
    """Engine status snapshot."""
    return engine.get_status()


@app.post("/devices", status_code=201)
def register_device(registration: DeviceRegistration, engine: AIMiningCore = Depends(get_engine)):
    """Register a device or refresh its registration."""
    engine.register_device(registration.device_id, registration.device_info)
    return {"device_id": registration.device_id, "registered": True}


@app.get("/devices")
def list_devices(engine: AIMiningCore = Depends(get_engine)):
    """Tabulated telemetry for every registered device."""
    frame = engine.telemetry.to_frame()
    devices = json.loads(frame.to_json(orient="records", date_format="iso"))
    return {"devices": devices, "count": len(devices)}


@app.patch("/devices/{device_id}/state")
def update_device_state(device_id: str, update: MiningStateUpdate,
                        engine: AIMiningCore = Depends(get_engine)):
    """
    Merge telemetry into a device's mining state.
    """
    try:
        engine.update_mining_state(device_id, update)
    except UnknownDeviceError as e:
        logger.warning(f"State update rejected: {e}")
        raise HTTPException(status_code=404, detail=str(e))

    return {"device_id": device_id, "state": engine.telemetry.get_state(device_id)}


@app.delete("/devices/{device_id}")
def unregister_device(device_id: str, engine: AIMiningCore = Depends(get_engine)):
    try:
        engine.unregister_device(device_id)
    except UnknownDeviceError as e:
        raise HTTPException(status_code=404, detail=str(e))

    return {"device_id": device_id, "unregistered": True}


@app.get("/devices/{device_id}/optimization", response_model=OptimizationResult)
def get_device_optimization(device_id: str, engine: AIMiningCore = Depends(get_engine)):
    """On-demand optimization for one device; not recorded in history."""
    result = engine.get_optimization(device_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No optimization available for device {device_id}")
    return result


@app.get("/optimizations/history", response_model=List[OptimizationResult])
def get_optimization_history(engine: AIMiningCore = Depends(get_engine)):
    return engine.get_optimization_history()


@app.post("/engine/start")
def start_engine(engine: AIMiningCore = Depends(get_engine)):
    try:
        engine.start()
    except NotInitializedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"running": engine.running}


@app.post("/engine/stop")
def stop_engine(engine: AIMiningCore = Depends(get_engine)):
    if not engine.initialized:
        raise HTTPException(status_code=409, detail="AI mining core not initialized")
    engine.stop()
    return {"running": engine.running}


@app.post("/engine/optimize", response_model=List[OptimizationResult])
def run_optimization(engine: AIMiningCore = Depends(get_engine)):
    """Run an optimization cycle immediately."""
    try:
        return engine.run_optimization_cycle()
    except NotInitializedError as e:
        raise HTTPException(status_code=409, detail=str(e))


@app.post("/engine/self-improve", response_model=SelfImprovementResponse)
def run_self_improvement(engine: AIMiningCore = Depends(get_engine)):
    """Run a self-improvement cycle immediately."""
    try:
        results = engine.run_self_improvement()
    except NotInitializedError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return {"improved": results is not None, "results": results}


def start_server():
    """Start the API server."""
    logger.info(f"Starting API server on {API_CONFIG['host']}:{API_CONFIG['port']}")
    uvicorn.run(
        "ai_engine.api:app",
        host=API_CONFIG["host"],
        port=API_CONFIG["port"],
        reload=API_CONFIG["reload"]
    )


if __name__ == "__main__":
    start_server()
