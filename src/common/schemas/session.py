from typing import List, Literal
from pydantic import BaseModel, ConfigDict, Field

class VehicleCount(BaseModel):
    """
    Count of a single vehicle class.
    """
    type: Literal['Car', 'Truck', 'Bus', 'Motorcycle'] = Field(..., description="Vehicle class")
    count: int = Field(..., ge=0, description="Number of vehicles of this class")

class SessionSnapshot(BaseModel):
    """
    Persisted summary of the streams active when a session was saved.
    Serialized with camelCase keys for the session store.
    """
    model_config = ConfigDict(populate_by_name=True, protected_namespaces=())

    id: str = Field(..., description="Unique session identifier (sess_<epoch ms>)")
    timestamp: str = Field(..., description="Local save time formatted YYYY-MM-DD HH:MM")
    model_used: str = Field(..., alias="modelUsed", description="Model profile selected when saving")
    duration: str = Field(..., pattern=r"^\d{2,}:\d{2}:\d{2}$", description="Longest active stream time as HH:MM:SS")
    total_vehicles: int = Field(..., ge=0, alias="totalVehicles", description="Vehicles seen across active streams")
    vehicle_counts: List[VehicleCount] = Field(..., alias="vehicleCounts", description="Per-class breakdown")
    source_label: str = Field(..., min_length=1, alias="sourceLabel", description="Session name given by the user")
    avg_fps: float = Field(..., ge=0.0, alias="avgFps", description="Mean reported FPS across active streams")
