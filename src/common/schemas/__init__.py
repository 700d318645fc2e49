from .model import ModelProfile
from .settings import InferenceSettings
from .session import SessionSnapshot, VehicleCount

__all__ = [
    "ModelProfile",
    "InferenceSettings",
    "SessionSnapshot",
    "VehicleCount",
]
