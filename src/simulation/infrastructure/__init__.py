"""
Infrastructure module initialization.
"""
from .catalog.model_catalog import ModelCatalog
from .sources import create_source, SourceStager, LocalFileHandle, OpenCVViewport
from .persistence.json_repository import JsonSessionRepository
from .broadcast.realtime_broadcaster import RealtimeBroadcaster

__all__ = [
    "ModelCatalog",
    "create_source",
    "SourceStager",
    "LocalFileHandle",
    "OpenCVViewport",
    "JsonSessionRepository",
    "RealtimeBroadcaster"
]
