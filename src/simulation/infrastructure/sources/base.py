"""
Base classes and configuration for stream sources.
"""
from abc import ABC, abstractmethod
from pydantic import BaseModel, Field
from ...domain.entities import StreamSource

NETWORK_SCHEMES = ("http://", "https://", "rtsp://", "rtmp://", "udp://")

class SourceConfig(BaseModel):
    """Validated configuration for staged sources"""
    uploads_dir: str = Field("data/uploads", min_length=1, description="Directory holding uploaded files")
    max_upload_mb: int = Field(512, gt=0, description="Largest accepted upload in megabytes")

class SourceFactory(ABC):
    """
    Abstract factory for turning a typed reference into a StreamSource.
    """

    @abstractmethod
    def create(self, reference: str) -> StreamSource:
        pass

    @abstractmethod
    def can_handle(self, reference: str) -> bool:
        pass
