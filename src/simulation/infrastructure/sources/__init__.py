"""
Source module initialization and factory registry.
"""
import os
from typing import Dict
from urllib.parse import unquote, urlparse
from ...domain.entities import StreamSource
from ....common.exceptions import EmptySource
from .base import SourceFactory, SourceConfig, NETWORK_SCHEMES
from .handles import LocalFileHandle
from .staging import SourceStager
from .video_source import OpenCVViewport

class NetworkStreamFactory(SourceFactory):
    def can_handle(self, reference: str) -> bool:
        return reference.lower().startswith(NETWORK_SCHEMES)

    def create(self, reference: str) -> StreamSource:
        parsed = urlparse(reference)
        label = os.path.basename(parsed.path) or parsed.netloc or reference
        return StreamSource(reference=reference, label=label)


class LocalPathFactory(SourceFactory):
    def can_handle(self, reference: str) -> bool:
        return True

    def create(self, reference: str) -> StreamSource:
        path = unquote(urlparse(reference).path) if reference.startswith("file://") else reference
        return StreamSource(reference=reference, label=os.path.basename(path) or reference)


class SourceRegistry:
    """
    Centralized registry for source factories. First match wins.
    """

    def __init__(self):
        self._factories: Dict[str, SourceFactory] = {}

    def register(self, name: str, factory: SourceFactory):
        self._factories[name] = factory

    def create_source(self, reference: str) -> StreamSource:
        reference = (reference or "").strip()
        if not reference:
            raise EmptySource("Please enter a video stream URL or upload a local file.")

        for factory in self._factories.values():
            if factory.can_handle(reference):
                return factory.create(reference)

        raise ValueError(f"No factory found for source: {reference}")


# Setup global registry
_registry = SourceRegistry()
_registry.register("network", NetworkStreamFactory())
_registry.register("local", LocalPathFactory())


def create_source(reference: str) -> StreamSource:
    """
    Factory function to create the appropriate StreamSource using the registry.
    """
    return _registry.create_source(reference)


__all__ = [
    "SourceConfig",
    "SourceFactory",
    "SourceRegistry",
    "LocalFileHandle",
    "SourceStager",
    "OpenCVViewport",
    "create_source",
]
