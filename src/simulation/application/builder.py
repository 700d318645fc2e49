from omegaconf import DictConfig
from typing import Dict, Optional

from .lifecycle import StreamLifecycleManager
from .services.multi_stream import MultiStreamManager
from .session import SessionSnapshotProducer
from ..infrastructure.broadcast.realtime_broadcaster import RealtimeBroadcaster
from ..infrastructure.catalog.model_catalog import ModelCatalog
from ..infrastructure.persistence.json_repository import JsonSessionRepository
from ..infrastructure.sources import SourceConfig, SourceStager
from ...common.config.manager import ConfigManager
from ...common.logging import setup_logger
from ...common.schemas import InferenceSettings

logger = setup_logger(__name__)


class DashboardApplicationBuilder:
    """
    Builder pattern for constructing the dashboard application.
    Centralizes component instantiation and wiring.
    """

    def __init__(self, config: DictConfig):
        self.config = ConfigManager.validate(config)
        self.dashboard_cfg = self.config.dashboard

        # Components
        self.catalog: Optional[ModelCatalog] = None
        self.settings: Optional[InferenceSettings] = None
        self.repository: Optional[JsonSessionRepository] = None
        self.broadcaster: Optional[RealtimeBroadcaster] = None
        self.stager: Optional[SourceStager] = None
        self.manager: Optional[MultiStreamManager] = None

    def build_catalog(self) -> 'DashboardApplicationBuilder':
        self.catalog = ModelCatalog.from_config(self.dashboard_cfg.models)
        logger.info(f"Loaded {len(self.catalog)} model profiles")
        return self

    def build_settings(self) -> 'DashboardApplicationBuilder':
        settings_cfg = self.dashboard_cfg.settings
        self.settings = InferenceSettings(
            model_name=self.dashboard_cfg.default_model,
            skip_frames=settings_cfg.skip_frames,
            confidence_threshold=settings_cfg.confidence_threshold,
            image_size=settings_cfg.image_size,
            theme=settings_cfg.theme
        )
        return self

    def build_persistence(self) -> 'DashboardApplicationBuilder':
        persistence_cfg = self.dashboard_cfg.persistence
        if persistence_cfg.enabled:
            logger.info(f"Sessions stored in {persistence_cfg.path}")
            self.repository = JsonSessionRepository(path=persistence_cfg.path, key=persistence_cfg.key)
        return self

    def build_broadcaster(self) -> 'DashboardApplicationBuilder':
        self.broadcaster = RealtimeBroadcaster()
        return self

    def build_stager(self) -> 'DashboardApplicationBuilder':
        self.stager = SourceStager(
            SourceConfig(uploads_dir=self.dashboard_cfg.uploads_dir),
            initial_reference=self.dashboard_cfg.default_source or ""
        )
        return self

    def build_manager(self) -> MultiStreamManager:
        if not self.catalog:
            self.build_catalog()
        if not self.settings:
            self.build_settings()
        if not self.stager:
            self.build_stager()

        viewport_cfg = self.dashboard_cfg.viewport
        self.manager = MultiStreamManager(
            catalog=self.catalog,
            settings=self.settings,
            lifecycle=StreamLifecycleManager(capacity=self.dashboard_cfg.capacity),
            broadcaster=self.broadcaster,
            session_producer=SessionSnapshotProducer(repository=self.repository),
            stager=self.stager,
            gate_delay_seconds=self.dashboard_cfg.gate_delay_seconds,
            viewport_size=(viewport_cfg.width, viewport_cfg.height)
        )
        return self.manager

    def get_components(self) -> Dict:
        """Returns built components for external use (e.g. the API)"""
        return {
            'catalog': self.catalog,
            'settings': self.settings,
            'repository': self.repository,
            'broadcaster': self.broadcaster,
            'stager': self.stager,
            'manager': self.manager
        }
