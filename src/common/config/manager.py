from omegaconf import DictConfig, OmegaConf
from omegaconf.errors import OmegaConfBaseException
from pathlib import Path
from typing import Union

from .schema import AppConfig
from ..exceptions import ConfigurationError

class ConfigManager:
    """Centralizes loading and validation of the dashboard configuration"""

    def __init__(self, config_dir: Path = Path("conf")):
        self.config_dir = config_dir

    def load_dashboard_config(self, name: str = "config") -> DictConfig:
        """Loads the configuration file and validates it against the schema"""
        config_path = self.config_dir / f"{name}.yaml"

        if not config_path.exists():
            raise ConfigurationError(f"Config not found: {config_path}")

        return self.validate(OmegaConf.load(config_path))

    @staticmethod
    def validate(cfg: Union[DictConfig, dict]) -> DictConfig:
        """Merges cfg over the structured schema and checks cross-field rules"""
        if 'dashboard' not in cfg:
            raise ConfigurationError("Missing required config section: dashboard")

        try:
            merged = OmegaConf.merge(OmegaConf.structured(AppConfig), cfg)
        except OmegaConfBaseException as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e

        dashboard_cfg = merged.dashboard
        if OmegaConf.is_missing(dashboard_cfg, 'default_model'):
            raise ConfigurationError("Missing required config key: dashboard.default_model")
        names = [m.name for m in dashboard_cfg.models]
        if not names:
            raise ConfigurationError("dashboard.models must list at least one model")
        if len(set(names)) != len(names):
            raise ConfigurationError("dashboard.models contains duplicate names")
        if dashboard_cfg.default_model not in names:
            raise ConfigurationError(
                f"Default model '{dashboard_cfg.default_model}' is not listed in dashboard.models"
            )
        if dashboard_cfg.capacity < 1:
            raise ConfigurationError("dashboard.capacity must be at least 1")
        if dashboard_cfg.gate_delay_seconds < 0:
            raise ConfigurationError("dashboard.gate_delay_seconds must be non-negative")

        return merged
