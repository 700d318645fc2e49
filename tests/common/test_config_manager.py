import pytest
from omegaconf import OmegaConf
from src.common.config.manager import ConfigManager
from src.common.exceptions import ConfigurationError

def test_validate_applies_defaults(dashboard_config):
    cfg = ConfigManager.validate(OmegaConf.create(dashboard_config))
    assert cfg.dashboard.capacity == 4
    assert cfg.dashboard.settings.image_size == 640
    assert cfg.dashboard.viewport.width == 640
    assert cfg.server.port == 8000

def test_validate_missing_section():
    with pytest.raises(ConfigurationError):
        ConfigManager.validate(OmegaConf.create({'server': {}}))

def test_validate_missing_default_model(dashboard_config):
    del dashboard_config['dashboard']['default_model']
    with pytest.raises(ConfigurationError):
        ConfigManager.validate(OmegaConf.create(dashboard_config))

def test_validate_unknown_default_model(dashboard_config):
    dashboard_config['dashboard']['default_model'] = 'YOLOv9'
    with pytest.raises(ConfigurationError, match="not listed"):
        ConfigManager.validate(OmegaConf.create(dashboard_config))

def test_validate_duplicate_models(dashboard_config):
    dashboard_config['dashboard']['models'].append({'name': 'YOLOv8n', 'accuracy': 1, 'base_fps': 1})
    with pytest.raises(ConfigurationError, match="duplicate"):
        ConfigManager.validate(OmegaConf.create(dashboard_config))

def test_validate_bad_capacity(dashboard_config):
    dashboard_config['dashboard']['capacity'] = 0
    with pytest.raises(ConfigurationError):
        ConfigManager.validate(OmegaConf.create(dashboard_config))

def test_validate_wrong_type(dashboard_config):
    dashboard_config['dashboard']['capacity'] = 'many'
    with pytest.raises(ConfigurationError):
        ConfigManager.validate(OmegaConf.create(dashboard_config))

def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Config not found"):
        ConfigManager(config_dir=tmp_path).load_dashboard_config()

def test_load_from_file(tmp_path, dashboard_config):
    OmegaConf.save(OmegaConf.create(dashboard_config), tmp_path / "config.yaml")
    cfg = ConfigManager(config_dir=tmp_path).load_dashboard_config()
    assert cfg.dashboard.default_model == 'YOLOv8n'
    assert len(cfg.dashboard.models) == 2
