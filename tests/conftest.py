import random
import pytest
from src.common.schemas import ModelProfile, InferenceSettings
from src.simulation.infrastructure.catalog import ModelCatalog

@pytest.fixture
def profiles():
    return [
        ModelProfile(name="YOLO-FDE (Ours)", accuracy=58.7, base_fps=45),
        ModelProfile(name="YOLOv8n", accuracy=37.3, base_fps=120),
        ModelProfile(name="Stable", accuracy=100.0, base_fps=200),
        ModelProfile(name="Slow", accuracy=50.0, base_fps=30),
    ]

@pytest.fixture
def catalog(profiles):
    return ModelCatalog(profiles)

@pytest.fixture
def settings():
    return InferenceSettings(model_name="YOLOv8n", skip_frames=0)

@pytest.fixture
def rng():
    return random.Random(1234)

@pytest.fixture
def dashboard_config():
    return {
        'dashboard': {
            'default_model': 'YOLOv8n',
            'models': [
                {'name': 'YOLOv8n', 'accuracy': 37.3, 'base_fps': 120},
                {'name': 'YOLOv8l', 'accuracy': 52.9, 'base_fps': 40},
            ],
            'gate_delay_seconds': 0.05,
            'settings': {'skip_frames': 0},
        }
    }
