from dataclasses import dataclass, field
from typing import Optional, List

@dataclass
class ModelProfileConfig:
    name: str
    accuracy: float
    base_fps: float

@dataclass
class SettingsConfig:
    skip_frames: int = 5
    confidence_threshold: int = 50
    image_size: int = 640
    theme: str = "light"

@dataclass
class ViewportConfig:
    width: int = 640
    height: int = 360

@dataclass
class PersistenceConfig:
    enabled: bool = True
    path: str = "data/sessions.json"
    key: str = "traffic_ai_sessions"

@dataclass
class DashboardConfig:
    default_model: str
    models: List[ModelProfileConfig] = field(default_factory=list)
    capacity: int = 4
    gate_delay_seconds: float = 2.5
    settings: SettingsConfig = field(default_factory=SettingsConfig)
    viewport: ViewportConfig = field(default_factory=ViewportConfig)
    default_source: Optional[str] = None
    persistence: PersistenceConfig = field(default_factory=PersistenceConfig)
    uploads_dir: str = "data/uploads"

@dataclass
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = 8000

@dataclass
class AppConfig:
    dashboard: DashboardConfig
    server: ServerConfig = field(default_factory=ServerConfig)
