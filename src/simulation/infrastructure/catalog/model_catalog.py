"""
Catalog of selectable model profiles.
"""
from typing import Dict, Iterable, List, Optional
from omegaconf import OmegaConf
from pydantic import ValidationError

from ....common.exceptions import ConfigurationError, MissingModelProfile
from ....common.schemas import ModelProfile

class ModelCatalog:
    """
    Resolves model profiles by display name.
    """

    def __init__(self, profiles: Iterable[ModelProfile]):
        self._profiles: Dict[str, ModelProfile] = {}
        for profile in profiles:
            if profile.name in self._profiles:
                raise ConfigurationError(f"Duplicate model profile: {profile.name}")
            self._profiles[profile.name] = profile

    @classmethod
    def from_config(cls, models_cfg) -> 'ModelCatalog':
        """Builds the catalog from the dashboard.models list of the configuration."""
        if OmegaConf.is_config(models_cfg):
            models_cfg = OmegaConf.to_container(models_cfg, resolve=True)
        try:
            return cls(ModelProfile(**entry) for entry in models_cfg)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid model profile: {e}") from e

    @property
    def names(self) -> List[str]:
        return list(self._profiles.keys())

    def get(self, name: str) -> Optional[ModelProfile]:
        return self._profiles.get(name)

    def require(self, name: str) -> ModelProfile:
        profile = self._profiles.get(name)
        if profile is None:
            raise MissingModelProfile(f"Model profile '{name}' is not in the catalog")
        return profile

    def __contains__(self, name: str) -> bool:
        return name in self._profiles

    def __len__(self) -> int:
        return len(self._profiles)
