from pydantic import BaseModel, ConfigDict, Field

class ModelProfile(BaseModel):
    """
    Read-only descriptor of a selectable detection model.
    Accuracy drives the simulated stability, base_fps drives the tick cadence.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Display name used to select the model")
    accuracy: float = Field(..., ge=0.0, le=100.0, description="mAP of the model in percent (0-100)")
    base_fps: float = Field(..., gt=0.0, description="Frames per second the model sustains without skipping")

    @property
    def stability_factor(self) -> float:
        """Damping coefficient (0..1) derived from accuracy."""
        return self.accuracy / 100.0
