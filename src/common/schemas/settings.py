from typing import Literal
from pydantic import BaseModel, ConfigDict, Field, field_validator

class InferenceSettings(BaseModel):
    """
    Runtime settings of the configuration panel.
    confidence_threshold and image_size are stored for display only, the simulation does not read them.
    """
    model_config = ConfigDict(validate_assignment=True, protected_namespaces=())

    model_name: str = Field(..., min_length=1, description="Selected model profile name")
    skip_frames: int = Field(5, ge=0, le=30, description="Frames skipped between two inferences")
    confidence_threshold: int = Field(50, ge=0, le=100, description="Minimum confidence in percent (not simulated)")
    image_size: int = Field(640, ge=320, le=1280, description="Inference image size in pixels (not simulated)")
    theme: Literal['light', 'dark'] = Field('light', description="Presentation theme used by the overlay")

    @field_validator('image_size')
    @classmethod
    def validate_image_size(cls, v: int) -> int:
        if v % 32 != 0:
            raise ValueError('image_size must be a multiple of 32')
        return v
