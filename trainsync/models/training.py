"""Training submission payloads"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class TrainingConfig(BaseModel):
    """Magik training request"""
    model_config = ConfigDict(extra="allow")

    dataset_path: str = Field(..., min_length=1)
    num_classes: int = Field(..., ge=1)
    epochs: int = Field(default=50, ge=1)
    batch_size: int = Field(default=16, ge=1)
    learning_rate: float = Field(default=0.001, gt=0)
    image_size: int = Field(default=640, ge=32)
    model_name: Optional[str] = None


class StandardTrainingConfig(TrainingConfig):
    """Standard training request"""
    pretrained: bool = True
    validation_split: float = Field(default=0.2, gt=0, lt=1)
