"""
Base model configuration shared by all models.
"""

from pydantic import BaseModel, ConfigDict


class BaseModelConfig(BaseModel):
    """Base model with common configuration."""

    model_config = ConfigDict(
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


class FrozenModel(BaseModelConfig):
    """Immutable model for values derived from the interface document."""

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
    )
