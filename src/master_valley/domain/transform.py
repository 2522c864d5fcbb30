"""Models for transform results."""

from pydantic import BaseModel, Field


class TransformOutcome(BaseModel):
    """Validated output of one external transform call."""

    image: str = Field(min_length=1)
    artist: str | None = None
    work: str | None = None
