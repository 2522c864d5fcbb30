"""Request models for the workflow API."""

from typing import Any

from pydantic import BaseModel, Field


class CategoryChoice(BaseModel):
    """Body for choosing a category."""

    category_id: str


class StyleChoice(BaseModel):
    """Body for choosing a member style or a full transform."""

    style_id: str


class NoteRequest(BaseModel):
    """Opaque chat note attached to one result."""

    note: dict[str, Any]


class FocusRequest(BaseModel):
    index: int = Field(ge=0)
