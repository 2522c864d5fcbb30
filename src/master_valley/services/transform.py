"""Style transform service wrapping the external image client."""

import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from master_valley.domain.errors import TransformError
from master_valley.domain.photos import Photo
from master_valley.domain.styles import SingleStyle
from master_valley.domain.transform import TransformOutcome

logger = logging.getLogger(__name__)


class TransformClient(Protocol):
    """Interface for the remote style transform."""

    async def transform(
        self,
        *,
        image: bytes,
        content_type: str,
        style_id: str,
        prompt: str,
    ) -> dict[str, object]:
        """Render the image in a style and return image plus optional metadata."""


@dataclass
class TransformService:
    """Service that prepares transform prompts and validates results."""

    client: TransformClient

    async def transform(self, photo: Photo, style: SingleStyle) -> TransformOutcome:
        """Render a photo in one style.

        Any failure, whatever its cause, surfaces as TransformError.
        """
        try:
            raw = await self.client.transform(
                image=photo.content,
                content_type=photo.content_type,
                style_id=style.id,
                prompt=build_prompt(style),
            )
        except Exception as exc:
            logger.warning("Transform call failed for %s: %s", style.id, exc)
            raise TransformError(style.id, str(exc) or type(exc).__name__) from exc
        try:
            return TransformOutcome.model_validate(raw)
        except ValidationError as exc:
            raise TransformError(style.id, "malformed transform response") from exc


def build_prompt(style: SingleStyle) -> str:
    """Describe the target style for the image model."""
    prompt = (
        f"Repaint this photo as an artwork in the style of {style.display_name}. "
        "Keep the subject, pose and composition recognizable."
    )
    if style.period:
        prompt += f" Period: {style.period}."
    return prompt
