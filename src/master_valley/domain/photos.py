"""Domain model for uploaded photos."""

import base64
from dataclasses import dataclass

from master_valley.domain.errors import InvalidPhotoError


@dataclass(frozen=True)
class Photo:
    """An uploaded photo. Replaced wholesale, never mutated."""

    content: bytes
    content_type: str
    filename: str = "photo"

    @classmethod
    def from_upload(
        cls, content: bytes, content_type: str | None, filename: str | None = None
    ) -> "Photo":
        """Build a photo from an upload, rejecting anything that is not an image."""
        if not content:
            raise InvalidPhotoError("Uploaded file is empty")
        resolved = content_type or ""
        if not resolved.startswith("image/"):
            sniffed = detect_mime_type(content)
            if sniffed is None:
                raise InvalidPhotoError("Only image files can be uploaded")
            resolved = sniffed
        return cls(content=content, content_type=resolved, filename=filename or "photo")

    @property
    def preview_data_url(self) -> str:
        """Base64 data URL used as the preview handle."""
        encoded = base64.b64encode(self.content).decode("utf-8")
        return f"data:{self.content_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str | None:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return None
