"""Remote transform endpoint client."""

import base64
from dataclasses import dataclass

import httpx

from master_valley.services.transform import TransformClient


@dataclass
class HttpxTransformClient(TransformClient):
    """Transform client for a JSON transform endpoint, using httpx."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 120

    @classmethod
    def create(cls, base_url: str, timeout: float) -> "HttpxTransformClient":
        """Create a transform client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def transform(
        self,
        *,
        image: bytes,
        content_type: str,
        style_id: str,
        prompt: str,
    ) -> dict[str, object]:
        """POST the photo and style to the endpoint and normalize the reply."""
        encoded = base64.b64encode(image).decode("utf-8")
        payload = {
            "image": f"data:{content_type};base64,{encoded}",
            "styleId": style_id,
            "prompt": prompt,
        }
        response = await self.http_client.post(
            f"{self.base_url}/transform", json=payload, timeout=self.timeout
        )
        response.raise_for_status()
        body = response.json()
        if not body.get("success", True):
            raise RuntimeError(body.get("error") or "Transform endpoint rejected request")
        return {
            "image": body.get("resultUrl") or body.get("image"),
            "artist": body.get("aiSelectedArtist"),
            "work": body.get("selected_work"),
        }

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
