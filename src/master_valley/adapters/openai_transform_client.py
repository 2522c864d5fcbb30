"""OpenAI image edit client for style transforms."""

from dataclasses import dataclass

from openai import AsyncOpenAI

from master_valley.services.transform import TransformClient


@dataclass
class OpenAIImageTransformClient(TransformClient):
    """Transform client backed by the OpenAI Images API."""

    client: AsyncOpenAI
    model: str

    @classmethod
    def create(
        cls, api_key: str, model: str, timeout: float
    ) -> "OpenAIImageTransformClient":
        """Create an OpenAI transform client."""
        return cls(client=AsyncOpenAI(api_key=api_key, timeout=timeout), model=model)

    async def transform(
        self,
        *,
        image: bytes,
        content_type: str,
        style_id: str,
        prompt: str,
    ) -> dict[str, object]:
        """Edit the photo with a style prompt and return a data URL."""
        extension = content_type.split("/")[-1]
        response = await self.client.images.edit(
            model=self.model,
            image=(f"{style_id}.{extension}", image, content_type),
            prompt=prompt,
        )
        if not response.data or not response.data[0].b64_json:
            raise RuntimeError("OpenAI returned no image")
        encoded = response.data[0].b64_json
        return {"image": f"data:image/png;base64,{encoded}"}

    async def close(self) -> None:
        await self.client.close()
