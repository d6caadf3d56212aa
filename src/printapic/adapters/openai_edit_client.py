"""OpenAI Images API client for photo edits."""

import base64
import binascii
from dataclasses import dataclass

from openai import APITimeoutError, AsyncOpenAI, OpenAIError

from printapic.domain.errors import ProviderError, ProviderTimeout
from printapic.services.images import detect_mime_type, extension_for
from printapic.services.provider import EditProviderClient, resolve_instruction


@dataclass
class OpenAIEditClient(EditProviderClient):
    """Edit provider backed by the OpenAI images.edit endpoint."""

    client: AsyncOpenAI
    model: str = "gpt-image-1"

    @classmethod
    def create(cls, api_key: str, model: str) -> "OpenAIEditClient":
        """Create an OpenAI edit client."""
        return cls(client=AsyncOpenAI(api_key=api_key), model=model)

    async def submit_edit(self, image_bytes: bytes, instruction_key: str) -> bytes:
        """Run a single edit request and decode the returned image."""
        prompt = resolve_instruction(instruction_key)
        mime_type = detect_mime_type(image_bytes)
        filename = f"input.{extension_for(mime_type)}"
        try:
            response = await self.client.images.edit(
                model=self.model,
                image=(filename, image_bytes, mime_type),
                prompt=prompt,
            )
        except APITimeoutError as exc:
            raise ProviderTimeout("OpenAI image edit timed out") from exc
        except OpenAIError as exc:
            raise ProviderError(f"OpenAI image edit failed: {exc}") from exc

        encoded = response.data[0].b64_json if response.data else None
        if not encoded:
            raise ProviderError("OpenAI returned an empty image")
        try:
            return base64.b64decode(encoded)
        except binascii.Error as exc:
            raise ProviderError("OpenAI returned an invalid image payload") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()
