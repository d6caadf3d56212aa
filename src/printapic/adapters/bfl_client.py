"""Black Forest Labs (FLUX Kontext) image edit client."""

import asyncio
import logging
from dataclasses import dataclass

import httpx

from printapic.domain.errors import ProviderError, ProviderTimeout
from printapic.services.images import to_base64
from printapic.services.provider import EditProviderClient, resolve_instruction

logger = logging.getLogger(__name__)

_READY = "ready"
_FAILED = {"error", "failed"}


@dataclass
class HttpxBflClient(EditProviderClient):
    """Submits edits to BFL and polls until the result is ready."""

    api_key: str
    base_url: str
    model: str
    http_client: httpx.AsyncClient
    poll_interval: float = 2.0
    max_attempts: int = 30

    @classmethod
    def create(
        cls,
        api_key: str,
        base_url: str,
        model: str,
        poll_interval: float = 2.0,
        max_attempts: int = 30,
    ) -> "HttpxBflClient":
        """Create a BFL client with a managed httpx session."""
        return cls(
            api_key=api_key,
            base_url=base_url,
            model=model,
            http_client=httpx.AsyncClient(),
            poll_interval=poll_interval,
            max_attempts=max_attempts,
        )

    async def submit_edit(self, image_bytes: bytes, instruction_key: str) -> bytes:
        """Submit the edit, wait for it and return the edited image bytes."""
        prompt = resolve_instruction(instruction_key)
        job_id, polling_url = await self._submit(prompt, image_bytes)
        logger.info("Submitted BFL job %s", job_id)
        result_url = await self._poll(job_id, polling_url)
        return await self._download(result_url)

    async def _submit(self, prompt: str, image_bytes: bytes) -> tuple[str, str]:
        url = f"{self.base_url}/{self.model}"
        try:
            response = await self.http_client.post(
                url,
                headers=self._headers(),
                json={
                    "prompt": prompt,
                    "input_image": to_base64(image_bytes),
                    "output_format": "png",
                },
                timeout=30,
            )
        except httpx.HTTPError as exc:
            raise ProviderError(f"BFL request failed: {exc}") from exc
        if response.is_error:
            raise ProviderError(
                f"BFL API error: {response.status_code} {response.reason_phrase}"
            )
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if (
            not isinstance(payload, dict)
            or not payload.get("id")
            or not payload.get("polling_url")
        ):
            raise ProviderError("BFL returned an invalid response format")
        return str(payload["id"]), str(payload["polling_url"])

    async def _poll(self, job_id: str, polling_url: str) -> str:
        last_error: Exception | None = None
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            try:
                response = await self.http_client.get(
                    polling_url, headers=self._headers(), timeout=15
                )
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as exc:
                last_error = exc
                logger.warning(
                    "BFL poll %d/%d for job %s failed: %s",
                    attempt,
                    self.max_attempts,
                    job_id,
                    exc,
                )
                continue

            last_error = None
            if not isinstance(payload, dict):
                continue
            status = str(payload.get("status", "")).lower()
            if status == _READY:
                result = payload.get("result")
                sample = result.get("sample") if isinstance(result, dict) else None
                if not sample:
                    raise ProviderError(f"BFL job {job_id} is ready without an image")
                return str(sample)
            if status in _FAILED:
                raise ProviderError(f"BFL job {job_id} failed: {payload['status']}")

        if last_error is not None:
            raise ProviderError(
                f"BFL job {job_id} polling failed: {last_error}"
            ) from last_error
        raise ProviderTimeout(
            f"BFL job {job_id} not ready after {self.max_attempts} attempts"
        )

    async def _download(self, url: str) -> bytes:
        try:
            response = await self.http_client.get(url, timeout=30)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ProviderError(f"Failed to download BFL result: {exc}") from exc
        return response.content

    def _headers(self) -> dict[str, str]:
        return {"x-key": self.api_key, "accept": "application/json"}

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
