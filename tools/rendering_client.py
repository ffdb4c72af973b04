"""Multi-image generative rendering clients for try-on previews."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Sequence

import requests
from pydantic import ValidationError

from closet_app.config import ClosetConfig
from logic.validation import ImageGenerationResponse, describe_validation_error
from models.failures import CallOutcome, FailureCode
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)

_SOFT = FailureCode.RENDER_SOFT_FAILURE


class RenderingClient(ABC):
    """Abstract rendering client.

    :meth:`generate` never raises; every failure comes back as a soft failure
    so the caller can switch to the local preview.
    """

    service_name = "rendering"

    @instrument_call("rendering", "generate")
    def generate(self, reference_images: Sequence[str], prompt: str) -> CallOutcome[str]:
        try:
            return self._generate(list(reference_images), prompt)
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Rendering client raised unexpectedly", exc_info=exc)
            return CallOutcome.soft_failure(_SOFT, "client_error", str(exc))

    @abstractmethod
    def _generate(self, reference_images: List[str], prompt: str) -> CallOutcome[str]:
        """Return one image reference (URL or ``data:`` URI)."""

    def check_connection(self) -> Dict[str, object]:
        return {"success": True, "message": f"{self.__class__.__name__} has no remote endpoint"}


class SeedreamRenderingClient(RenderingClient):
    """Client for Ark-style ``/images/generations`` multi-reference endpoints."""

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        model: str,
        size: str = "2K",
        response_format: str = "url",
        timeout_seconds: float = 60.0,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.size = size
        self.response_format = response_format
        self.timeout_seconds = timeout_seconds

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"}

    def build_request(self, reference_images: List[str], prompt: str) -> Dict[str, object]:
        return {
            "model": self.model,
            "prompt": prompt,
            "size": self.size,
            "response_format": self.response_format,
            "image": reference_images,
            "watermark": False,
            "sequential_image_generation": "disabled",
        }

    def _generate(self, reference_images: List[str], prompt: str) -> CallOutcome[str]:
        if not self.api_key:
            LOGGER.warning("Rendering API key missing; skipping remote call")
            return CallOutcome.soft_failure(_SOFT, "not_configured")

        LOGGER.info("Requesting try-on render", extra={"reference_count": len(reference_images)})
        try:
            response = requests.post(
                f"{self.api_url}/images/generations",
                headers=self._headers(),
                json=self.build_request(reference_images, prompt),
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            LOGGER.error("Rendering API timed out", extra={"timeout_seconds": self.timeout_seconds})
            return CallOutcome.soft_failure(_SOFT, "timeout", str(exc))
        except requests.RequestException as exc:
            LOGGER.error("Rendering API unreachable", exc_info=exc)
            return CallOutcome.soft_failure(_SOFT, "network_error", str(exc))

        if not 200 <= response.status_code < 300:
            LOGGER.warning("Rendering API returned non-success status", extra={"status_code": response.status_code})
            return CallOutcome.soft_failure(_SOFT, "http_status", f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as exc:
            LOGGER.error("Rendering response is not JSON", extra={"detail": str(exc)})
            return CallOutcome.soft_failure(_SOFT, "malformed_response", str(exc))
        try:
            parsed = ImageGenerationResponse.model_validate(payload)
        except ValidationError as exc:
            detail = describe_validation_error(exc)
            LOGGER.error("Rendering payload schema validation failed", extra={"detail": detail})
            return CallOutcome.soft_failure(_SOFT, "malformed_response", detail)

        image = parsed.first_image()
        if not image:
            return CallOutcome.soft_failure(_SOFT, "missing_image", "response carried no data[0] image")
        return CallOutcome.success(image)

    def check_connection(self) -> Dict[str, object]:
        """Send a minimal request to check the endpoint is reachable.

        A 400 answer means the service is reachable and rejected the test
        parameters, which is enough to report it as available.
        """

        if not self.api_key:
            return {"success": False, "message": "Rendering API key is not configured"}
        try:
            response = requests.post(
                f"{self.api_url}/images/generations",
                headers=self._headers(),
                json={"model": self.model, "prompt": "test", "size": "1:1"},
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as exc:
            return {"success": False, "message": f"Connection failed: {exc}"}

        if response.status_code == 400 or 200 <= response.status_code < 300:
            return {"success": True, "message": "Rendering API reachable"}
        return {"success": False, "message": f"Rendering API error: HTTP {response.status_code}"}


class MockRenderingClient(RenderingClient):
    """Offline deterministic rendering client for tests and local demos."""

    def __init__(self, image: str | None = "https://images.example.com/render.png") -> None:
        self.image = image
        self.calls: List[Dict[str, object]] = []

    def _generate(self, reference_images: List[str], prompt: str) -> CallOutcome[str]:
        self.calls.append({"reference_images": reference_images, "prompt": prompt})
        if not self.image:
            return CallOutcome.soft_failure(_SOFT, "missing_image")
        return CallOutcome.success(self.image)


def build_rendering_client(config: ClosetConfig) -> RenderingClient:
    return SeedreamRenderingClient(
        api_url=config.rendering_api_url,
        api_key=config.rendering_api_key,
        model=config.rendering_model,
        size=config.render_size,
        timeout_seconds=config.rendering_timeout_seconds,
    )


__all__ = [
    "RenderingClient",
    "SeedreamRenderingClient",
    "MockRenderingClient",
    "build_rendering_client",
]
