"""Text-reasoning service clients used for garment selection."""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

import google.generativeai as genai
import requests
from google.api_core import exceptions as google_exceptions
from pydantic import ValidationError

from closet_app.config import ClosetConfig
from logic.validation import ChatCompletionResponse, describe_validation_error
from models.failures import CallOutcome, FailureCode
from tools.image_refs import as_image_url, load_image_bytes
from tools.observability import instrument_call

LOGGER = logging.getLogger(__name__)

_SOFT = FailureCode.REASONING_SOFT_FAILURE

# google-generativeai holds a single credential per process.
_SDK_LOCK = threading.Lock()
_CONFIGURED_GEMINI_KEY: Optional[str] = None


def _use_gemini_key(api_key: str) -> None:
    """Point the process-wide Gemini SDK at ``api_key`` if it is not already."""

    global _CONFIGURED_GEMINI_KEY
    with _SDK_LOCK:
        if _CONFIGURED_GEMINI_KEY == api_key:
            return
        if _CONFIGURED_GEMINI_KEY is not None:
            LOGGER.warning("Gemini SDK credential replaced by another client; requests now use the new key")
        genai.configure(api_key=api_key)
        _CONFIGURED_GEMINI_KEY = api_key


class ReasoningClient(ABC):
    """Abstract text-reasoning client.

    :meth:`complete` never raises: transport errors, bad payloads and
    unexpected exceptions from an implementation all come back as a soft
    failure. ``images`` attaches pictures (URLs, data URIs or bare base64)
    ahead of the prompt for vision-capable models.
    """

    service_name = "reasoning"

    @instrument_call("reasoning", "complete")
    def complete(
        self,
        prompt: str,
        max_tokens: int = 1000,
        temperature: Optional[float] = None,
        images: Sequence[str] = (),
    ) -> CallOutcome[str]:
        try:
            return self._complete(prompt, max_tokens=max_tokens, temperature=temperature, images=tuple(images))
        except Exception as exc:  # noqa: BLE001
            LOGGER.error("Reasoning client raised unexpectedly", exc_info=exc)
            return CallOutcome.soft_failure(_SOFT, "client_error", str(exc))

    @abstractmethod
    def _complete(
        self, prompt: str, max_tokens: int, temperature: Optional[float], images: Tuple[str, ...] = ()
    ) -> CallOutcome[str]:
        """Return the model's text answer for ``prompt``."""


class ChatCompletionsReasoningClient(ReasoningClient):
    """Client for OpenAI-compatible ``/chat/completions`` endpoints.

    Requests carrying images go to ``vision_model`` as a multi-part message.
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        model: str,
        timeout_seconds: float = 30.0,
        vision_model: str | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.vision_model = vision_model or model
        self.timeout_seconds = timeout_seconds

    def _complete(
        self, prompt: str, max_tokens: int, temperature: Optional[float], images: Tuple[str, ...] = ()
    ) -> CallOutcome[str]:
        if not self.api_key:
            LOGGER.warning("Reasoning API key missing; skipping remote call")
            return CallOutcome.soft_failure(_SOFT, "not_configured")

        model = self.model
        message_content: Any = prompt
        if images:
            try:
                parts: List[Dict[str, Any]] = [
                    {"type": "image_url", "image_url": {"url": as_image_url(image)}} for image in images
                ]
            except ValueError as exc:
                return CallOutcome.soft_failure(_SOFT, "invalid_image", str(exc))
            parts.append({"type": "text", "text": prompt})
            message_content = parts
            model = self.vision_model

        body = {
            "model": model,
            "messages": [{"role": "user", "content": message_content}],
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            body["temperature"] = temperature

        try:
            response = requests.post(
                f"{self.api_url}/chat/completions",
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
                json=body,
                timeout=self.timeout_seconds,
            )
        except requests.Timeout as exc:
            LOGGER.error("Reasoning API timed out", extra={"timeout_seconds": self.timeout_seconds})
            return CallOutcome.soft_failure(_SOFT, "timeout", str(exc))
        except requests.RequestException as exc:
            LOGGER.error("Reasoning API unreachable", exc_info=exc)
            return CallOutcome.soft_failure(_SOFT, "network_error", str(exc))

        if not 200 <= response.status_code < 300:
            LOGGER.warning("Reasoning API returned non-success status", extra={"status_code": response.status_code})
            return CallOutcome.soft_failure(_SOFT, "http_status", f"HTTP {response.status_code}: {response.text[:200]}")

        try:
            payload = response.json()
        except ValueError as exc:
            LOGGER.error("Reasoning response is not JSON", extra={"detail": str(exc)})
            return CallOutcome.soft_failure(_SOFT, "malformed_response", str(exc))
        try:
            parsed = ChatCompletionResponse.model_validate(payload)
        except ValidationError as exc:
            detail = describe_validation_error(exc)
            LOGGER.error("Reasoning payload schema validation failed", extra={"detail": detail})
            return CallOutcome.soft_failure(_SOFT, "malformed_response", detail)

        content = parsed.first_content().strip()
        if not content:
            return CallOutcome.soft_failure(_SOFT, "empty_response")
        return CallOutcome.success(content)


class GeminiReasoningClient(ReasoningClient):
    """Client backed by ``google-generativeai`` models.

    The SDK keeps one API key per process. Each call re-applies this client's
    key, so clients with different keys work one after another but not
    concurrently.
    """

    def __init__(self, api_key: str | None, model: str, timeout_seconds: float = 30.0) -> None:
        self.api_key = api_key
        self.model = model
        self.timeout_seconds = timeout_seconds
        if api_key:
            _use_gemini_key(api_key)

    def _image_part(self, image: str) -> Dict[str, Any]:
        mime_type, data = load_image_bytes(image, timeout_seconds=self.timeout_seconds)
        return {"mime_type": mime_type, "data": data}

    def _complete(
        self, prompt: str, max_tokens: int, temperature: Optional[float], images: Tuple[str, ...] = ()
    ) -> CallOutcome[str]:
        if not self.api_key:
            LOGGER.warning("Gemini API key missing; skipping remote call")
            return CallOutcome.soft_failure(_SOFT, "not_configured")

        contents: Any = prompt
        if images:
            try:
                contents = [self._image_part(image) for image in images] + [prompt]
            except ValueError as exc:
                return CallOutcome.soft_failure(_SOFT, "invalid_image", str(exc))
            except requests.RequestException as exc:
                LOGGER.error("Could not fetch image for Gemini request", exc_info=exc)
                return CallOutcome.soft_failure(_SOFT, "network_error", str(exc))

        generation_config = {"max_output_tokens": max_tokens}
        if temperature is not None:
            generation_config["temperature"] = temperature

        _use_gemini_key(self.api_key)
        model = genai.GenerativeModel(model_name=self.model)
        try:
            response = model.generate_content(
                contents,
                generation_config=generation_config,
                request_options={"timeout": self.timeout_seconds},
            )
            text = response.text
        except google_exceptions.DeadlineExceeded as exc:
            LOGGER.error("Gemini request timed out", extra={"timeout_seconds": self.timeout_seconds})
            return CallOutcome.soft_failure(_SOFT, "timeout", str(exc))
        except google_exceptions.GoogleAPIError as exc:
            LOGGER.error("Gemini request failed", exc_info=exc)
            return CallOutcome.soft_failure(_SOFT, "http_status", str(exc))
        except ValueError as exc:
            # response.text raises when the candidate was blocked or empty
            LOGGER.warning("Gemini returned no text", extra={"detail": str(exc)})
            return CallOutcome.soft_failure(_SOFT, "empty_response", str(exc))

        if not text or not text.strip():
            return CallOutcome.soft_failure(_SOFT, "empty_response")
        return CallOutcome.success(text.strip())


class MockReasoningClient(ReasoningClient):
    """Offline deterministic reasoning client for tests and local demos."""

    def __init__(self, responses: List[str] | None = None) -> None:
        self.responses = list(responses or [])
        self.prompts: List[str] = []
        self.images: List[Tuple[str, ...]] = []

    def _complete(
        self, prompt: str, max_tokens: int, temperature: Optional[float], images: Tuple[str, ...] = ()
    ) -> CallOutcome[str]:
        self.prompts.append(prompt)
        self.images.append(images)
        if not self.responses:
            return CallOutcome.soft_failure(_SOFT, "empty_response")
        return CallOutcome.success(self.responses.pop(0))


def build_reasoning_client(config: ClosetConfig) -> ReasoningClient:
    """Construct the reasoning client selected by ``config.reasoning_provider``."""

    if config.reasoning_provider == "gemini":
        return GeminiReasoningClient(
            api_key=config.gemini_api_key,
            model=config.gemini_model,
            timeout_seconds=config.reasoning_timeout_seconds,
        )
    return ChatCompletionsReasoningClient(
        api_url=config.reasoning_api_url,
        api_key=config.reasoning_api_key,
        model=config.reasoning_model,
        timeout_seconds=config.reasoning_timeout_seconds,
        vision_model=config.reasoning_vision_model,
    )


__all__ = [
    "ReasoningClient",
    "ChatCompletionsReasoningClient",
    "GeminiReasoningClient",
    "MockReasoningClient",
    "build_reasoning_client",
]
