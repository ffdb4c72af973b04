"""Try-on rendering with a deterministic local fallback."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from closet_app.logging_config import get_logger, log_event
from logic.fallback_renderer import PreviewContext, render_fallback_preview
from models.failures import FailureCode, NoReferenceImages, SoftFailure
from models.references import ReferenceSet
from models.suggestion import RenderSource
from tools.rendering_client import RenderingClient

logger = get_logger(__name__)


@dataclass(frozen=True)
class RenderOutcome:
    image: str
    source: RenderSource
    failure: Optional[SoftFailure] = None


class RenderOrchestrator:
    """Calls the external renderer once and falls back to the SVG preview.

    There are no retries: a single failed call switches straight to the local
    preview.
    """

    def __init__(self, rendering_client: RenderingClient) -> None:
        self.rendering_client = rendering_client

    def render(self, reference_set: ReferenceSet, prompt: str, preview: PreviewContext) -> RenderOutcome:
        if reference_set is None or len(reference_set) == 0:
            raise NoReferenceImages("Nothing to render: the reference set is empty")

        outcome = self.rendering_client.generate(reference_set.images, prompt)
        if outcome.ok and outcome.value:
            log_event(
                logger,
                level=logging.INFO,
                event="render_completed",
                source=RenderSource.EXTERNAL.value,
                reference_count=len(reference_set),
            )
            return RenderOutcome(image=outcome.value, source=RenderSource.EXTERNAL)

        failure = outcome.failure or SoftFailure(FailureCode.RENDER_SOFT_FAILURE, "missing_image")
        log_event(
            logger,
            level=logging.WARNING,
            event="render_fallback",
            reason=failure.reason,
            reference_count=len(reference_set),
        )
        image = render_fallback_preview(preview)
        return RenderOutcome(image=image, source=RenderSource.FALLBACK, failure=failure)


__all__ = ["RenderOrchestrator", "RenderOutcome"]
