"""Closet Stylist app bootstrap."""

import logging
from typing import Any, Dict, Optional

from closet_app.config import ClosetConfig
from closet_app.logging_config import configure_logging, get_logger, log_event, operation_context
from agents.pipeline_coordinator import PipelineCoordinator
from agents.render_orchestrator import RenderOrchestrator
from agents.suggestion_engine import SuggestionEngine
from models.failures import PipelineError, PipelineFailure
from models.selection import ManualPicks, SelectionMode
from models.suggestion import SuggestionResult
from tools.item_store import ItemStore, SQLiteItemStore
from tools.reasoning_client import ReasoningClient, build_reasoning_client
from tools.rendering_client import RenderingClient, build_rendering_client


LOGGER = get_logger(__name__)


class ClosetStylistApp:
    """Wires the item store, the two service clients and the pipeline together.

    Every collaborator can be injected; anything not supplied is built from
    :class:`ClosetConfig`.
    """

    def __init__(
        self,
        config: ClosetConfig | None = None,
        item_store: ItemStore | None = None,
        reasoning_client: ReasoningClient | None = None,
        rendering_client: RenderingClient | None = None,
    ) -> None:
        self.config = config or ClosetConfig.from_env()
        configure_logging()

        self.item_store = item_store or SQLiteItemStore(self.config.item_store_path or "data/closet.db")
        self.reasoning_client = reasoning_client or build_reasoning_client(self.config)
        self.rendering_client = rendering_client or build_rendering_client(self.config)

        self.suggestion_engine = SuggestionEngine(self.reasoning_client)
        self.render_orchestrator = RenderOrchestrator(self.rendering_client)
        self.pipeline = PipelineCoordinator(
            item_store=self.item_store,
            suggestion_engine=self.suggestion_engine,
            render_orchestrator=self.render_orchestrator,
        )

    def compose_outfit(
        self,
        *,
        user_id: str,
        mode: SelectionMode | str = SelectionMode.AUTOMATIC,
        picks: ManualPicks | None = None,
        occasion: str = "",
        weather: str = "",
        extra_instruction: Optional[str] = None,
    ) -> SuggestionResult | PipelineError:
        """Run the composition pipeline for one user request."""

        return self.pipeline.compose(
            user_id,
            mode=mode,
            picks=picks,
            occasion=occasion,
            weather=weather,
            extra_instruction=extra_instruction,
        )

    def try_on(
        self,
        *,
        user_id: str,
        picks: ManualPicks,
        occasion: str = "",
        extra_instruction: Optional[str] = None,
    ) -> SuggestionResult | PipelineError:
        return self.pipeline.try_on(user_id, picks, occasion=occasion, extra_instruction=extra_instruction)

    def analyze_wardrobe(self, *, user_id: str) -> Dict[str, Any]:
        """Return a Markdown wardrobe analysis or a typed error payload."""

        with operation_context("app:analyze_wardrobe") as correlation_id:
            inventory = self.item_store.get_inventory(user_id)
            try:
                analysis = self.suggestion_engine.analyze_wardrobe(inventory)
            except PipelineFailure as failure:
                return PipelineError.from_failure(failure).as_dict()
            log_event(
                LOGGER,
                level=logging.INFO,
                event="app_call_completed",
                method="analyze_wardrobe",
                correlation_id=correlation_id,
                item_count=len(inventory),
            )
            return {"status": "ok", "analysis": analysis, "itemCount": len(inventory)}

    def auto_tag(self, *, image: str) -> Dict[str, Any]:
        """Suggest name, colour, category and tags for a garment photo."""

        with operation_context("app:auto_tag") as correlation_id:
            try:
                result = self.suggestion_engine.auto_tag(image)
            except PipelineFailure as failure:
                return PipelineError.from_failure(failure).as_dict()
            log_event(
                LOGGER,
                level=logging.INFO,
                event="app_call_completed",
                method="auto_tag",
                correlation_id=correlation_id,
                degraded=result.degraded,
            )
            return result.as_dict()

    def renderer_status(self) -> Dict[str, object]:
        return self.rendering_client.check_connection()


__all__ = ["ClosetStylistApp"]
