"""Top-level outfit composition pipeline."""
from __future__ import annotations

import logging
from typing import List, Optional, Union

from agents.render_orchestrator import RenderOrchestrator
from agents.suggestion_engine import MIN_AUTOMATIC_INVENTORY, SuggestionContext, SuggestionEngine
from closet_app.logging_config import get_logger, log_event, operation_context
from logic.fallback_renderer import PreviewContext
from logic.prompt_synthesizer import build_prompt
from logic.reference_assembler import assemble
from models.failures import (
    InsufficientWardrobe,
    InvalidSelection,
    PipelineError,
    PipelineFailure,
    ProfileRequired,
)
from models.garment import Garment
from models.selection import ManualPicks, SelectionMode
from models.suggestion import SuggestionResult
from tools.item_store import ItemStore

LOGGER = get_logger(__name__)


def _resolve_mode(mode: SelectionMode | str) -> SelectionMode:
    try:
        return SelectionMode(mode)
    except ValueError as exc:
        allowed = [member.value for member in SelectionMode]
        raise InvalidSelection(f"Unknown selection mode '{mode}'. Allowed: {allowed}", mode=str(mode)) from exc


class PipelineCoordinator:
    """Runs one composition request from profile lookup to rendered preview.

    Steps run in a fixed order and stop at the first fatal failure, which is
    returned as a :class:`PipelineError` rather than raised. Soft failures from
    the reasoning and rendering services are absorbed and listed on the
    :class:`SuggestionResult`.
    """

    def __init__(
        self,
        item_store: ItemStore,
        suggestion_engine: SuggestionEngine,
        render_orchestrator: RenderOrchestrator,
    ) -> None:
        self.item_store = item_store
        self.suggestion_engine = suggestion_engine
        self.render_orchestrator = render_orchestrator

    def compose(
        self,
        user_id: str,
        mode: SelectionMode | str = SelectionMode.AUTOMATIC,
        picks: Optional[ManualPicks] = None,
        occasion: str = "",
        weather: str = "",
        extra_instruction: Optional[str] = None,
        correlation_id: str | None = None,
    ) -> Union[SuggestionResult, PipelineError]:
        mode_label = mode.value if isinstance(mode, SelectionMode) else str(mode)
        with operation_context("pipeline.compose", correlation_id) as scoped_id:
            log_event(
                LOGGER,
                level=logging.INFO,
                event="pipeline_started",
                mode=mode_label,
                correlation_id=scoped_id,
                user_id=user_id,
            )
            try:
                selection_mode = _resolve_mode(mode)
                result = self._run(user_id, selection_mode, picks, occasion or "", weather or "", extra_instruction)
            except PipelineFailure as failure:
                log_event(
                    LOGGER,
                    level=logging.WARNING,
                    event="pipeline_aborted",
                    mode=mode_label,
                    code=failure.code.value,
                    detail=failure.message,
                    correlation_id=scoped_id,
                )
                return PipelineError.from_failure(failure)

            log_event(
                LOGGER,
                level=logging.INFO,
                event="pipeline_completed",
                mode=mode_label,
                render_source=result.render_source.value,
                soft_failures=[failure.reason for failure in result.soft_failures],
                correlation_id=scoped_id,
            )
            return result

    def try_on(
        self,
        user_id: str,
        picks: ManualPicks,
        occasion: str = "",
        extra_instruction: Optional[str] = None,
    ) -> Union[SuggestionResult, PipelineError]:
        """Render explicitly chosen garments on the user."""

        return self.compose(
            user_id,
            mode=SelectionMode.MANUAL,
            picks=picks,
            occasion=occasion,
            extra_instruction=extra_instruction,
        )

    def _run(
        self,
        user_id: str,
        mode: SelectionMode,
        picks: Optional[ManualPicks],
        occasion: str,
        weather: str,
        extra_instruction: Optional[str],
    ) -> SuggestionResult:
        profile = self.item_store.get_profile(user_id)
        if profile is None:
            raise ProfileRequired("Complete your body profile before requesting an outfit")

        inventory = self._load_inventory(user_id, mode, picks)

        context = SuggestionContext(weather=weather, occasion=occasion)
        decision = self.suggestion_engine.select_garments(inventory, profile, context, mode, picks)

        reference_set = assemble(profile, decision.selection)
        prompt = build_prompt(profile, decision.selection, reference_set, decision.occasion, extra_instruction)
        preview = PreviewContext(
            profile=profile,
            selection=decision.selection,
            occasion=decision.occasion,
            reasoning=decision.reasoning,
        )
        render = self.render_orchestrator.render(reference_set, prompt, preview)

        soft_failures = decision.soft_failures + ((render.failure,) if render.failure else ())
        return SuggestionResult(
            selection=decision.selection,
            reasoning=decision.reasoning,
            occasion=decision.occasion,
            preview_image=render.image,
            render_source=render.source,
            soft_failures=soft_failures,
        )

    def _load_inventory(self, user_id: str, mode: SelectionMode, picks: Optional[ManualPicks]) -> List[Garment]:
        if mode is SelectionMode.MANUAL:
            requested = picks.ids() if picks else []
            if not requested:
                raise InsufficientWardrobe("Manual mode needs at least one garment id")
            return self.item_store.get_garments_by_ids(user_id, requested)

        inventory = self.item_store.get_inventory(user_id)
        if len(inventory) < MIN_AUTOMATIC_INVENTORY:
            raise InsufficientWardrobe(
                f"Add at least {MIN_AUTOMATIC_INVENTORY} garments to get an automatic suggestion",
                inventory_size=len(inventory),
            )
        return inventory


__all__ = ["PipelineCoordinator"]
