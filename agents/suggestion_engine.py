"""Garment selection in automatic (reasoning service) and manual modes, plus photo auto-tagging."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple

from pydantic import ValidationError

from closet_app.logging_config import get_logger, log_event
from logic.json_extraction import extract_json_object
from logic.prompt_synthesizer import DEFAULT_OCCASION
from logic.validation import GarmentTagsPayload, OutfitSuggestionPayload, describe_validation_error
from models.failures import (
    FailureCode,
    InsufficientWardrobe,
    InvalidSelection,
    ItemNotOwned,
    SoftFailure,
)
from models.garment import BodyProfile, Garment
from models.selection import GarmentSelection, ManualPicks, SelectionMode
from models.suggestion import AutoTagResult
from models.taxonomy import (
    CATEGORIES,
    DRESS_EXCLUSIVE_SLOTS,
    SLOT_ORDER,
    category_fits_slot,
    normalise_tags,
    validate_category,
)
from tools.reasoning_client import ReasoningClient

logger = get_logger(__name__)

MIN_AUTOMATIC_INVENTORY = 2
GENERIC_REASONING = "A styling suggestion could not be generated right now. Pick garments manually or try again."
ANALYSIS_UNAVAILABLE = "Wardrobe analysis is unavailable right now. Please try again later."
AUTO_TAG_MAX_TOKENS = 500
DEFAULT_TAGS = AutoTagResult(name="Unknown item", color="unknown", category="top", tags=("casual",))


@dataclass(frozen=True)
class SuggestionContext:
    """Optional free-text context for a suggestion."""

    weather: str = ""
    occasion: str = ""

    @property
    def resolved_occasion(self) -> str:
        return self.occasion.strip() or DEFAULT_OCCASION


@dataclass(frozen=True)
class EngineDecision:
    selection: GarmentSelection
    reasoning: str
    occasion: str
    soft_failures: Tuple[SoftFailure, ...] = field(default_factory=tuple)


class SuggestionEngine:
    """Chooses garments for the outfit slots.

    Automatic mode is advisory: whatever the reasoning service answers, the
    engine returns a valid selection, falling back to an empty one.
    """

    def __init__(self, reasoning_client: ReasoningClient, max_tokens: int = 1000, temperature: float = 0.7) -> None:
        self.reasoning_client = reasoning_client
        self.max_tokens = max_tokens
        self.temperature = temperature

    def select_garments(
        self,
        inventory: List[Garment],
        profile: BodyProfile,
        context: SuggestionContext,
        mode: SelectionMode,
        picks: Optional[ManualPicks] = None,
    ) -> EngineDecision:
        log_event(
            logger,
            level=logging.INFO,
            event="selection_started",
            mode=mode.value,
            inventory_size=len(inventory),
        )
        if mode is SelectionMode.MANUAL:
            decision = self._select_manual(inventory, profile, context, picks or ManualPicks())
        else:
            decision = self._select_automatic(inventory, profile, context)
        log_event(
            logger,
            level=logging.INFO,
            event="selection_completed",
            mode=mode.value,
            slots=decision.selection.slot_ids(),
            soft_failures=[failure.reason for failure in decision.soft_failures],
        )
        return decision

    def _select_manual(
        self,
        inventory: List[Garment],
        profile: BodyProfile,
        context: SuggestionContext,
        picks: ManualPicks,
    ) -> EngineDecision:
        requested = picks.by_slot()
        if not requested:
            raise InsufficientWardrobe("Manual mode needs at least one garment id")

        owned = {garment.garment_id: garment for garment in inventory if garment.user_id == profile.user_id}
        slots: Dict[str, Garment] = {}
        for slot, garment_id in requested.items():
            garment = owned.get(garment_id)
            if garment is None:
                raise ItemNotOwned(f"Garment {garment_id} does not exist or is not yours", slot=slot)
            if not category_fits_slot(garment.category, slot):
                raise InvalidSelection(
                    f"Garment {garment_id} is a {garment.category} and cannot be worn as {slot}",
                    slot=slot,
                )
            slots[slot] = garment

        if "dress" in slots and any(slot in slots for slot in DRESS_EXCLUSIVE_SLOTS):
            raise InvalidSelection("A dress cannot be combined with a top or bottom")

        selection = GarmentSelection.from_slots(slots)
        described = ", ".join(
            f"{slot} ({' '.join(part for part in (garment.color, garment.name) if part) or garment.category})"
            for slot, garment in selection.occupied()
        )
        reasoning = f"Manually selected outfit: {described}."
        return EngineDecision(selection=selection, reasoning=reasoning, occasion=context.resolved_occasion)

    def build_selection_prompt(
        self, inventory: List[Garment], profile: BodyProfile, context: SuggestionContext
    ) -> str:
        wardrobe = json.dumps([garment.inventory_entry() for garment in inventory], indent=2, ensure_ascii=False)
        return (
            "As a professional fashion stylist, recommend one outfit from the wardrobe below.\n\n"
            f"Body profile: height {profile.height_cm:g} cm, weight {profile.weight_kg:g} kg\n"
            f"Weather: {context.weather.strip() or 'not specified'}\n"
            f"Occasion: {context.occasion.strip() or 'not specified'}\n\n"
            f"Available wardrobe:\n{wardrobe}\n\n"
            "Recommend either top + bottom + shoes, or dress + shoes. Use only ids from the wardrobe, "
            "at most one id per slot, and omit slots you leave empty. Return a JSON object:\n"
            '{"topId": "top id", "bottomId": "bottom id", "shoesId": "shoes id", "dressId": "dress id", '
            '"reasoning": "why this outfit works, under 100 words", "occasion": "the occasion"}\n'
            "Return only JSON."
        )

    def _select_automatic(
        self, inventory: List[Garment], profile: BodyProfile, context: SuggestionContext
    ) -> EngineDecision:
        if len(inventory) < MIN_AUTOMATIC_INVENTORY:
            raise InsufficientWardrobe(
                f"Automatic suggestions need at least {MIN_AUTOMATIC_INVENTORY} garments",
                inventory_size=len(inventory),
            )

        prompt = self.build_selection_prompt(inventory, profile, context)
        outcome = self.reasoning_client.complete(prompt, max_tokens=self.max_tokens, temperature=self.temperature)
        if not outcome.ok:
            return self._default_decision(context, outcome.failure)

        raw = extract_json_object(outcome.value)
        if raw is None:
            return self._default_decision(
                context,
                SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "no_structured_result"),
            )
        try:
            payload = OutfitSuggestionPayload.model_validate(raw)
        except ValidationError as exc:
            return self._default_decision(
                context,
                SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "malformed_response", describe_validation_error(exc)),
            )

        selection, dropped = self._resolve_payload(payload, inventory, profile.user_id)
        soft_failures: Tuple[SoftFailure, ...] = ()
        if dropped:
            soft_failures = (
                SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "unresolved_ids", ", ".join(dropped)),
            )
        return EngineDecision(
            selection=selection,
            reasoning=payload.reasoning or GENERIC_REASONING,
            occasion=context.occasion.strip() or payload.occasion or DEFAULT_OCCASION,
            soft_failures=soft_failures,
        )

    def _resolve_payload(
        self, payload: OutfitSuggestionPayload, inventory: List[Garment], user_id: str
    ) -> Tuple[GarmentSelection, List[str]]:
        """Map suggested ids onto owned garments; return the selection and dropped ids."""

        owned = {garment.garment_id: garment for garment in inventory if garment.user_id == user_id}
        slots: Dict[str, Garment] = {}
        dropped: List[str] = []
        for slot, garment_id in payload.slot_ids().items():
            if garment_id is None:
                continue
            garment = owned.get(garment_id)
            if garment is None or not category_fits_slot(garment.category, slot):
                logger.warning("Dropping suggested %s id %s: not an owned %s garment", slot, garment_id, slot)
                dropped.append(garment_id)
                continue
            slots[slot] = garment

        if "dress" in slots:
            for slot in DRESS_EXCLUSIVE_SLOTS:
                clashing = slots.pop(slot, None)
                if clashing is not None:
                    logger.warning("Dropping %s %s because a dress was suggested", slot, clashing.garment_id)
                    dropped.append(clashing.garment_id)

        ordered = {slot: slots[slot] for slot in SLOT_ORDER if slot in slots}
        return GarmentSelection.from_slots(ordered), dropped

    def _default_decision(self, context: SuggestionContext, failure: Optional[SoftFailure]) -> EngineDecision:
        failure = failure or SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "unknown")
        log_event(
            logger,
            level=logging.WARNING,
            event="selection_degraded",
            reason=failure.reason,
        )
        return EngineDecision(
            selection=GarmentSelection(),
            reasoning=GENERIC_REASONING,
            occasion=context.resolved_occasion,
            soft_failures=(failure,),
        )

    def analyze_wardrobe(self, inventory: List[Garment]) -> str:
        """Ask the reasoning service for three wardrobe improvement suggestions."""

        if not inventory:
            raise InsufficientWardrobe("The wardrobe is empty; add garments before requesting an analysis")

        summary = "; ".join(
            f"{garment.color} {garment.category} ({', '.join(garment.tags)})".strip() for garment in inventory
        )
        prompt = (
            "Analyse the wardrobe below and give three improvement suggestions.\n\n"
            f"{summary}\n\n"
            "Reply in Markdown and cover:\n"
            "1. Colour coordination\n"
            "2. Category completeness\n"
            "3. Style variety\n\n"
            "Format:\n## Wardrobe analysis\n\n### Suggestion 1\n...\n\n### Suggestion 2\n...\n\n### Suggestion 3\n..."
        )
        outcome = self.reasoning_client.complete(prompt, max_tokens=1500)
        if not outcome.ok:
            log_event(logger, level=logging.WARNING, event="analysis_degraded", reason=outcome.failure.reason)
            return ANALYSIS_UNAVAILABLE
        return outcome.value

    def build_auto_tag_prompt(self) -> str:
        return (
            "Look at this clothing photo and describe the garment.\n\n"
            "Return a JSON object:\n"
            '{"name": "short garment name", "color": "main colour", '
            f'"category": "one of {", ".join(CATEGORIES)}", '
            '"tags": ["two or three style tags, e.g. casual, formal, sporty"]}\n'
            "Return only JSON."
        )

    def auto_tag(self, image: str) -> AutoTagResult:
        """Suggest a name, colour, category and style tags for a garment photo.

        Service problems never fail the call: unusable answers fall back to
        neutral defaults and the reason is listed on the result.
        """

        if not image or not image.strip():
            raise InvalidSelection("An image is required for auto-tagging")

        outcome = self.reasoning_client.complete(
            self.build_auto_tag_prompt(), max_tokens=AUTO_TAG_MAX_TOKENS, images=[image.strip()]
        )
        if not outcome.ok:
            return self._default_tags(outcome.failure)

        raw = extract_json_object(outcome.value)
        if raw is None:
            return self._default_tags(SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "no_structured_result"))
        try:
            payload = GarmentTagsPayload.model_validate(raw)
        except ValidationError as exc:
            return self._default_tags(
                SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "malformed_response", describe_validation_error(exc))
            )

        soft_failures: Tuple[SoftFailure, ...] = ()
        try:
            category = validate_category(payload.category)
        except ValueError:
            logger.warning(
                "Vision model answered unknown category %r; using %s", payload.category, DEFAULT_TAGS.category
            )
            category = DEFAULT_TAGS.category
            soft_failures = (
                SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "unknown_category", payload.category),
            )

        result = AutoTagResult(
            name=payload.name or DEFAULT_TAGS.name,
            color=payload.color or DEFAULT_TAGS.color,
            category=category,
            tags=tuple(normalise_tags(payload.tags)) or DEFAULT_TAGS.tags,
            soft_failures=soft_failures,
        )
        log_event(
            logger,
            level=logging.INFO,
            event="auto_tag_completed",
            category=result.category,
            tags=list(result.tags),
            soft_failures=[failure.reason for failure in result.soft_failures],
        )
        return result

    def _default_tags(self, failure: Optional[SoftFailure]) -> AutoTagResult:
        failure = failure or SoftFailure(FailureCode.REASONING_SOFT_FAILURE, "unknown")
        log_event(logger, level=logging.WARNING, event="auto_tag_degraded", reason=failure.reason)
        return replace(DEFAULT_TAGS, soft_failures=(failure,))


__all__ = [
    "SuggestionEngine",
    "SuggestionContext",
    "EngineDecision",
    "GENERIC_REASONING",
    "ANALYSIS_UNAVAILABLE",
    "DEFAULT_TAGS",
    "MIN_AUTOMATIC_INVENTORY",
]
