"""Suggestion engine tests for manual and automatic garment selection."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import List

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from agents.suggestion_engine import (
    ANALYSIS_UNAVAILABLE,
    DEFAULT_TAGS,
    GENERIC_REASONING,
    SuggestionContext,
    SuggestionEngine,
)
from models.failures import FailureCode, InsufficientWardrobe, InvalidSelection, ItemNotOwned
from models.garment import BodyProfile, Garment
from models.selection import ManualPicks, SelectionMode
from tools.reasoning_client import MockReasoningClient


def _wardrobe() -> List[Garment]:
    def item(garment_id: str, category: str, color: str, name: str, user_id: str = "demo") -> Garment:
        return Garment(
            garment_id=garment_id,
            user_id=user_id,
            category=category,
            name=name,
            color=color,
            front_image=f"https://cdn.example.com/{garment_id}.jpg",
            tags=["casual"],
        )

    return [
        item("t1", "top", "red", "T-shirt"),
        item("b1", "bottom", "blue", "jeans"),
        item("d1", "dress", "black", "slip dress"),
        item("s1", "shoes", "white", "sneakers"),
        item("o1", "outerwear", "camel", "coat"),
        item("x1", "top", "green", "borrowed shirt", user_id="someone-else"),
    ]


@pytest.fixture()
def profile() -> BodyProfile:
    return BodyProfile(user_id="demo", height_cm=168, weight_kg=55, front_photo="https://cdn.example.com/me.jpg")


def _engine(*responses: str) -> SuggestionEngine:
    return SuggestionEngine(MockReasoningClient(list(responses)))


def test_manual_selection_describes_chosen_garments(profile) -> None:
    engine = _engine()
    decision = engine.select_garments(
        _wardrobe(), profile, SuggestionContext(), SelectionMode.MANUAL, ManualPicks(top_id="t1", shoes_id="s1")
    )

    assert decision.selection.slot_ids() == {"dress": None, "top": "t1", "bottom": None, "shoes": "s1"}
    assert decision.reasoning == "Manually selected outfit: top (red T-shirt), shoes (white sneakers)."
    assert decision.occasion == "everyday"
    assert decision.soft_failures == ()
    assert engine.reasoning_client.prompts == []


def test_manual_selection_is_idempotent(profile) -> None:
    engine = _engine()
    picks = ManualPicks(dress_id="d1", shoes_id="s1")
    context = SuggestionContext(occasion="gallery opening")

    first = engine.select_garments(_wardrobe(), profile, context, SelectionMode.MANUAL, picks)
    second = engine.select_garments(_wardrobe(), profile, context, SelectionMode.MANUAL, picks)

    assert first == second
    assert first.occasion == "gallery opening"


def test_outerwear_may_fill_the_top_slot(profile) -> None:
    decision = _engine().select_garments(
        _wardrobe(), profile, SuggestionContext(), SelectionMode.MANUAL, ManualPicks(top_id="o1")
    )
    assert decision.selection.top.garment_id == "o1"


@pytest.mark.parametrize(
    "picks, error",
    [
        (ManualPicks(), InsufficientWardrobe),
        (ManualPicks(top_id="  "), InsufficientWardrobe),
        (ManualPicks(top_id="missing"), ItemNotOwned),
        (ManualPicks(top_id="x1"), ItemNotOwned),
        (ManualPicks(top_id="s1"), InvalidSelection),
        (ManualPicks(dress_id="d1", top_id="t1"), InvalidSelection),
    ],
)
def test_manual_selection_errors(profile, picks, error) -> None:
    with pytest.raises(error):
        _engine().select_garments(_wardrobe(), profile, SuggestionContext(), SelectionMode.MANUAL, picks)


def test_automatic_needs_two_garments(profile) -> None:
    engine = _engine('{"topId": "t1"}')
    with pytest.raises(InsufficientWardrobe):
        engine.select_garments(_wardrobe()[:1], profile, SuggestionContext(), SelectionMode.AUTOMATIC)
    assert engine.reasoning_client.prompts == []


def test_automatic_selection_uses_model_answer(profile) -> None:
    answer = json.dumps(
        {"topId": "t1", "bottomId": "b1", "shoesId": "s1", "reasoning": "Relaxed and bright.", "occasion": "picnic"}
    )
    engine = _engine(f"Here you go:\n```json\n{answer}\n```")

    decision = engine.select_garments(
        _wardrobe(), profile, SuggestionContext(weather="sunny, 24C"), SelectionMode.AUTOMATIC
    )

    assert decision.selection.slot_ids() == {"dress": None, "top": "t1", "bottom": "b1", "shoes": "s1"}
    assert decision.reasoning == "Relaxed and bright."
    assert decision.occasion == "picnic"
    assert decision.soft_failures == ()
    prompt = engine.reasoning_client.prompts[0]
    assert "sunny, 24C" in prompt
    assert '"id": "t1"' in prompt


def test_user_occasion_wins_over_model_occasion(profile) -> None:
    engine = _engine('{"topId": "t1", "shoesId": "s1", "reasoning": "ok", "occasion": "party"}')
    decision = engine.select_garments(
        _wardrobe(), profile, SuggestionContext(occasion="job interview"), SelectionMode.AUTOMATIC
    )
    assert decision.occasion == "job interview"


def test_dress_suggestion_drops_top_and_bottom(profile) -> None:
    engine = _engine('{"dressId": "d1", "topId": "t1", "bottomId": "b1", "shoesId": "s1", "reasoning": "Evening."}')

    decision = engine.select_garments(_wardrobe(), profile, SuggestionContext(), SelectionMode.AUTOMATIC)

    assert decision.selection.slot_ids() == {"dress": "d1", "top": None, "bottom": None, "shoes": "s1"}
    assert [failure.reason for failure in decision.soft_failures] == ["unresolved_ids"]
    assert decision.soft_failures[0].detail == "t1, b1"


def test_unknown_and_foreign_ids_are_dropped(profile) -> None:
    engine = _engine('{"topId": "x1", "bottomId": "ghost", "shoesId": "s1", "reasoning": "Sporty."}')

    decision = engine.select_garments(_wardrobe(), profile, SuggestionContext(), SelectionMode.AUTOMATIC)

    assert decision.selection.slot_ids() == {"dress": None, "top": None, "bottom": None, "shoes": "s1"}
    assert decision.soft_failures[0].code is FailureCode.REASONING_SOFT_FAILURE
    assert decision.soft_failures[0].detail == "x1, ghost"


@pytest.mark.parametrize(
    "responses, reason",
    [
        ((), "empty_response"),
        (("I would wear something nice.",), "no_structured_result"),
        (('{"topId": ["t1", "t2"], "reasoning": "two tops"}',), "malformed_response"),
    ],
)
def test_automatic_soft_failures_return_empty_selection(profile, responses, reason) -> None:
    decision = _engine(*responses).select_garments(
        _wardrobe(), profile, SuggestionContext(occasion="office"), SelectionMode.AUTOMATIC
    )

    assert decision.selection.is_empty
    assert decision.reasoning == GENERIC_REASONING
    assert decision.occasion == "office"
    assert [failure.reason for failure in decision.soft_failures] == [reason]


def test_analyze_wardrobe_returns_markdown(profile) -> None:
    engine = _engine("## Wardrobe analysis\n\n### Suggestion 1\nAdd a neutral coat.")

    analysis = engine.analyze_wardrobe(_wardrobe())

    assert analysis.startswith("## Wardrobe analysis")
    assert "red top (casual)" in engine.reasoning_client.prompts[0]


def test_analyze_wardrobe_degrades_and_rejects_empty_wardrobe() -> None:
    assert _engine().analyze_wardrobe(_wardrobe()) == ANALYSIS_UNAVAILABLE
    with pytest.raises(InsufficientWardrobe):
        _engine().analyze_wardrobe([])


def test_auto_tag_sends_the_photo_and_parses_attributes() -> None:
    answer = '{"name": "Denim jacket", "color": "light blue", "category": "外套", "tags": ["casual", "Casual", "street"]}'
    engine = _engine(f"Sure!\n{answer}")

    result = engine.auto_tag("  iVBORw0KGgo=  ")

    assert result.name == "Denim jacket"
    assert result.color == "light blue"
    assert result.category == "outerwear"
    assert result.tags == ("casual", "street")
    assert not result.degraded
    assert engine.reasoning_client.images == [("iVBORw0KGgo=",)]
    assert "Return only JSON" in engine.reasoning_client.prompts[0]


def test_auto_tag_unknown_category_keeps_other_attributes() -> None:
    engine = _engine('{"name": "Silk scarf", "color": "green", "category": "neckwear", "tags": "formal, gift"}')

    result = engine.auto_tag("https://cdn.example.com/scarf.jpg")

    assert result.name == "Silk scarf"
    assert result.category == DEFAULT_TAGS.category
    assert result.tags == ("formal", "gift")
    assert [failure.reason for failure in result.soft_failures] == ["unknown_category"]
    assert result.soft_failures[0].detail == "neckwear"


def test_auto_tag_fills_missing_fields_with_defaults() -> None:
    result = _engine('{"category": "shoes"}').auto_tag("https://cdn.example.com/boots.jpg")

    assert result.name == DEFAULT_TAGS.name
    assert result.color == DEFAULT_TAGS.color
    assert result.category == "shoes"
    assert result.tags == DEFAULT_TAGS.tags
    assert result.soft_failures == ()


@pytest.mark.parametrize(
    "responses, reason",
    [
        ((), "empty_response"),
        (("It looks like a shirt.",), "no_structured_result"),
        (('{"name": {"en": "shirt"}}',), "malformed_response"),
    ],
)
def test_auto_tag_soft_failures_return_defaults(responses, reason) -> None:
    result = _engine(*responses).auto_tag("https://cdn.example.com/shirt.jpg")

    assert (result.name, result.color, result.category, result.tags) == (
        "Unknown item",
        "unknown",
        "top",
        ("casual",),
    )
    assert [failure.reason for failure in result.soft_failures] == [reason]
    assert result.as_dict()["softFailures"][0]["code"] == "ReasoningSoftFailure"


def test_auto_tag_requires_an_image() -> None:
    engine = _engine('{"name": "shirt"}')
    with pytest.raises(InvalidSelection):
        engine.auto_tag("   ")
    assert engine.reasoning_client.prompts == []
