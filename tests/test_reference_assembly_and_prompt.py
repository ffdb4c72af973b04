"""Reference ordering and render prompt consistency tests."""
from __future__ import annotations

import itertools
import re
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.prompt_synthesizer import build_prompt
from logic.reference_assembler import assemble
from models.failures import NoReferenceImages
from models.garment import BodyProfile, Garment
from models.references import ReferenceRole
from models.selection import GarmentSelection


def _garment(garment_id: str, category: str, color: str, name: str, back: bool = False) -> Garment:
    return Garment(
        garment_id=garment_id,
        user_id="demo",
        category=category,
        name=name,
        color=color,
        front_image=f"https://cdn.example.com/{garment_id}-front.jpg",
        back_image=f"https://cdn.example.com/{garment_id}-back.jpg" if back else None,
    )


def _profile(front: bool = True, side: bool = False, back: bool = False) -> BodyProfile:
    return BodyProfile(
        user_id="demo",
        height_cm=168,
        weight_kg=55,
        front_photo="https://cdn.example.com/me-front.jpg" if front else None,
        side_photo="https://cdn.example.com/me-side.jpg" if side else None,
        back_photo="https://cdn.example.com/me-back.jpg" if back else None,
    )


def _cited_positions(prompt: str) -> List[int]:
    return [int(value) for value in re.findall(r"image (\d+)", prompt)]


def _independent_positions(profile: BodyProfile, selection: GarmentSelection) -> Dict[str, List[int]]:
    """Recount positions from scratch: profile photos, then slots in order."""

    counter = sum(1 for photo in (profile.front_photo, profile.side_photo, profile.back_photo) if photo)
    positions: Dict[str, List[int]] = {}
    for slot in ("dress", "top", "bottom", "shoes"):
        garment: Optional[Garment] = getattr(selection, slot)
        if garment is None:
            continue
        counter += 1
        positions[slot] = [counter]
        if garment.back_image:
            counter += 1
            positions[slot].append(counter)
    return positions


def test_front_photo_top_and_shoes_scenario() -> None:
    profile = _profile(front=True)
    top = _garment("t1", "top", "red", "T-shirt")
    shoes = _garment("s1", "shoes", "white", "sneakers")
    selection = GarmentSelection(top=top, shoes=shoes)

    reference_set = assemble(profile, selection)

    assert len(reference_set) == 3
    assert reference_set.role_map() == {1: "profile_front", 2: "garment_front", 3: "garment_front"}
    assert reference_set.images == [profile.front_photo, top.front_image, shoes.front_image]
    assert reference_set.positions_for_slot("top") == [2]
    assert reference_set.positions_for_slot("shoes") == [3]

    prompt = build_prompt(profile, selection, reference_set, "weekend brunch")
    identity, garments = prompt.split("\n")[1:3]
    assert "image 1" in identity
    assert "red T-shirt shown in image 2" in garments
    assert "white sneakers shown in image 3" in garments
    assert "weekend brunch" in prompt


def test_absent_profile_photos_leave_no_gaps() -> None:
    profile = _profile(front=False, side=True, back=True)
    dress = _garment("d1", "dress", "navy", "wrap dress", back=True)
    selection = GarmentSelection(dress=dress)

    reference_set = assemble(profile, selection)

    assert [entry.position for entry in reference_set.entries] == [1, 2, 3, 4]
    assert [entry.role for entry in reference_set.entries] == [
        ReferenceRole.PROFILE_SIDE,
        ReferenceRole.PROFILE_BACK,
        ReferenceRole.GARMENT_FRONT,
        ReferenceRole.GARMENT_BACK,
    ]
    prompt = build_prompt(profile, selection, reference_set)
    assert "navy wrap dress shown in image 3 and image 4" in prompt
    assert "worn as a dress" in prompt


def test_slots_follow_dress_top_bottom_shoes_order() -> None:
    profile = _profile(front=True)
    selection = GarmentSelection(
        shoes=_garment("s1", "shoes", "black", "loafers"),
        bottom=_garment("b1", "bottom", "grey", "trousers", back=True),
        top=_garment("t1", "outerwear", "camel", "coat"),
    )

    reference_set = assemble(profile, selection)

    assert [entry.slot for entry in reference_set.entries] == [None, "top", "bottom", "bottom", "shoes"]
    prompt = build_prompt(profile, selection, reference_set)
    assert prompt.index("camel coat") < prompt.index("grey trousers") < prompt.index("black loafers")
    assert "worn as an outer layer" in prompt


def test_garments_without_profile_photos_still_render() -> None:
    profile = _profile(front=False)
    selection = GarmentSelection(top=_garment("t1", "top", "green", "polo"))

    reference_set = assemble(profile, selection)
    prompt = build_prompt(profile, selection, reference_set)

    assert reference_set.images == ["https://cdn.example.com/t1-front.jpg"]
    assert "No photo of the person was provided" in prompt
    assert "168 cm" in prompt and "55 kg" in prompt
    assert "green polo shown in image 1" in prompt


def test_empty_reference_set_fails() -> None:
    with pytest.raises(NoReferenceImages):
        assemble(_profile(front=False), GarmentSelection())


def test_profile_only_selection_is_still_assembled() -> None:
    profile = _profile(front=True, side=True)
    reference_set = assemble(profile, GarmentSelection())
    prompt = build_prompt(profile, GarmentSelection(), reference_set)

    assert len(reference_set) == 2
    assert "No garments were selected" in prompt
    assert set(_cited_positions(prompt)) == {1, 2}


def test_extra_instruction_is_appended_verbatim_before_output_clause() -> None:
    profile = _profile(front=True)
    selection = GarmentSelection(top=_garment("t1", "top", "red", "T-shirt"))
    reference_set = assemble(profile, selection)
    extra = "  Roll the sleeves up once.  "

    prompt = build_prompt(profile, selection, reference_set, "office", extra_instruction=extra)

    lines = prompt.split("\n")
    assert extra in lines
    assert lines.index(extra) == len(lines) - 2
    assert lines[-1].startswith("[Output] Scene: office.")


def test_prompt_rejects_selection_missing_from_reference_set() -> None:
    profile = _profile(front=True)
    reference_set = assemble(profile, GarmentSelection(top=_garment("t1", "top", "red", "T-shirt")))
    other = GarmentSelection(top=_garment("t2", "top", "blue", "shirt"))

    with pytest.raises(ValueError):
        build_prompt(profile, other, reference_set)


@pytest.mark.parametrize(
    "photos, dress_or_separates, shoes_present, backs",
    list(
        itertools.product(
            [(True, False, False), (False, True, True), (True, True, True), (False, False, False)],
            ["dress", "separates", "none"],
            [True, False],
            [True, False],
        )
    ),
)
def test_prompt_positions_match_reference_positions(photos, dress_or_separates, shoes_present, backs) -> None:
    profile = _profile(*photos)
    slots: Dict[str, Garment] = {}
    if dress_or_separates == "dress":
        slots["dress"] = _garment("d1", "dress", "black", "slip dress", back=backs)
    elif dress_or_separates == "separates":
        slots["top"] = _garment("t1", "top", "white", "shirt", back=backs)
        slots["bottom"] = _garment("b1", "bottom", "blue", "jeans", back=not backs)
    if shoes_present:
        slots["shoes"] = _garment("s1", "shoes", "tan", "boots", back=backs)
    selection = GarmentSelection.from_slots(slots)

    if not profile.has_photos and not slots:
        with pytest.raises(NoReferenceImages):
            assemble(profile, selection)
        return

    reference_set = assemble(profile, selection)
    prompt = build_prompt(profile, selection, reference_set)

    cited = _cited_positions(prompt)
    assert set(cited) <= set(range(1, len(reference_set) + 1))
    expected = _independent_positions(profile, selection)
    for slot, positions in expected.items():
        assert reference_set.positions_for_slot(slot) == positions
    assert sorted(set(cited)) == list(range(1, len(reference_set) + 1))


def test_whitespace_extra_instruction_is_still_appended_verbatim() -> None:
    profile = _profile(front=True)
    selection = GarmentSelection(top=_garment("t1", "top", "red", "T-shirt"))
    reference_set = assemble(profile, selection)

    with_blank = build_prompt(profile, selection, reference_set, extra_instruction="   ")
    without = build_prompt(profile, selection, reference_set)

    assert with_blank.split("\n")[-2] == "   "
    assert len(with_blank.split("\n")) == len(without.split("\n")) + 1
