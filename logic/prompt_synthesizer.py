"""Render instruction synthesis for the virtual try-on preview.

The prompt cites reference images by number. Every number is read from the
:class:`~models.references.ReferenceSet` produced by
:func:`logic.reference_assembler.assemble`, so the text can only point at
images that are actually sent to the renderer.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from models.garment import BodyProfile, Garment
from models.references import ReferenceRole, ReferenceSet
from models.selection import GarmentSelection

logger = logging.getLogger(__name__)

DEFAULT_OCCASION = "everyday"

_PROFILE_VIEW_LABELS = {
    ReferenceRole.PROFILE_FRONT: "a front full-body photo of the person",
    ReferenceRole.PROFILE_SIDE: "a side view of the person",
    ReferenceRole.PROFILE_BACK: "a back view of the person",
}

_WEAR_AS = {
    "top": "a top",
    "bottom": "bottoms",
    "dress": "a dress",
    "outerwear": "an outer layer",
    "shoes": "footwear",
    "accessory": "an accessory",
}


def _cite(positions: List[int]) -> str:
    labels = [f"image {position}" for position in positions]
    if len(labels) == 1:
        return labels[0]
    return ", ".join(labels[:-1]) + f" and {labels[-1]}"


def _describe(garment: Garment) -> str:
    words = " ".join(part for part in (garment.color, garment.name) if part)
    return words or garment.category


def _identity_clause(profile: BodyProfile, reference_set: ReferenceSet) -> str:
    profile_positions = reference_set.profile_positions()
    if not profile_positions:
        return (
            "[Identity] No photo of the person was provided. Depict one realistic adult model "
            f"about {profile.height_cm:g} cm tall and {profile.weight_kg:g} kg, keeping that build consistent."
        )

    views = [
        f"image {position} is {_PROFILE_VIEW_LABELS[role]}"
        for role, position in sorted(profile_positions.items(), key=lambda item: item[1])
    ]
    return (
        "[Identity - must be followed strictly] "
        + "; ".join(views)
        + ". Keep this person's facial features, hairstyle and hair colour, body proportions, height, build "
        "and skin tone exactly as shown. The output must depict the same individual, never a different person."
    )


def _garment_clause(selection: GarmentSelection, reference_set: ReferenceSet) -> str:
    sentences = []
    for slot, garment in selection.occupied():
        positions = [
            entry.position
            for entry in reference_set.entries
            if entry.slot == slot and entry.garment_id == garment.garment_id
        ]
        if not positions:
            raise ValueError(
                f"Garment {garment.garment_id} in slot '{slot}' has no reference image; "
                "assemble the reference set from the same selection"
            )
        sentences.append(
            f"Dress the person in the {_describe(garment)} shown in {_cite(positions)}, "
            f"worn as {_WEAR_AS[garment.category]}."
        )
    if not sentences:
        return "[Garments] No garments were selected; keep the person's current clothing."
    return "[Garments] " + " ".join(sentences)


def _output_clause(occasion: str) -> str:
    return (
        f"[Output] Scene: {occasion}. Full-body, front-facing photo, natural lighting, 8K high resolution. "
        "The person must be the same individual as in the reference images with identical facial features. "
        "Garment details sharp, fabric texture realistic, overall look natural."
    )


def build_prompt(
    profile: BodyProfile,
    selection: GarmentSelection,
    reference_set: ReferenceSet,
    occasion: str = DEFAULT_OCCASION,
    extra_instruction: Optional[str] = None,
) -> str:
    """Compose the four-clause try-on instruction."""

    clauses = [
        "Virtual try-on photo generation task.",
        _identity_clause(profile, reference_set),
        _garment_clause(selection, reference_set),
    ]
    if extra_instruction is not None:
        clauses.append(extra_instruction)
    clauses.append(_output_clause(occasion.strip() or DEFAULT_OCCASION))

    prompt = "\n".join(clauses)
    logger.info("Built try-on prompt with %s characters for %s references", len(prompt), len(reference_set))
    return prompt


__all__ = ["build_prompt", "DEFAULT_OCCASION"]
