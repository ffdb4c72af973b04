"""Ordered reference image assembly for the try-on renderer."""
from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple

from models.failures import NoReferenceImages
from models.garment import BodyProfile
from models.references import ReferenceEntry, ReferenceRole, ReferenceSet
from models.selection import GarmentSelection

logger = logging.getLogger(__name__)

_WalkStep = Tuple[ReferenceRole, str, Optional[str], Optional[str]]


def _walk_references(profile: BodyProfile | None, selection: GarmentSelection) -> Iterator[_WalkStep]:
    """Yield ``(role, image, slot, garment_id)`` in renderer order.

    Profile photos come first (front, side, back), then each occupied slot in
    slot order with the garment front and, when present, its back.
    """

    if profile is not None:
        for role, image in (
            (ReferenceRole.PROFILE_FRONT, profile.front_photo),
            (ReferenceRole.PROFILE_SIDE, profile.side_photo),
            (ReferenceRole.PROFILE_BACK, profile.back_photo),
        ):
            if image:
                yield role, image, None, None

    for slot, garment in selection.occupied():
        yield ReferenceRole.GARMENT_FRONT, garment.front_image, slot, garment.garment_id
        if garment.back_image:
            yield ReferenceRole.GARMENT_BACK, garment.back_image, slot, garment.garment_id


def assemble(profile: BodyProfile | None, selection: GarmentSelection) -> ReferenceSet:
    """Build the :class:`ReferenceSet` for a profile and selection.

    Raises :class:`NoReferenceImages` when neither the profile nor any selected
    garment contributes an image.
    """

    entries: List[ReferenceEntry] = []
    for role, image, slot, garment_id in _walk_references(profile, selection):
        entries.append(
            ReferenceEntry(position=len(entries) + 1, role=role, image=image, slot=slot, garment_id=garment_id)
        )

    if not entries:
        raise NoReferenceImages("At least one profile photo or garment photo is required to render a preview")

    reference_set = ReferenceSet(entries=tuple(entries))
    logger.info("Assembled %s reference images: %s", len(reference_set), reference_set.role_map())
    return reference_set


__all__ = ["assemble"]
