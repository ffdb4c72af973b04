"""Garment selection structures shared by the suggestion engine and renderer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from models.garment import Garment
from models.taxonomy import DRESS_EXCLUSIVE_SLOTS, SLOT_ORDER, validate_slot


class SelectionMode(str, Enum):
    AUTOMATIC = "automatic"
    MANUAL = "manual"


@dataclass(frozen=True)
class GarmentSelection:
    """Outfit slots, each holding one garment or nothing.

    A dress covers the torso and legs, so it can never share a selection with a
    top or a bottom.
    """

    dress: Optional[Garment] = None
    top: Optional[Garment] = None
    bottom: Optional[Garment] = None
    shoes: Optional[Garment] = None

    def __post_init__(self) -> None:
        if self.dress is not None:
            clashing = [slot for slot in DRESS_EXCLUSIVE_SLOTS if getattr(self, slot) is not None]
            if clashing:
                raise ValueError(f"A dress cannot be combined with {clashing}")

    @classmethod
    def from_slots(cls, slots: Dict[str, Garment]) -> "GarmentSelection":
        return cls(**{validate_slot(slot): garment for slot, garment in slots.items()})

    def occupied(self) -> Iterator[Tuple[str, Garment]]:
        """Yield ``(slot, garment)`` pairs in the fixed slot order."""

        for slot in SLOT_ORDER:
            garment = getattr(self, slot)
            if garment is not None:
                yield slot, garment

    @property
    def is_empty(self) -> bool:
        return not any(True for _ in self.occupied())

    def slot_ids(self) -> Dict[str, Optional[str]]:
        return {slot: (getattr(self, slot).garment_id if getattr(self, slot) else None) for slot in SLOT_ORDER}

    def garments(self) -> List[Garment]:
        return [garment for _, garment in self.occupied()]


@dataclass(frozen=True)
class ManualPicks:
    """Garment ids chosen by the user, at most one per slot."""

    dress_id: Optional[str] = None
    top_id: Optional[str] = None
    bottom_id: Optional[str] = None
    shoes_id: Optional[str] = None

    def by_slot(self) -> Dict[str, str]:
        """Return the supplied ids keyed by slot, in slot order."""

        picks: Dict[str, str] = {}
        for slot in SLOT_ORDER:
            value = getattr(self, f"{slot}_id")
            if value is not None and str(value).strip():
                picks[slot] = str(value).strip()
        return picks

    def ids(self) -> List[str]:
        return list(self.by_slot().values())


__all__ = ["SelectionMode", "GarmentSelection", "ManualPicks"]
