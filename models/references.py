"""Ordered reference images handed to the renderer and cited by the prompt."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ReferenceRole(str, Enum):
    PROFILE_FRONT = "profile_front"
    PROFILE_SIDE = "profile_side"
    PROFILE_BACK = "profile_back"
    GARMENT_FRONT = "garment_front"
    GARMENT_BACK = "garment_back"


PROFILE_ROLES = (ReferenceRole.PROFILE_FRONT, ReferenceRole.PROFILE_SIDE, ReferenceRole.PROFILE_BACK)


@dataclass(frozen=True)
class ReferenceEntry:
    position: int
    role: ReferenceRole
    image: str
    slot: Optional[str] = None
    garment_id: Optional[str] = None


@dataclass(frozen=True)
class ReferenceSet:
    """Reference images with their 1-based positions and roles.

    Positions are contiguous from 1. The image payload sent to the renderer and
    the positions cited in the prompt both come from :attr:`entries`.
    """

    entries: Tuple[ReferenceEntry, ...]

    def __post_init__(self) -> None:
        positions = [entry.position for entry in self.entries]
        if positions != list(range(1, len(positions) + 1)):
            raise ValueError(f"Reference positions must be contiguous from 1, got {positions}")

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def images(self) -> List[str]:
        """Image references in position order, as sent to the renderer."""

        return [entry.image for entry in self.entries]

    def profile_positions(self) -> Dict[ReferenceRole, int]:
        return {entry.role: entry.position for entry in self.entries if entry.role in PROFILE_ROLES}

    def positions_for_slot(self, slot: str) -> List[int]:
        return [entry.position for entry in self.entries if entry.slot == slot]

    def role_map(self) -> Dict[int, str]:
        return {entry.position: entry.role.value for entry in self.entries}


__all__ = ["ReferenceRole", "ReferenceEntry", "ReferenceSet", "PROFILE_ROLES"]
