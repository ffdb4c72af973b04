"""Model package exports."""

from models.taxonomy import *  # noqa: F401,F403
from models.garment import BodyProfile, Garment, garment_from_raw
from models.selection import GarmentSelection, ManualPicks, SelectionMode
from models.references import ReferenceEntry, ReferenceRole, ReferenceSet
from models.suggestion import RenderSource, SuggestionResult

__all__ = [
    "BodyProfile",
    "Garment",
    "garment_from_raw",
    "GarmentSelection",
    "ManualPicks",
    "SelectionMode",
    "ReferenceEntry",
    "ReferenceRole",
    "ReferenceSet",
    "RenderSource",
    "SuggestionResult",
]
