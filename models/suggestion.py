"""Suggestion result returned by one pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Tuple

from models.failures import SoftFailure
from models.selection import GarmentSelection


class RenderSource(str, Enum):
    EXTERNAL = "external"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SuggestionResult:
    selection: GarmentSelection
    reasoning: str
    occasion: str
    preview_image: str
    render_source: RenderSource
    soft_failures: Tuple[SoftFailure, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return bool(self.soft_failures)

    def as_dict(self) -> Dict[str, Any]:
        ids = self.selection.slot_ids()
        return {
            "status": "ok",
            "dressId": ids["dress"],
            "topId": ids["top"],
            "bottomId": ids["bottom"],
            "shoesId": ids["shoes"],
            "reasoning": self.reasoning,
            "occasion": self.occasion,
            "previewImage": self.preview_image,
            "renderSource": self.render_source.value,
            "softFailures": [failure.as_dict() for failure in self.soft_failures],
        }


@dataclass(frozen=True)
class AutoTagResult:
    """Attributes suggested for a newly photographed garment."""

    name: str
    color: str
    category: str
    tags: Tuple[str, ...] = field(default_factory=tuple)
    soft_failures: Tuple[SoftFailure, ...] = field(default_factory=tuple)

    @property
    def degraded(self) -> bool:
        return bool(self.soft_failures)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "status": "ok",
            "name": self.name,
            "color": self.color,
            "category": self.category,
            "tags": list(self.tags),
            "softFailures": [failure.as_dict() for failure in self.soft_failures],
        }


__all__ = ["RenderSource", "SuggestionResult", "AutoTagResult"]
