"""Garment and body profile data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from models.taxonomy import normalise_tags, validate_category


def _ensure_list(value: Any) -> List[Any]:
    """Coerce a scalar or iterable into a list."""

    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def _optional_ref(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Garment:
    """A catalogued piece of clothing owned by one user.

    Instances are immutable; normalisation happens once in ``__post_init__``.
    """

    garment_id: str
    user_id: str
    category: str
    name: str
    color: str
    front_image: str
    back_image: Optional[str] = None
    tags: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        front_image = str(self.front_image).strip()
        if not front_image:
            raise ValueError(f"Garment {self.garment_id} requires a front image reference")
        object.__setattr__(self, "category", validate_category(self.category))
        object.__setattr__(self, "name", str(self.name).strip())
        object.__setattr__(self, "color", str(self.color).strip())
        object.__setattr__(self, "front_image", front_image)
        object.__setattr__(self, "back_image", _optional_ref(self.back_image))
        object.__setattr__(self, "tags", tuple(normalise_tags(_ensure_list(self.tags))))

    def inventory_entry(self) -> Dict[str, Any]:
        """Return the compact description shared with the reasoning service."""

        return {
            "id": self.garment_id,
            "name": self.name,
            "color": self.color,
            "category": self.category,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class BodyProfile:
    """A user's body measurements and reference photos."""

    user_id: str
    height_cm: float
    weight_kg: float
    front_photo: Optional[str] = None
    side_photo: Optional[str] = None
    back_photo: Optional[str] = None

    def __post_init__(self) -> None:
        height_cm = float(self.height_cm)
        weight_kg = float(self.weight_kg)
        if height_cm <= 0 or weight_kg <= 0:
            raise ValueError("height_cm and weight_kg must be positive")
        object.__setattr__(self, "height_cm", height_cm)
        object.__setattr__(self, "weight_kg", weight_kg)
        for attribute in ("front_photo", "side_photo", "back_photo"):
            object.__setattr__(self, attribute, _optional_ref(getattr(self, attribute)))

    @property
    def has_photos(self) -> bool:
        return any((self.front_photo, self.side_photo, self.back_photo))


def garment_from_raw(metadata: Dict[str, Any]) -> Garment:
    """Factory to build a :class:`Garment` from loose store or request data.

    Accepts both snake_case keys and the camelCase keys used by the web client
    (``imageFront``/``imageBack``).
    """

    garment_id = metadata.get("garment_id") or metadata.get("id")
    front_image = metadata.get("front_image") or metadata.get("imageFront")
    required = {
        "garment_id": garment_id,
        "user_id": metadata.get("user_id"),
        "category": metadata.get("category"),
        "front_image": front_image,
    }
    missing = [key for key, value in required.items() if not value]
    if missing:
        raise ValueError(f"Missing required fields for Garment: {missing}")

    return Garment(
        garment_id=str(garment_id),
        user_id=str(metadata["user_id"]),
        category=str(metadata["category"]),
        name=str(metadata.get("name") or ""),
        color=str(metadata.get("color") or ""),
        front_image=str(front_image),
        back_image=metadata.get("back_image") or metadata.get("imageBack"),
        tags=_ensure_list(metadata.get("tags")),
    )


__all__ = ["Garment", "BodyProfile", "garment_from_raw"]
