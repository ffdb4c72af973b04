"""Canonical taxonomy definitions for garments and outfit slots.

This module centralises the canonical labels for garment categories and the
four outfit slots a selection may fill. Helper functions keep validation logic
consistent across the store, the suggestion engine and the prompt builder.
"""

from typing import Dict, FrozenSet, Iterable, List, Tuple


def _normalize_key(value: str) -> str:
    """Normalise a free-form string into a taxonomy key."""

    return value.strip().lower().replace(" ", "_")


CATEGORIES: Tuple[str, ...] = ("top", "bottom", "dress", "outerwear", "shoes", "accessory")

# Labels used by older clients and by the reasoning service when it echoes a
# category back in another wording.
CATEGORY_ALIASES: Dict[str, str] = {
    "tops": "top",
    "shirt": "top",
    "bottoms": "bottom",
    "pants": "bottom",
    "trousers": "bottom",
    "dresses": "dress",
    "jacket": "outerwear",
    "coat": "outerwear",
    "shoe": "shoes",
    "footwear": "shoes",
    "accessories": "accessory",
    "上装": "top",
    "下装": "bottom",
    "连衣裙": "dress",
    "外套": "outerwear",
    "鞋履": "shoes",
    "鞋子": "shoes",
    "配饰": "accessory",
}

# Fixed traversal order shared by reference assembly and prompt synthesis.
SLOT_ORDER: Tuple[str, ...] = ("dress", "top", "bottom", "shoes")

SLOT_CATEGORIES: Dict[str, FrozenSet[str]] = {
    "dress": frozenset({"dress"}),
    "top": frozenset({"top", "outerwear"}),
    "bottom": frozenset({"bottom"}),
    "shoes": frozenset({"shoes"}),
}

# Slots that cover the same body area as a dress.
DRESS_EXCLUSIVE_SLOTS: Tuple[str, ...] = ("top", "bottom")


def validate_category(value: str) -> str:
    """Validate and normalise a category value.

    Raises a :class:`ValueError` if the category is not part of the canonical
    taxonomy.
    """

    key = _normalize_key(value)
    key = CATEGORY_ALIASES.get(key, key)
    if key not in CATEGORIES:
        raise ValueError(f"Unsupported category '{value}'. Allowed: {sorted(CATEGORIES)}")
    return key


def validate_slot(value: str) -> str:
    """Validate an outfit slot name."""

    key = _normalize_key(value)
    if key not in SLOT_ORDER:
        raise ValueError(f"Unsupported slot '{value}'. Allowed: {list(SLOT_ORDER)}")
    return key


def category_fits_slot(category: str, slot: str) -> bool:
    """Return whether a garment of ``category`` may be worn in ``slot``."""

    return category in SLOT_CATEGORIES.get(slot, frozenset())


def normalise_tags(values: Iterable[str]) -> List[str]:
    """Strip and deduplicate free-form tags while keeping their order."""

    normalised = []
    seen = set()
    for value in values:
        tag = str(value).strip()
        if tag and tag.lower() not in seen:
            normalised.append(tag)
            seen.add(tag.lower())
    return normalised


__all__ = [
    "CATEGORIES",
    "CATEGORY_ALIASES",
    "SLOT_ORDER",
    "SLOT_CATEGORIES",
    "DRESS_EXCLUSIVE_SLOTS",
    "validate_category",
    "validate_slot",
    "category_fits_slot",
    "normalise_tags",
]
