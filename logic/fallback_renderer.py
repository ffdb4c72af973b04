"""Deterministic SVG outfit preview used when the external renderer fails."""
from __future__ import annotations

import base64
import html
import logging
import textwrap
from dataclasses import dataclass
from typing import List, Optional

from models.garment import BodyProfile, Garment
from models.selection import GarmentSelection

logger = logging.getLogger(__name__)

WIDTH = 530
CARD_WIDTH = 200
CARD_HEIGHT = 266
LABEL_HEIGHT = 40
ROW_HEIGHT = 320
HEADER_HEIGHT = 100
FOOTER_HEIGHT = 90
COLUMNS = (50, 280)
REASONING_LINE_WIDTH = 26
REASONING_MAX_LINES = 11

_SLOT_TITLES = {"dress": "Dress", "top": "Top", "bottom": "Bottom", "shoes": "Shoes"}


@dataclass(frozen=True)
class PreviewContext:
    """Everything the fallback preview shows besides the prompt."""

    profile: BodyProfile
    selection: GarmentSelection
    occasion: str
    reasoning: str


def _esc(value: str) -> str:
    return html.escape(value, quote=True)


def _embeddable(image: Optional[str]) -> bool:
    return bool(image) and (image.startswith("http") or image.startswith("data:image/"))


def _text(x: int, y: int, value: str, size: int = 12, fill: str = "#64748b", anchor: str = "middle", weight: str = "") -> str:
    weight_attr = f' font-weight="{weight}"' if weight else ""
    return (
        f'<text x="{x}" y="{y}" font-family="sans-serif" font-size="{size}" fill="{fill}" '
        f'text-anchor="{anchor}"{weight_attr}>{_esc(value)}</text>'
    )


def _photo_card(x: int, y: int, title: str, image: Optional[str], placeholder: str) -> List[str]:
    centre = x + CARD_WIDTH // 2
    parts = [
        _text(centre, y - 10, title),
        f'<rect x="{x}" y="{y}" width="{CARD_WIDTH}" height="{CARD_HEIGHT}" fill="#f1f5f9" rx="12"/>',
    ]
    if _embeddable(image):
        parts.append(
            f'<image href="{_esc(image)}" x="{x}" y="{y}" width="{CARD_WIDTH}" height="{CARD_HEIGHT}" '
            'preserveAspectRatio="xMidYMid slice"/>'
        )
    else:
        parts.append(_text(centre, y + CARD_HEIGHT // 2, placeholder, size=14, fill="#94a3b8"))
    return parts


def _garment_card(x: int, y: int, slot: str, garment: Garment) -> List[str]:
    centre = x + CARD_WIDTH // 2
    label_y = y + CARD_HEIGHT
    parts = _photo_card(x, y, _SLOT_TITLES[slot], garment.front_image, "No image")
    parts.extend(
        [
            f'<rect x="{x}" y="{label_y}" width="{CARD_WIDTH}" height="{LABEL_HEIGHT}" fill="rgba(255,255,255,0.9)"/>',
            _text(centre, label_y + 18, garment.name or garment.category, size=14, fill="#1e293b"),
            _text(centre, label_y + 34, garment.color or "-", size=12),
        ]
    )
    return parts


def _reasoning_card(x: int, y: int, reasoning: str) -> List[str]:
    lines = textwrap.wrap(reasoning, REASONING_LINE_WIDTH) or ["-"]
    if len(lines) > REASONING_MAX_LINES:
        lines = lines[:REASONING_MAX_LINES]
        lines[-1] = lines[-1][: REASONING_LINE_WIDTH - 3].rstrip() + "..."
    parts = [
        f'<rect x="{x}" y="{y}" width="{CARD_WIDTH}" height="{CARD_HEIGHT}" fill="#f8fafc" rx="12"/>',
        _text(x + CARD_WIDTH // 2, y + 30, "Why this outfit", size=14),
    ]
    for index, line in enumerate(lines):
        parts.append(_text(x + 16, y + 60 + index * 18, line, size=13, fill="#334155", anchor="start"))
    return parts


def render_preview_svg(context: PreviewContext) -> str:
    """Return the SVG document for the preview."""

    profile = context.profile
    portrait = profile.front_photo or profile.side_photo or profile.back_photo
    occasion = context.occasion.strip() or "everyday"
    reasoning = context.reasoning.strip() or "Suggested for the weather and occasion."

    card_count = 2 + len(context.selection.garments())
    rows = (card_count + 1) // 2
    height = HEADER_HEIGHT + rows * ROW_HEIGHT + FOOTER_HEIGHT

    def cell(index: int) -> tuple[int, int]:
        return COLUMNS[index % 2], HEADER_HEIGHT + (index // 2) * ROW_HEIGHT

    body: List[str] = [
        f'<rect width="{WIDTH}" height="{height}" fill="#fafafa"/>',
        _text(WIDTH // 2, 50, "AI Outfit Suggestion", size=24, fill="#1e293b", weight="bold"),
        _text(WIDTH // 2, 75, occasion, size=14),
    ]
    body.extend(_photo_card(*cell(0), "Your photo", portrait, "No photo yet"))
    for index, (slot, garment) in enumerate(context.selection.occupied(), start=1):
        body.extend(_garment_card(*cell(index), slot, garment))
    body.extend(_reasoning_card(*cell(card_count - 1), reasoning))

    footer_y = height - FOOTER_HEIGHT + 10
    body.append(f'<rect x="50" y="{footer_y}" width="430" height="60" fill="#f1f5f9" rx="12"/>')
    body.append(_text(WIDTH // 2, footer_y + 35, "Preview only. The rendered try-on was unavailable.", size=14))

    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{WIDTH}" height="{height}" viewBox="0 0 {WIDTH} {height}">\n'
        + "\n".join(f"  {part}" for part in body)
        + "\n</svg>"
    )


def render_fallback_preview(context: PreviewContext) -> str:
    """Return the preview as a ``data:image/svg+xml;base64`` reference."""

    svg = render_preview_svg(context)
    encoded = base64.b64encode(svg.encode("utf-8")).decode("ascii")
    logger.info(
        "Generated fallback SVG preview with %s garments (%s bytes)",
        len(context.selection.garments()),
        len(svg),
    )
    return f"data:image/svg+xml;base64,{encoded}"


__all__ = ["PreviewContext", "render_preview_svg", "render_fallback_preview"]
