"""Fallback SVG preview tests."""

from __future__ import annotations

import base64
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from logic.fallback_renderer import PreviewContext, render_fallback_preview, render_preview_svg
from models.garment import BodyProfile, Garment
from models.selection import GarmentSelection


def _context(reasoning: str = "Bright top with clean sneakers.", front_photo: str | None = "https://cdn.example.com/me.jpg") -> PreviewContext:
    top = Garment(
        garment_id="t1",
        user_id="demo",
        category="top",
        name="T-shirt",
        color="red",
        front_image="https://cdn.example.com/t1.jpg",
    )
    shoes = Garment(
        garment_id="s1",
        user_id="demo",
        category="shoes",
        name="sneakers",
        color="white",
        front_image="local/s1.jpg",
    )
    return PreviewContext(
        profile=BodyProfile(user_id="demo", height_cm=168, weight_kg=55, front_photo=front_photo),
        selection=GarmentSelection(top=top, shoes=shoes),
        occasion="weekend brunch",
        reasoning=reasoning,
    )


def _decode(data_uri: str) -> str:
    prefix = "data:image/svg+xml;base64,"
    assert data_uri.startswith(prefix)
    return base64.b64decode(data_uri[len(prefix):]).decode("utf-8")


def test_fallback_preview_is_deterministic_svg_data_uri() -> None:
    first = render_fallback_preview(_context())
    second = render_fallback_preview(_context())

    assert first == second
    svg = _decode(first)
    assert svg.startswith('<?xml version="1.0" encoding="UTF-8"?>')
    assert svg.rstrip().endswith("</svg>")
    assert "AI Outfit Suggestion" in svg
    assert "weekend brunch" in svg
    assert "Preview only. The rendered try-on was unavailable." in svg


def test_preview_shows_garments_in_slot_order_with_reasoning() -> None:
    svg = render_preview_svg(_context())

    assert svg.index(">Top<") < svg.index(">Shoes<") < svg.index("Why this outfit")
    assert ">T-shirt<" in svg and ">red<" in svg
    assert ">sneakers<" in svg and ">white<" in svg
    assert "Bright top with clean sneakers." in svg


def test_only_remote_or_inline_images_are_embedded() -> None:
    svg = render_preview_svg(_context())

    assert 'href="https://cdn.example.com/me.jpg"' in svg
    assert 'href="https://cdn.example.com/t1.jpg"' in svg
    assert "local/s1.jpg" not in svg
    assert ">No image<" in svg


def test_missing_profile_photo_uses_placeholder() -> None:
    svg = render_preview_svg(_context(front_photo=None))

    assert ">No photo yet<" in svg
    assert "me.jpg" not in svg


def test_user_text_is_escaped() -> None:
    svg = render_preview_svg(_context(reasoning='<script>alert("x")</script> & more'))

    assert "<script>" not in svg
    assert "&lt;script&gt;" in svg
    assert "&amp; more" in svg


def test_long_reasoning_is_truncated() -> None:
    svg = render_preview_svg(_context(reasoning="layered neutral tones " * 40))

    reasoning_lines = [line for line in svg.splitlines() if 'text-anchor="start"' in line]
    assert len(reasoning_lines) == 11
    assert reasoning_lines[-1].endswith("...</text>")


def test_height_grows_with_card_count() -> None:
    two_garments = render_preview_svg(_context())
    empty = render_preview_svg(
        PreviewContext(
            profile=BodyProfile(user_id="demo", height_cm=168, weight_kg=55),
            selection=GarmentSelection(),
            occasion="",
            reasoning="",
        )
    )

    assert 'width="530" height="830"' in two_garments
    assert 'width="530" height="510"' in empty
    assert ">everyday<" in empty
