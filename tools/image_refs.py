"""Helpers for turning stored image references into service payloads."""

from __future__ import annotations

import base64
import binascii
import re
from typing import Tuple

import requests

DEFAULT_IMAGE_MIME = "image/jpeg"
_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def is_remote(ref: str) -> bool:
    return ref.startswith(("http://", "https://"))


def as_image_url(ref: str) -> str:
    """Return ``ref`` in a form a chat-completions image part accepts.

    URLs and ``data:`` URIs pass through unchanged; a bare base64 string is
    wrapped as a JPEG data URI.
    """

    text = str(ref).strip()
    if not text:
        raise ValueError("Image reference is empty")
    if text.startswith("data:") or is_remote(text):
        return text
    return f"data:{DEFAULT_IMAGE_MIME};base64,{text}"


def load_image_bytes(ref: str, timeout_seconds: float) -> Tuple[str, bytes]:
    """Return ``(mime_type, raw_bytes)`` for a URL, data URI or bare base64 string.

    Raises :class:`ValueError` when the data cannot be decoded and
    :class:`requests.RequestException` when a remote image cannot be fetched.
    """

    text = as_image_url(ref)
    if is_remote(text):
        response = requests.get(text, timeout=timeout_seconds)
        response.raise_for_status()
        content_type = response.headers.get("Content-Type", "").split(";")[0].strip()
        return content_type or DEFAULT_IMAGE_MIME, response.content

    match = _DATA_URI.match(text)
    if match is None:
        raise ValueError("Image reference is not a base64 data URI")
    encoded = "".join(match.group("data").split())
    try:
        data = base64.b64decode(encoded, validate=True)
    except binascii.Error as exc:
        raise ValueError(f"Image data is not valid base64: {exc}") from exc
    if not data:
        raise ValueError("Image data is empty")
    return match.group("mime"), data


__all__ = ["DEFAULT_IMAGE_MIME", "as_image_url", "is_remote", "load_image_bytes"]
