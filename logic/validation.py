"""Pydantic schemas for validating external service payloads."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class OutfitSuggestionPayload(BaseModel):
    """JSON object the reasoning service is asked to return."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    dress_id: Optional[str] = Field(default=None, alias="dressId")
    top_id: Optional[str] = Field(default=None, alias="topId")
    bottom_id: Optional[str] = Field(default=None, alias="bottomId")
    shoes_id: Optional[str] = Field(default=None, alias="shoesId")
    reasoning: str = ""
    occasion: str = ""

    @field_validator("dress_id", "top_id", "bottom_id", "shoes_id", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        if isinstance(value, (dict, list)):
            raise ValueError("garment ids must be plain strings")
        text = str(value).strip()
        if not text or text.lower() in {"null", "none"}:
            return None
        return text

    @field_validator("reasoning", "occasion", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    def slot_ids(self) -> Dict[str, Optional[str]]:
        return {"dress": self.dress_id, "top": self.top_id, "bottom": self.bottom_id, "shoes": self.shoes_id}


class GarmentTagsPayload(BaseModel):
    """JSON object the vision model is asked to return for a garment photo."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    color: str = ""
    category: str = ""
    tags: List[str] = []

    @field_validator("name", "color", "category", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if isinstance(value, (dict, list)):
            raise ValueError("expected a plain string")
        return "" if value is None else str(value).strip()

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return value.split(",")
        if not isinstance(value, (list, tuple)):
            raise ValueError("tags must be a list of strings")
        return [str(item) for item in value if not isinstance(item, (dict, list))]


class _ChatMessage(BaseModel):
    content: Optional[str] = None


class _ChatChoice(BaseModel):
    message: _ChatMessage


class ChatCompletionResponse(BaseModel):
    """Subset of the chat-completions response the reasoning client reads."""

    choices: List[_ChatChoice] = []

    def first_content(self) -> str:
        if not self.choices:
            return ""
        return self.choices[0].message.content or ""


class _GeneratedImage(BaseModel):
    url: Optional[str] = None
    b64_json: Optional[str] = None


class ImageGenerationResponse(BaseModel):
    """Subset of the image-generation response the rendering client reads."""

    data: List[_GeneratedImage] = []

    def first_image(self) -> Optional[str]:
        """Return the first image as a URL or ``data:`` URI, if any."""

        if not self.data:
            return None
        first = self.data[0]
        if first.url:
            return first.url
        if first.b64_json:
            return f"data:image/png;base64,{first.b64_json}"
        return None


def describe_validation_error(exc: ValidationError) -> str:
    """Summarise Pydantic errors in one log-friendly line."""

    return "; ".join(
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}" for error in exc.errors()
    )


__all__ = [
    "OutfitSuggestionPayload",
    "GarmentTagsPayload",
    "ChatCompletionResponse",
    "ImageGenerationResponse",
    "describe_validation_error",
]
