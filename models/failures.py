"""Failure taxonomy for the outfit composition pipeline.

Fatal failures are raised inside the pipeline as :class:`PipelineFailure`
subclasses and handed to callers as :class:`PipelineError` values. Soft
failures never raise: external-call wrappers return a :class:`CallOutcome`
carrying either a value or a :class:`SoftFailure`, and the pipeline records
every absorbed soft failure on its result.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")


class FailureCode(str, Enum):
    PROFILE_REQUIRED = "ProfileRequired"
    INSUFFICIENT_WARDROBE = "InsufficientWardrobe"
    ITEM_NOT_OWNED = "ItemNotOwned"
    NO_REFERENCE_IMAGES = "NoReferenceImages"
    INVALID_SELECTION = "InvalidSelection"
    REASONING_SOFT_FAILURE = "ReasoningSoftFailure"
    RENDER_SOFT_FAILURE = "RenderSoftFailure"


class PipelineFailure(Exception):
    """Base class for failures that abort a pipeline run."""

    code: FailureCode

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ProfileRequired(PipelineFailure):
    code = FailureCode.PROFILE_REQUIRED


class InsufficientWardrobe(PipelineFailure):
    code = FailureCode.INSUFFICIENT_WARDROBE


class ItemNotOwned(PipelineFailure):
    code = FailureCode.ITEM_NOT_OWNED


class NoReferenceImages(PipelineFailure):
    code = FailureCode.NO_REFERENCE_IMAGES


class InvalidSelection(PipelineFailure):
    code = FailureCode.INVALID_SELECTION


@dataclass(frozen=True)
class PipelineError:
    """Typed fatal result returned to callers instead of a suggestion."""

    code: FailureCode
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_failure(cls, failure: PipelineFailure) -> "PipelineError":
        return cls(code=failure.code, message=failure.message, details=dict(failure.details))

    def as_dict(self) -> Dict[str, Any]:
        return {"status": "error", "code": self.code.value, "message": self.message, "details": self.details}


@dataclass(frozen=True)
class SoftFailure:
    """An external-call failure the pipeline compensates for locally."""

    code: FailureCode
    reason: str
    detail: str = ""

    def as_dict(self) -> Dict[str, str]:
        return {"code": self.code.value, "reason": self.reason, "detail": self.detail}


@dataclass(frozen=True)
class CallOutcome(Generic[T]):
    """Either the value of an external call or the soft failure it produced."""

    value: Optional[T] = None
    failure: Optional[SoftFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "CallOutcome[T]":
        return cls(value=value)

    @classmethod
    def soft_failure(cls, code: FailureCode, reason: str, detail: str = "") -> "CallOutcome[T]":
        return cls(failure=SoftFailure(code=code, reason=reason, detail=detail[:500]))


__all__ = [
    "FailureCode",
    "PipelineFailure",
    "ProfileRequired",
    "InsufficientWardrobe",
    "ItemNotOwned",
    "NoReferenceImages",
    "InvalidSelection",
    "PipelineError",
    "SoftFailure",
    "CallOutcome",
]
