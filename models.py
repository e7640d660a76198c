"""Data model shared by staging, orchestration and display."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

UPLOADED_IMAGE_NAME = "Uploaded Image"
MAX_SUGGESTIONS = 4


class Recyclable(str, Enum):
    YES = "Yes"
    NO = "No"
    UNKNOWN = "Unknown"

    @classmethod
    def from_raw(cls, value: Any) -> "Recyclable":
        """Map a raw service value onto the tri-state verdict."""
        if isinstance(value, Recyclable):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        normalized = value.strip().lower()
        if normalized == "yes":
            return cls.YES
        if normalized == "no":
            return cls.NO
        return cls.UNKNOWN


class Phase(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    READY = "ready"
    ERRORED = "errored"


class EnrichmentStatus(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class SubmissionRequest:
    text: str = ""
    image_ref: Optional[str] = None
    postcode: str = ""

    @property
    def is_submittable(self) -> bool:
        return bool(self.text.strip()) or bool(self.image_ref)

    @property
    def item_name(self) -> str:
        """Text names the item whenever present; otherwise the image placeholder."""
        text = self.text.strip()
        return text if text else UPLOADED_IMAGE_NAME


class ClassificationResult(BaseModel):
    """Verdict returned by the classification service, normalized at the boundary."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    recyclable: Recyclable = Recyclable.UNKNOWN
    bin_color: str = Field(default="", alias="binColor")
    tip: str = ""
    detailed_answer: str = Field(default="", alias="answer")
    council_link: Optional[str] = Field(default=None, alias="councilLink")

    @field_validator("recyclable", mode="before")
    @classmethod
    def _normalize_recyclable(cls, value: Any) -> Recyclable:
        return Recyclable.from_raw(value)

    @field_validator("bin_color", "tip", "detailed_answer", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return "" if value is None else str(value).strip()

    @field_validator("council_link", mode="before")
    @classmethod
    def _blank_link_to_none(cls, value: Any) -> Optional[str]:
        if value is None:
            return None
        link = str(value).strip()
        return link or None


@dataclass(frozen=True)
class EnrichmentState:
    status: EnrichmentStatus = EnrichmentStatus.IDLE
    suggestions: Tuple[str, ...] = ()
    message: Optional[str] = None


@dataclass(frozen=True)
class ViewState:
    """Snapshot of the screen state. Only the orchestrator produces new ones."""

    phase: Phase = Phase.IDLE
    generation: int = 0
    submitted_item_name: Optional[str] = None
    submitted_image_ref: Optional[str] = None
    postcode: str = ""
    classification: Optional[ClassificationResult] = None
    enrichment: EnrichmentState = field(default_factory=EnrichmentState)
    error_message: Optional[str] = None
