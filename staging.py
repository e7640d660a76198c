"""Holder for input the user has entered but not yet submitted."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from errors import InputValidationError
from models import SubmissionRequest


@dataclass
class InputStagingStore:
    text: str = ""
    image_ref: Optional[str] = None
    postcode: str = ""

    def set_text(self, value: str) -> None:
        self.text = value or ""

    def stage_image(self, ref: str) -> None:
        """Replace any previously staged image. Does not submit."""
        self.image_ref = ref

    def stage_picked(self, ref: Optional[str]) -> None:
        """Apply an image-picker outcome; ``None`` means the picker was cancelled."""
        if ref is None:
            return
        self.stage_image(ref)

    def set_postcode(self, value: str) -> None:
        self.postcode = value or ""

    def clear_after_submit(self) -> None:
        """Drop text and image; the postcode stays for the next submission."""
        self.text = ""
        self.image_ref = None

    def snapshot(self) -> SubmissionRequest:
        request = SubmissionRequest(
            text=self.text.strip(),
            image_ref=self.image_ref or None,
            postcode=self.postcode.strip(),
        )
        if not request.is_submittable:
            raise InputValidationError("Enter an item description or upload an image first.")
        return request
