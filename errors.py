"""Error taxonomy for the submission flow."""

from __future__ import annotations


class RecycleRightError(Exception):
    """Base class for every error raised by RecycleRight modules."""


class InputValidationError(RecycleRightError):
    """Nothing staged to submit: no text and no image."""


class ClassificationError(RecycleRightError):
    """The classification service failed or returned an unusable payload."""


class ImagePayloadError(ClassificationError):
    """The staged image could not be read into an upload payload."""


class EnrichmentError(RecycleRightError):
    """The suggestion service failed; only the suggestions area is affected."""


class PersistenceError(RecycleRightError):
    """The preference store could not read or write a value."""
