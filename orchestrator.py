"""Submission orchestration: staging -> classification -> reuse suggestions.

All state changes happen on one asyncio event loop. Every accepted ``submit()``
bumps ``generation``; an asynchronous step only applies its result if the
generation it captured is still the live one. Superseded requests are left to
finish and their results are dropped.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Awaitable, Callable, List, Optional, Set

from errors import ClassificationError, EnrichmentError, InputValidationError, PersistenceError
from imaging import load_image_payload
from models import (
    UPLOADED_IMAGE_NAME,
    ClassificationResult,
    EnrichmentState,
    EnrichmentStatus,
    Phase,
    SubmissionRequest,
    ViewState,
)
from staging import InputStagingStore
from view import SUGGESTIONS_NEED_DESCRIPTION, parse_suggestions

logger = logging.getLogger(__name__)

DEFAULT_POSTCODE_KEY = "userPostcode"
GENERIC_CLASSIFICATION_ERROR = "Something went wrong while checking this item. Please try again."
ENRICHMENT_ERROR_MESSAGE = "Couldn't load reuse ideas right now."

Subscriber = Callable[[ViewState], None]
ImageLoader = Callable[[str], Awaitable[bytes]]


class SubmissionOrchestrator:
    """Owns the ``ViewState`` and drives both external services.

    Collaborators are duck-typed:

    - ``classifier.analyze(query, postcode, image)`` -> ``ClassificationResult``
    - ``enricher.suggest(item_name)`` -> raw suggestion text
    - ``preferences.get(key)`` / ``preferences.set(key, value)``

    Lifecycle: construct, ``await load_on_init()``, any number of ``submit()``
    calls, then ``dispose()``.
    """

    def __init__(
        self,
        classifier: Any,
        enricher: Any,
        preferences: Any,
        staging: Optional[InputStagingStore] = None,
        image_loader: ImageLoader = load_image_payload,
        postcode_key: str = DEFAULT_POSTCODE_KEY,
    ) -> None:
        self.classifier = classifier
        self.enricher = enricher
        self.preferences = preferences
        self.staging = staging if staging is not None else InputStagingStore()
        self.image_loader = image_loader
        self.postcode_key = postcode_key

        self._state = ViewState()
        self._subscribers: List[Subscriber] = []
        self._tasks: Set[asyncio.Task] = set()
        self._disposed = False

    @property
    def state(self) -> ViewState:
        return self._state

    @property
    def generation(self) -> int:
        return self._state.generation

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for state snapshots; returns a function that unsubscribes."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _set_state(self, **changes: Any) -> None:
        self._state = dataclasses.replace(self._state, **changes)
        for callback in list(self._subscribers):
            try:
                callback(self._state)
            except Exception:  # noqa: BLE001
                logger.exception("State subscriber %r failed", callback)

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._state.generation

    def _spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def load_on_init(self) -> None:
        """Pre-fill the postcode from the preference store. Never classifies."""
        generation = self._state.generation
        try:
            postcode = await self.preferences.get(self.postcode_key)
        except PersistenceError as exc:
            logger.warning("Could not load saved postcode: %s", exc)
            return
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error while loading saved postcode")
            return

        if not postcode:
            return
        if not self._is_current(generation):
            logger.debug("Saved postcode arrived after a submission started; ignoring")
            return
        self.staging.set_postcode(postcode)
        self._set_state(postcode=postcode)
        logger.info("Loaded saved postcode")

    def submit(self) -> Optional[asyncio.Task]:
        """Start a submission from whatever is staged.

        Returns the task running the classification flow, or ``None`` when
        there was nothing to submit.
        """
        if self._disposed:
            logger.warning("submit() called after dispose(); ignoring")
            return None
        try:
            request = self.staging.snapshot()
        except InputValidationError as exc:
            logger.info("Submission blocked: %s", exc)
            return None

        generation = self._state.generation + 1
        item_name = request.item_name
        self.staging.clear_after_submit()
        self._set_state(
            phase=Phase.SUBMITTING,
            generation=generation,
            submitted_item_name=item_name,
            submitted_image_ref=request.image_ref,
            postcode=request.postcode,
            classification=None,
            enrichment=EnrichmentState(),
            error_message=None,
        )
        logger.info("Submission %d started for %r", generation, item_name)
        return self._spawn(self._run_submission(generation, request, item_name))

    async def _persist_postcode(self, postcode: str) -> None:
        try:
            await self.preferences.set(self.postcode_key, postcode)
        except PersistenceError as exc:
            logger.warning("Could not save postcode: %s", exc)
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error while saving postcode")

    async def _run_submission(self, generation: int, request: SubmissionRequest, item_name: str) -> None:
        if request.postcode:
            await self._persist_postcode(request.postcode)
            if not self._is_current(generation):
                logger.debug("Submission %d superseded after saving postcode", generation)
                return

        try:
            image = None
            if request.image_ref:
                image = await self.image_loader(request.image_ref)
                if not self._is_current(generation):
                    logger.debug("Submission %d superseded while loading image", generation)
                    return
            result = await self.classifier.analyze(request.text, request.postcode, image)
        except ClassificationError as exc:
            self._fail(generation, str(exc) or GENERIC_CLASSIFICATION_ERROR)
            return
        except Exception:  # noqa: BLE001
            logger.exception("Unexpected error while classifying submission %d", generation)
            self._fail(generation, GENERIC_CLASSIFICATION_ERROR)
            return

        if not self._is_current(generation):
            logger.debug("Discarding stale classification for submission %d", generation)
            return
        self._apply_classification(generation, result, item_name)

    def _fail(self, generation: int, message: str) -> None:
        if not self._is_current(generation):
            logger.debug("Discarding stale failure for submission %d", generation)
            return
        logger.warning("Submission %d failed: %s", generation, message)
        self._set_state(phase=Phase.ERRORED, classification=None, error_message=message)

    def _apply_classification(self, generation: int, result: ClassificationResult, item_name: str) -> None:
        if item_name.strip().lower() == UPLOADED_IMAGE_NAME.lower():
            self._set_state(
                phase=Phase.READY,
                classification=result,
                enrichment=EnrichmentState(
                    status=EnrichmentStatus.SKIPPED, message=SUGGESTIONS_NEED_DESCRIPTION
                ),
            )
            return

        self._set_state(
            phase=Phase.READY,
            classification=result,
            enrichment=EnrichmentState(status=EnrichmentStatus.PENDING),
        )
        self._spawn(self._run_enrichment(generation, item_name))

    async def _run_enrichment(self, generation: int, item_name: str) -> None:
        try:
            raw = await self.enricher.suggest(item_name)
        except EnrichmentError as exc:
            self._fail_enrichment(generation, exc)
            return
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error while fetching reuse ideas")
            self._fail_enrichment(generation, exc)
            return

        if not self._is_current(generation):
            logger.debug("Discarding stale reuse ideas for submission %d", generation)
            return
        suggestions = tuple(parse_suggestions(raw))
        self._set_state(enrichment=EnrichmentState(status=EnrichmentStatus.READY, suggestions=suggestions))

    def _fail_enrichment(self, generation: int, exc: Exception) -> None:
        if not self._is_current(generation):
            return
        logger.warning("Reuse ideas for submission %d failed: %s", generation, exc)
        self._set_state(
            enrichment=EnrichmentState(status=EnrichmentStatus.FAILED, message=ENRICHMENT_ERROR_MESSAGE)
        )

    async def dispose(self) -> None:
        """Drop subscribers and abandon all in-flight work."""
        self._disposed = True
        self._subscribers.clear()
        pending = [task for task in self._tasks if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        self._tasks.clear()
