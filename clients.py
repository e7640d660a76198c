"""HTTP adapters for the classification and reuse-suggestion services."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from errors import ClassificationError, EnrichmentError
from models import ClassificationResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 12.0


def _post_json(
    session: requests.Session, url: str, payload: Dict[str, Any], timeout: float
) -> Dict[str, Any]:
    response = session.post(url, json=payload, timeout=timeout)
    response.raise_for_status()
    body = response.json()
    if not isinstance(body, dict):
        raise ValueError(f"expected a JSON object, got {type(body).__name__}")
    return body


class ClassificationClient:
    """Asks the classification service whether an item is recyclable."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _analyze_blocking(self, query: str, postcode: str, image: Optional[bytes]) -> ClassificationResult:
        payload = {
            "query": query,
            "postcode": postcode,
            "image": base64.b64encode(image).decode("ascii") if image else None,
        }
        try:
            body = _post_json(self.session, f"{self.base_url}/analyze", payload, self.timeout)
        except (requests.RequestException, ValueError) as exc:
            raise ClassificationError(f"Classification request failed: {exc}") from exc

        try:
            return ClassificationResult.model_validate(body)
        except ValidationError as exc:
            raise ClassificationError(f"Classification response was malformed: {exc}") from exc

    async def analyze(
        self, query: str, postcode: str, image: Optional[bytes] = None
    ) -> ClassificationResult:
        logger.debug("Classifying %r (postcode=%r, image=%s)", query, postcode, image is not None)
        return await asyncio.to_thread(self._analyze_blocking, query, postcode, image)


class EnrichmentClient:
    """Fetches free-text reuse ideas for a named item."""

    def __init__(
        self,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _suggest_blocking(self, item_name: str) -> str:
        try:
            body = _post_json(self.session, f"{self.base_url}/suggest", {"item": item_name}, self.timeout)
        except (requests.RequestException, ValueError) as exc:
            raise EnrichmentError(f"Suggestion request failed: {exc}") from exc

        suggestions = body.get("suggestions")
        if suggestions is None:
            return ""
        if not isinstance(suggestions, str):
            raise EnrichmentError("Suggestion response did not contain text.")
        return suggestions

    async def suggest(self, item_name: str) -> str:
        logger.debug("Requesting reuse ideas for %r", item_name)
        return await asyncio.to_thread(self._suggest_blocking, item_name)
