"""Display model derived from the orchestrator's view state."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Optional
from urllib.parse import quote_plus

from models import MAX_SUGGESTIONS, EnrichmentStatus, Phase, Recyclable, ViewState

STATUS_LABELS = {
    Recyclable.YES: "YES - Recyclable!",
    Recyclable.NO: "NO - Not Recyclable",
    Recyclable.UNKNOWN: "Not sure - check locally",
}
STATUS_COLORS = {
    Recyclable.YES: "#4CAF50",
    Recyclable.NO: "#D32F2F",
    Recyclable.UNKNOWN: "#757575",
}

COUNCIL_SEARCH_URL = "https://www.google.com/search?q={query}"
COUNCIL_FINDER_URL = "https://www.gov.uk/find-local-council"

SUGGESTIONS_LOADING = "Finding reuse ideas..."
SUGGESTIONS_EMPTY = "Get creative! No specific reuse ideas for this item."
SUGGESTIONS_NEED_DESCRIPTION = "Describe the item for reuse ideas."

_NUMBER_MARKER = re.compile(r"^\d+\.\s+")


@dataclass(frozen=True)
class DisplayModel:
    show_output: bool
    is_submitting: bool
    is_busy: bool
    item_name: Optional[str]
    image_ref: Optional[str]
    status: str
    status_label: str
    status_color: str
    bin_info: Optional[str]
    tip: Optional[str]
    detailed_answer: Optional[str]
    council_link_or_search: str
    suggestions: List[str] = field(default_factory=list)
    suggestions_message: Optional[str] = None
    error_message: Optional[str] = None


def parse_suggestions(raw: str) -> List[str]:
    """Split numbered free text into at most four clean suggestions."""
    suggestions = []
    for line in (raw or "").splitlines():
        cleaned = _NUMBER_MARKER.sub("", line.strip()).strip()
        if cleaned:
            suggestions.append(cleaned)
    return suggestions[:MAX_SUGGESTIONS]


def council_search_url(postcode: str) -> str:
    postcode = (postcode or "").strip()
    if not postcode:
        return COUNCIL_FINDER_URL
    return COUNCIL_SEARCH_URL.format(query=quote_plus(f"{postcode} council recycling"))


def _suggestions_for(state: ViewState) -> tuple[List[str], Optional[str]]:
    enrichment = state.enrichment
    if enrichment.status == EnrichmentStatus.PENDING:
        return [], SUGGESTIONS_LOADING
    if enrichment.status == EnrichmentStatus.SKIPPED:
        return [], enrichment.message or SUGGESTIONS_NEED_DESCRIPTION
    if enrichment.status == EnrichmentStatus.FAILED:
        return [], enrichment.message
    if enrichment.status == EnrichmentStatus.READY:
        if not enrichment.suggestions:
            return [], SUGGESTIONS_EMPTY
        return list(enrichment.suggestions), None
    return [], None


def derive_view(state: ViewState) -> DisplayModel:
    """Build the display model; never mutates ``state``."""
    classification = state.classification if state.phase == Phase.READY else None
    recyclable = classification.recyclable if classification else Recyclable.UNKNOWN

    council_link = classification.council_link if classification else None
    suggestions, suggestions_message = _suggestions_for(state)

    return DisplayModel(
        show_output=state.phase != Phase.IDLE,
        is_submitting=state.phase == Phase.SUBMITTING,
        is_busy=(
            state.phase == Phase.SUBMITTING
            or state.enrichment.status == EnrichmentStatus.PENDING
        ),
        item_name=state.submitted_item_name,
        image_ref=state.submitted_image_ref,
        status=recyclable.value,
        status_label=STATUS_LABELS[recyclable],
        status_color=STATUS_COLORS[recyclable],
        bin_info=f"Put in: {classification.bin_color}" if classification and classification.bin_color else None,
        tip=(classification.tip or None) if classification else None,
        detailed_answer=(classification.detailed_answer or None) if classification else None,
        council_link_or_search=council_link or council_search_url(state.postcode),
        suggestions=suggestions,
        suggestions_message=suggestions_message,
        error_message=state.error_message,
    )
