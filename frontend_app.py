"""Streamlit mobile screen for RecycleRight UK."""

from __future__ import annotations

import asyncio
import html
import threading
import time
import uuid
from pathlib import Path
from typing import Any, Coroutine, Optional

import streamlit as st
import streamlit.components.v1 as components

from clients import ClassificationClient, EnrichmentClient
from config import Settings, get_settings
from database import PreferenceStore
from imaging import discard_upload, prune_uploads
from logging_config import setup_logging
from orchestrator import SubmissionOrchestrator
from view import DisplayModel, derive_view

APP_TITLE = "RecycleRight UK"
POLL_SECONDS = 0.6

COLORS = {
    "background": "#F0F4F8",
    "card": "#FFFFFF",
    "primary_text": "#333333",
    "secondary_text": "#555555",
    "accent_green": "#2E7D32",
    "input_bar": "#E8EAF6",
    "border": "#CFD8DC",
}


def setup_pwa() -> None:
    """Inject mobile web-app meta tags into the page head."""
    components.html(
        f"""
        <script>
          const head = window.parent.document.head;
          const setMeta = (name, content) => {{
            let tag = head.querySelector(`meta[name="${{name}}"]`);
            if (!tag) {{
              tag = window.parent.document.createElement("meta");
              tag.setAttribute("name", name);
              head.appendChild(tag);
            }}
            tag.setAttribute("content", content);
          }};
          setMeta("theme-color", "{COLORS['accent_green']}");
          setMeta("apple-mobile-web-app-capable", "yes");
          setMeta("apple-mobile-web-app-title", "RecycleRight");
          setMeta("mobile-web-app-capable", "yes");
          setMeta("viewport", "width=device-width, initial-scale=1, viewport-fit=cover");
        </script>
        """,
        height=0,
    )


def inject_css(status_color: Optional[str]) -> None:
    accent = status_color or COLORS["accent_green"]
    st.markdown(
        f"""
        <style>
            .stApp {{
                background: {COLORS['background']};
                color: {COLORS['primary_text']};
            }}
            .block-container {{
                max-width: 520px;
                padding-top: 1.2rem;
                padding-bottom: 2rem;
            }}
            .app-header {{
                font-size: 2rem;
                font-weight: 800;
                color: {COLORS['accent_green']};
                text-align: center;
                margin-bottom: 1.2rem;
            }}
            .output-card {{
                background: {COLORS['card']};
                border: 1px solid {COLORS['border']};
                border-left: 6px solid {accent};
                border-radius: 16px;
                padding: 1rem 1.1rem;
                margin-bottom: 1rem;
                box-shadow: 0 4px 12px rgba(0, 0, 0, 0.08);
            }}
            .item-name {{
                font-size: 1.2rem;
                font-weight: 700;
                margin-bottom: 0.4rem;
            }}
            .status {{
                font-size: 1.35rem;
                font-weight: 800;
                text-align: center;
                margin-bottom: 0.5rem;
            }}
            .muted {{
                color: {COLORS['secondary_text']};
            }}
            .tip {{
                color: {COLORS['secondary_text']};
                font-style: italic;
            }}
            .stTextInput > div > div > input {{
                border-radius: 24px !important;
                background: {COLORS['input_bar']} !important;
            }}
        </style>
        """,
        unsafe_allow_html=True,
    )


@st.cache_resource
def get_event_loop() -> asyncio.AbstractEventLoop:
    """One background loop shared by every session; all orchestrator work runs on it."""
    loop = asyncio.new_event_loop()
    threading.Thread(target=loop.run_forever, name="recycleright-loop", daemon=True).start()
    return loop


def run_on_loop(loop: asyncio.AbstractEventLoop, coro: Coroutine[Any, Any, Any], timeout: Optional[float] = None) -> Any:
    return asyncio.run_coroutine_threadsafe(coro, loop).result(timeout)


def build_orchestrator(settings: Settings) -> SubmissionOrchestrator:
    return SubmissionOrchestrator(
        classifier=ClassificationClient(settings.classification_api_url, settings.request_timeout_seconds),
        enricher=EnrichmentClient(settings.enrichment_api_url, settings.request_timeout_seconds),
        preferences=PreferenceStore(settings.db_path),
        postcode_key=settings.postcode_key,
    )


def get_orchestrator(loop: asyncio.AbstractEventLoop, settings: Settings) -> SubmissionOrchestrator:
    if "orchestrator" not in st.session_state:
        orchestrator = build_orchestrator(settings)
        run_on_loop(loop, orchestrator.load_on_init(), timeout=settings.request_timeout_seconds)
        st.session_state.orchestrator = orchestrator
        st.session_state.postcode_input = orchestrator.staging.postcode
    return st.session_state.orchestrator


def choose_picked_image(photo: Any, uploaded: Any) -> Any:
    """A camera photo wins over a file upload when both are given."""
    return photo if photo is not None else uploaded


def save_upload(uploaded: Any, upload_dir: str) -> Optional[str]:
    """Store a picked photo on disk and return its path; ``None`` when nothing was picked."""
    if uploaded is None:
        return None
    target_dir = Path(upload_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    suffix = Path(getattr(uploaded, "name", "") or "photo.jpg").suffix or ".jpg"
    target = target_dir / f"{uuid.uuid4().hex}{suffix}"
    target.write_bytes(uploaded.getvalue())
    return str(target)


def text_block(css_class: str, text: str) -> str:
    return f'<div class="{css_class}">{html.escape(text)}</div>'


async def stage_and_submit(
    orchestrator: SubmissionOrchestrator, text: str, postcode: str, image_ref: Optional[str]
) -> None:
    orchestrator.staging.set_text(text)
    orchestrator.staging.set_postcode(postcode)
    orchestrator.staging.stage_picked(image_ref)
    orchestrator.submit()


def render_result(display: DisplayModel) -> None:
    st.markdown('<div class="output-card">', unsafe_allow_html=True)
    st.markdown(text_block("item-name", display.item_name or ""), unsafe_allow_html=True)
    if display.image_ref and Path(display.image_ref).exists():
        st.image(display.image_ref, use_container_width=True)

    if display.error_message:
        st.error(display.error_message)
        st.markdown("</div>", unsafe_allow_html=True)
        return

    if display.is_submitting:
        st.info("Checking your item...")
        st.markdown("</div>", unsafe_allow_html=True)
        return

    st.markdown(
        f'<div class="status" style="color:{display.status_color}">{html.escape(display.status_label)}</div>',
        unsafe_allow_html=True,
    )
    if display.bin_info:
        st.markdown(text_block("muted", display.bin_info), unsafe_allow_html=True)
    if display.tip:
        st.markdown(text_block("tip", f"Tip: {display.tip}"), unsafe_allow_html=True)
    if display.detailed_answer:
        with st.expander("More detail"):
            st.write(display.detailed_answer)
    st.markdown(f"[Check your council's recycling rules]({display.council_link_or_search})")
    st.markdown("</div>", unsafe_allow_html=True)

    st.markdown('<div class="output-card">', unsafe_allow_html=True)
    st.markdown("#### Reuse ideas")
    for suggestion in display.suggestions:
        st.markdown(f"- {suggestion}")
    if display.suggestions_message:
        st.caption(display.suggestions_message)
    st.markdown("</div>", unsafe_allow_html=True)


def main() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    st.set_page_config(page_title=APP_TITLE, page_icon="♻", layout="centered")
    setup_pwa()

    loop = get_event_loop()
    orchestrator = get_orchestrator(loop, settings)

    display = derive_view(orchestrator.state)
    inject_css(display.status_color if display.show_output else None)
    st.markdown(f'<div class="app-header">{APP_TITLE}</div>', unsafe_allow_html=True)

    if display.show_output:
        render_result(display)

    st.text_input("Postcode (optional)", key="postcode_input", placeholder="e.g. SW1A 1AA")

    with st.form("item_form", clear_on_submit=True):
        text = st.text_input(
            "Item",
            placeholder="Type item or upload image...",
            label_visibility="collapsed",
        )
        photo = st.camera_input("📷 Take a photo")
        uploaded = st.file_uploader("🖼 Or upload a photo", type=["jpg", "jpeg", "png", "webp"])
        submitted = st.form_submit_button("➔ Check item", use_container_width=True)

    if submitted:
        image_ref = save_upload(choose_picked_image(photo, uploaded), settings.upload_dir)
        if image_ref is not None:
            discard_upload(st.session_state.get("last_upload"))
            st.session_state.last_upload = image_ref
        prune_uploads(
            settings.upload_dir,
            settings.upload_max_age_seconds,
            keep=[st.session_state.get("last_upload")],
        )
        run_on_loop(
            loop,
            stage_and_submit(orchestrator, text, st.session_state.postcode_input, image_ref),
            timeout=settings.request_timeout_seconds,
        )
        st.rerun()

    if display.is_busy:
        time.sleep(POLL_SECONDS)
        st.rerun()


if __name__ == "__main__":
    main()
