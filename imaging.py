"""Turn a staged image reference into an upload payload."""

from __future__ import annotations

import asyncio
import io
import logging
import time
from pathlib import Path
from typing import Iterable, Optional, Union

from PIL import Image, UnidentifiedImageError

from errors import ImagePayloadError

logger = logging.getLogger(__name__)

MAX_EDGE_PX = 1024
JPEG_QUALITY = 85


def encode_image(path: Union[str, Path], max_edge: int = MAX_EDGE_PX) -> bytes:
    """Read an image file and return it as a downscaled RGB JPEG."""
    try:
        with Image.open(path) as image:
            image = image.convert("RGB")
            image.thumbnail((max_edge, max_edge))
            buffer = io.BytesIO()
            image.save(buffer, format="JPEG", quality=JPEG_QUALITY)
    except (OSError, UnidentifiedImageError) as exc:
        raise ImagePayloadError(f"Could not read the selected image: {exc}") from exc
    return buffer.getvalue()


async def load_image_payload(ref: str) -> bytes:
    return await asyncio.to_thread(encode_image, ref)


def discard_upload(ref: Optional[str]) -> None:
    """Delete a saved upload; missing files are fine."""
    if not ref:
        return
    try:
        Path(ref).unlink()
    except FileNotFoundError:
        return
    except OSError as exc:
        logger.warning("Could not delete upload %s: %s", ref, exc)


def prune_uploads(
    upload_dir: Union[str, Path],
    max_age_seconds: float,
    keep: Iterable[Optional[str]] = (),
    now: Optional[float] = None,
) -> int:
    """Delete uploads older than ``max_age_seconds`` except those in ``keep``. Returns the count."""
    directory = Path(upload_dir)
    if not directory.is_dir():
        return 0
    now = time.time() if now is None else now
    kept = {Path(ref).resolve() for ref in keep if ref}

    removed = 0
    for path in directory.iterdir():
        if not path.is_file() or path.resolve() in kept:
            continue
        try:
            if now - path.stat().st_mtime < max_age_seconds:
                continue
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as exc:
            logger.warning("Could not prune upload %s: %s", path, exc)
            continue
        removed += 1
    if removed:
        logger.info("Pruned %d old uploads from %s", removed, directory)
    return removed
