"""
Report Image Embedding

Fetches the images attached to report items and re-encodes them to JPEG
for embedding in the PDF. Each image resolves to either an EncodedImage or
an ImageFailure; a failed image never raises to the caller, so one broken
attachment cannot abort the document.

Downloads for different images run concurrently under a small cap, but
results are returned in item order so document layout stays deterministic.
"""

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple, Union

import aiohttp
from PIL import Image, UnidentifiedImageError

from bulletin_reports.config import settings
from bulletin_reports.constants import IMAGE_JPEG_QUALITY
from bulletin_reports.schemas.reports import ItemKind, ReportItem
from bulletin_reports.utils.url_utils import resolve_image_url

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; BulletinReports/1.0)"


@dataclass(frozen=True)
class EncodedImage:
    """Image re-encoded to JPEG, ready for the PDF backend."""
    ref: str
    data: bytes
    width: int
    height: int
    mime: str = "image/jpeg"


@dataclass(frozen=True)
class ImageFailure:
    """Typed failure for one image; rendered as an in-document placeholder."""
    ref: str
    reason: str


EmbedResult = Union[EncodedImage, ImageFailure]
ImageKey = Tuple[ItemKind, str, int]  # (item kind, item id, image index)


async def download_image(
    session: aiohttp.ClientSession,
    url: str,
    max_size: Optional[int] = None,
    timeout: Optional[int] = None,
) -> Tuple[Optional[bytes], str]:
    """
    Download an image with timeout and size limits.

    Returns (data, "") on success or (None, reason) on failure.
    """
    max_size = max_size or settings.max_image_size
    timeout = timeout or settings.image_download_timeout
    try:
        async with session.get(
            url,
            timeout=aiohttp.ClientTimeout(total=timeout),
            headers={"User-Agent": USER_AGENT, "Accept": "image/*"},
        ) as response:
            if response.status != 200:
                return None, f"HTTP {response.status}"

            content_type = response.headers.get("Content-Type", "")
            if not content_type.startswith("image/"):
                return None, f"not an image (content-type: {content_type or 'missing'})"

            content_length = response.headers.get("Content-Length")
            if content_length and int(content_length) > max_size:
                return None, f"too large ({content_length} bytes)"

            data = b""
            async for chunk in response.content.iter_chunked(8192):
                data += chunk
                if len(data) > max_size:
                    return None, "exceeded size limit during download"

            if not data:
                return None, "empty response"
            return data, ""

    except asyncio.TimeoutError:
        return None, "timeout"
    except aiohttp.ClientError as e:
        return None, f"network error: {e}"


def reencode_image(ref: str, data: bytes) -> EncodedImage:
    """
    Decode *data* and re-encode it as JPEG at its natural size.

    Transparent images are flattened onto white. Raises on undecodable data.
    """
    with Image.open(io.BytesIO(data)) as img:
        img.load()
        if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
            rgba = img.convert("RGBA")
            canvas = Image.new("RGB", rgba.size, (255, 255, 255))
            canvas.paste(rgba, mask=rgba.split()[-1])
        else:
            canvas = img.convert("RGB")
        buffer = io.BytesIO()
        canvas.save(buffer, format="JPEG", quality=IMAGE_JPEG_QUALITY)
        return EncodedImage(ref=ref, data=buffer.getvalue(), width=canvas.width, height=canvas.height)


async def embed_image(
    session: aiohttp.ClientSession,
    ref: str,
    base_url: Optional[str] = None,
) -> EmbedResult:
    """Fetch and re-encode one image. Never raises."""
    url = resolve_image_url(ref, base_url or settings.image_base_url)
    if not url:
        return ImageFailure(ref, "empty image reference")

    data, reason = await download_image(session, url)
    if data is None:
        logger.warning(f"Failed to load image {ref}: {reason}")
        return ImageFailure(ref, reason)

    try:
        return reencode_image(ref, data)
    except (UnidentifiedImageError, OSError, ValueError) as e:
        logger.warning(f"Failed to decode image {ref}: {e}")
        return ImageFailure(ref, f"decode error: {e}")


def image_key(item: ReportItem, index: int) -> ImageKey:
    # Announcement and calendar ids come from separate sequences
    return (item.kind, item.id, index)


def collect_image_refs(items: Sequence[ReportItem]) -> List[Tuple[ImageKey, str]]:
    """(kind, id, index) -> ref pairs in document order."""
    refs: List[Tuple[ImageKey, str]] = []
    for item in items:
        for index, ref in enumerate(item.images):
            refs.append((image_key(item, index), ref))
    return refs


async def embed_report_images(
    items: Sequence[ReportItem],
    base_url: Optional[str] = None,
    concurrency: Optional[int] = None,
    session: Optional[aiohttp.ClientSession] = None,
) -> Dict[ImageKey, EmbedResult]:
    """
    Embed every image of every item.

    Returns a dict keyed by image_key(), inserted in item order.
    """
    refs = collect_image_refs(items)
    if not refs:
        return {}

    semaphore = asyncio.Semaphore(concurrency or settings.image_fetch_concurrency)

    async def _bounded(http: aiohttp.ClientSession, ref: str) -> EmbedResult:
        async with semaphore:
            try:
                return await embed_image(http, ref, base_url)
            except Exception as e:  # noqa: BLE001 - an image must never abort the document
                logger.warning(f"Unexpected error embedding image {ref}: {e}", exc_info=True)
                return ImageFailure(ref, f"unexpected error: {e}")

    async def _run(http: aiohttp.ClientSession) -> List[EmbedResult]:
        return await asyncio.gather(*[_bounded(http, ref) for _, ref in refs])

    if session is not None:
        results = await _run(session)
    else:
        async with aiohttp.ClientSession() as owned:
            results = await _run(owned)

    embedded = {key: result for (key, _), result in zip(refs, results)}
    failed = sum(1 for r in results if isinstance(r, ImageFailure))
    logger.info(f"Embedded {len(results) - failed}/{len(results)} report images")
    return embedded
