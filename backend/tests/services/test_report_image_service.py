"""
Tests for backend/bulletin_reports/services/report_image_service.py

Covers:
- download_image: status, content type, size limits, timeouts
- reencode_image: JPEG output, alpha flattening
- embed_image: URL resolution, typed failures
- embed_report_images: ordering, keys, concurrency cap, error isolation
"""

import asyncio
import io
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
from PIL import Image, UnidentifiedImageError

from conftest import image_bytes, make_item

from bulletin_reports.schemas.reports import ItemKind
from bulletin_reports.services.report_image_service import (
    EncodedImage,
    ImageFailure,
    collect_image_refs,
    download_image,
    embed_image,
    embed_report_images,
    reencode_image,
)

MODULE = "bulletin_reports.services.report_image_service"

ANN = ItemKind.ANNOUNCEMENT
CAL = ItemKind.CALENDAR_EVENT


def _mock_session(status=200, headers=None, chunks=(b"data",), error=None):
    """aiohttp-like session whose get() yields a canned response."""
    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.headers = headers if headers is not None else {"Content-Type": "image/png"}

    async def mock_iter_chunked(chunk_size):
        for chunk in chunks:
            yield chunk

    mock_response.content = MagicMock()
    mock_response.content.iter_chunked = mock_iter_chunked

    mock_session = MagicMock()
    mock_ctx = AsyncMock()
    if error is not None:
        mock_ctx.__aenter__ = AsyncMock(side_effect=error)
    else:
        mock_ctx.__aenter__ = AsyncMock(return_value=mock_response)
    mock_ctx.__aexit__ = AsyncMock(return_value=False)
    mock_session.get = MagicMock(return_value=mock_ctx)
    return mock_session


# ---------------------------------------------------------------------------
# download_image
# ---------------------------------------------------------------------------


class TestDownloadImage:
    """Tests for download_image() with mocked HTTP."""

    @pytest.mark.asyncio
    async def test_download_success(self):
        """Happy path: chunks are concatenated."""
        session = _mock_session(chunks=(b"abc", b"def"))
        data, reason = await download_image(session, "https://cdn.test/a.png")
        assert data == b"abcdef"
        assert reason == ""

    @pytest.mark.asyncio
    async def test_non_200(self):
        """Failure: HTTP status becomes the reason."""
        data, reason = await download_image(_mock_session(status=404), "https://cdn.test/a.png")
        assert data is None
        assert reason == "HTTP 404"

    @pytest.mark.asyncio
    async def test_non_image_content_type(self):
        session = _mock_session(headers={"Content-Type": "text/html"})
        data, reason = await download_image(session, "https://cdn.test/a.png")
        assert data is None
        assert "not an image" in reason

    @pytest.mark.asyncio
    async def test_content_length_over_limit(self):
        session = _mock_session(headers={"Content-Type": "image/png", "Content-Length": "5000"})
        data, reason = await download_image(session, "https://cdn.test/a.png", max_size=1000)
        assert data is None
        assert "too large" in reason

    @pytest.mark.asyncio
    async def test_streamed_size_over_limit(self):
        """Edge case: no Content-Length, but the body keeps growing."""
        session = _mock_session(chunks=(b"x" * 600, b"x" * 600))
        data, reason = await download_image(session, "https://cdn.test/a.png", max_size=1000)
        assert data is None
        assert reason == "exceeded size limit during download"

    @pytest.mark.asyncio
    async def test_empty_body(self):
        data, reason = await download_image(_mock_session(chunks=()), "https://cdn.test/a.png")
        assert data is None
        assert reason == "empty response"

    @pytest.mark.asyncio
    async def test_timeout(self):
        session = _mock_session(error=asyncio.TimeoutError())
        data, reason = await download_image(session, "https://cdn.test/a.png")
        assert data is None
        assert reason == "timeout"

    @pytest.mark.asyncio
    async def test_client_error(self):
        session = _mock_session(error=aiohttp.ClientError("connection reset"))
        data, reason = await download_image(session, "https://cdn.test/a.png")
        assert data is None
        assert reason.startswith("network error")


# ---------------------------------------------------------------------------
# reencode_image
# ---------------------------------------------------------------------------


class TestReencodeImage:
    """Tests for reencode_image()"""

    def test_png_becomes_jpeg(self):
        encoded = reencode_image("a.png", image_bytes("PNG", size=(64, 48)))
        assert encoded.mime == "image/jpeg"
        assert (encoded.width, encoded.height) == (64, 48)
        with Image.open(io.BytesIO(encoded.data)) as img:
            assert img.format == "JPEG"

    def test_transparent_pixels_flattened_to_white(self):
        """Edge case: fully transparent RGBA renders as white, not black."""
        data = image_bytes("PNG", size=(10, 10), mode="RGBA", color=(0, 0, 0, 0))
        encoded = reencode_image("clear.png", data)
        with Image.open(io.BytesIO(encoded.data)) as img:
            r, g, b = img.convert("RGB").getpixel((5, 5))
        assert min(r, g, b) > 240

    def test_garbage_raises(self):
        with pytest.raises(UnidentifiedImageError):
            reencode_image("bad.png", b"definitely not an image")


# ---------------------------------------------------------------------------
# embed_image
# ---------------------------------------------------------------------------


class TestEmbedImage:
    """Tests for embed_image()"""

    @pytest.mark.asyncio
    async def test_relative_ref_resolved_against_base(self, png_bytes):
        mock_download = AsyncMock(return_value=(png_bytes, ""))
        with patch(f"{MODULE}.download_image", mock_download):
            result = await embed_image(MagicMock(), "/uploads/a.png", base_url="http://bulletin.test")

        assert isinstance(result, EncodedImage)
        assert result.ref == "/uploads/a.png"
        assert mock_download.call_args.args[1] == "http://bulletin.test/uploads/a.png"

    @pytest.mark.asyncio
    async def test_download_failure_is_typed(self):
        with patch(f"{MODULE}.download_image", AsyncMock(return_value=(None, "HTTP 404"))):
            result = await embed_image(MagicMock(), "https://cdn.test/gone.png")
        assert result == ImageFailure("https://cdn.test/gone.png", "HTTP 404")

    @pytest.mark.asyncio
    async def test_undecodable_bytes(self):
        with patch(f"{MODULE}.download_image", AsyncMock(return_value=(b"garbage", ""))):
            result = await embed_image(MagicMock(), "https://cdn.test/bad.png")
        assert isinstance(result, ImageFailure)
        assert result.reason.startswith("decode error")

    @pytest.mark.asyncio
    async def test_empty_ref(self):
        result = await embed_image(MagicMock(), "")
        assert isinstance(result, ImageFailure)


# ---------------------------------------------------------------------------
# embed_report_images
# ---------------------------------------------------------------------------


class TestEmbedReportImages:
    """Tests for embed_report_images()"""

    def _items(self):
        return [
            make_item(id="a1", images=["https://cdn.test/1.png", "https://cdn.test/missing.png"]),
            make_item(id="a2", images=[]),
            make_item(id="c1", type="Calendar", images=["https://cdn.test/3.png"]),
        ]

    def test_collect_refs_in_document_order(self):
        refs = collect_image_refs(self._items())
        assert [key for key, _ in refs] == [(ANN, "a1", 0), (ANN, "a1", 1), (CAL, "c1", 0)]

    @pytest.mark.asyncio
    async def test_results_keyed_and_ordered(self, png_bytes):
        """Happy path: one result per (item, index), failures included."""
        async def fake_download(session, url, max_size=None, timeout=None):
            if "missing" in url:
                return None, "HTTP 404"
            return png_bytes, ""

        with patch(f"{MODULE}.download_image", side_effect=fake_download):
            results = await embed_report_images(self._items(), session=MagicMock())

        assert list(results) == [(ANN, "a1", 0), (ANN, "a1", 1), (CAL, "c1", 0)]
        assert isinstance(results[(ANN, "a1", 0)], EncodedImage)
        assert results[(ANN, "a1", 1)] == ImageFailure("https://cdn.test/missing.png", "HTTP 404")
        assert isinstance(results[(CAL, "c1", 0)], EncodedImage)

    @pytest.mark.asyncio
    async def test_same_id_across_kinds_kept_apart(self, png_bytes):
        """Edge case: announcement and calendar ids are separate sequences."""
        items = [
            make_item(id="1", images=["https://cdn.test/ann.png"]),
            make_item(id="1", type="Calendar", images=["https://cdn.test/missing.png"]),
        ]

        async def fake_download(session, url, max_size=None, timeout=None):
            if "missing" in url:
                return None, "HTTP 404"
            return png_bytes, ""

        with patch(f"{MODULE}.download_image", side_effect=fake_download):
            results = await embed_report_images(items, session=MagicMock())

        assert list(results) == [(ANN, "1", 0), (CAL, "1", 0)]
        assert isinstance(results[(ANN, "1", 0)], EncodedImage)
        assert results[(ANN, "1", 0)].ref == "https://cdn.test/ann.png"
        assert results[(CAL, "1", 0)] == ImageFailure("https://cdn.test/missing.png", "HTTP 404")

    @pytest.mark.asyncio
    async def test_no_images_skips_network(self):
        with patch(f"{MODULE}.aiohttp.ClientSession") as mock_session_cls:
            results = await embed_report_images([make_item(images=[])])
        assert results == {}
        mock_session_cls.assert_not_called()

    @pytest.mark.asyncio
    async def test_concurrency_is_capped(self, png_bytes):
        """Edge case: never more than `concurrency` downloads in flight."""
        active = 0
        peak = 0

        async def slow_download(session, url, max_size=None, timeout=None):
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1
            return png_bytes, ""

        items = [make_item(id=str(i), images=[f"https://cdn.test/{i}.png"]) for i in range(6)]
        with patch(f"{MODULE}.download_image", side_effect=slow_download):
            results = await embed_report_images(items, concurrency=2, session=MagicMock())

        assert len(results) == 6
        assert peak <= 2

    @pytest.mark.asyncio
    async def test_unexpected_error_isolated(self, png_bytes):
        """Failure: one crashing image does not abort the batch."""
        async def flaky_embed(session, ref, base_url=None):
            if ref.endswith("missing.png"):
                raise RuntimeError("boom")
            return reencode_image(ref, png_bytes)

        with patch(f"{MODULE}.embed_image", side_effect=flaky_embed):
            results = await embed_report_images(self._items(), session=MagicMock())

        assert isinstance(results[(ANN, "a1", 1)], ImageFailure)
        assert "boom" in results[(ANN, "a1", 1)].reason
        assert isinstance(results[(CAL, "c1", 0)], EncodedImage)

    @pytest.mark.asyncio
    async def test_owns_session_when_none_given(self, png_bytes):
        owned = MagicMock()
        owned.__aenter__ = AsyncMock(return_value=owned)
        owned.__aexit__ = AsyncMock(return_value=False)

        with patch(f"{MODULE}.aiohttp.ClientSession", return_value=owned), \
                patch(f"{MODULE}.download_image", AsyncMock(return_value=(png_bytes, ""))):
            results = await embed_report_images(self._items())

        assert len(results) == 3
        owned.__aexit__.assert_awaited_once()
