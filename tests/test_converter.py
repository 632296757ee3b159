# tests/test_converter.py
# ============================================================
# Unit Tests: Page Renderer
# ============================================================
# Renders synthetic PDFs with the real PyMuPDF engine and uses
# FakeEngine for the edge cases (zero-area page, load failure)
# that a real document cannot produce on demand.
#
# Run:
#   pytest tests/test_converter.py -v
# ============================================================

import asyncio
import base64
import io
import shutil
import threading
import time

import pytest
from PIL import Image

from conftest import FakeEngine, fake_loader, make_pdf
from resumind.render.converter import (
    NULL_BLOB_ERROR,
    ConversionResult,
    SourceDocument,
    convert_page,
    image_name_for,
)
from resumind.render.engine import PyMuPDFEngine
from resumind.render.loader import EngineLoader, EngineOptions, LoadStrategy, load_poppler


# ============================================================
# Rendering with PyMuPDF
# ============================================================

class TestConvertPage:
    """End-to-end conversion of a real (synthetic) PDF."""

    @pytest.mark.asyncio
    async def test_renders_first_page_at_scale(self, source_document, real_loader):
        """A 200x100pt page at 4x becomes an 800x400 PNG."""
        result = await convert_page(source_document, scale=4.0, loader=real_loader)

        assert result.error is None
        assert result.file is not None
        assert (result.file.width, result.file.height) == (800, 400)
        assert result.file.name == "resume.png"
        assert result.file.content_type == "image/png"

        image = Image.open(io.BytesIO(result.file.data))
        assert image.format == "PNG"
        assert image.size == (800, 400)

    @pytest.mark.asyncio
    async def test_preview_url_matches_file(self, source_document, real_loader):
        """The preview URL and the file come from the same encode."""
        result = await convert_page(source_document, scale=1.0, loader=real_loader)

        prefix = "data:image/png;base64,"
        assert result.image_url.startswith(prefix)
        assert base64.b64decode(result.image_url[len(prefix):]) == result.file.data

    @pytest.mark.asyncio
    async def test_same_document_same_dimensions(self, source_document, real_loader):
        first = await convert_page(source_document, scale=2.0, loader=real_loader)
        second = await convert_page(source_document, scale=2.0, loader=real_loader)

        assert (first.file.width, first.file.height) == (second.file.width, second.file.height)

    @pytest.mark.asyncio
    async def test_only_one_page_is_rendered(self, real_loader):
        """A multi-page document still yields a single page-1 image."""
        document = SourceDocument(data=make_pdf(width=300, height=150, pages=3), name="cv.pdf")
        result = await convert_page(document, scale=1.0, loader=real_loader)

        assert (result.file.width, result.file.height) == (300, 150)

    @pytest.mark.asyncio
    async def test_page_is_not_blank(self, source_document, real_loader):
        """The inserted text leaves dark pixels on the white surface."""
        result = await convert_page(source_document, scale=2.0, loader=real_loader)
        image = Image.open(io.BytesIO(result.file.data)).convert("L")

        assert min(image.getdata()) < 128


# ============================================================
# Failure Handling
# ============================================================

class TestConversionFailures:
    """Every failure comes back as a value, never as an exception."""

    @pytest.mark.asyncio
    async def test_corrupt_bytes_return_error(self, real_loader):
        document = SourceDocument(data=b"this is not a pdf at all", name="notes.pdf")

        result = await convert_page(document, loader=real_loader)

        assert result.file is None
        assert result.image_url == ""
        assert result.error
        assert result.error.startswith("Failed to convert PDF")

    @pytest.mark.asyncio
    async def test_empty_bytes_return_error(self, real_loader):
        result = await convert_page(SourceDocument(data=b"", name="empty.pdf"), loader=real_loader)

        assert result.file is None
        assert result.error

    @pytest.mark.asyncio
    async def test_zero_area_page_is_a_null_blob(self):
        """A zero-sized viewport yields the explicit null-blob result."""
        loader = fake_loader(FakeEngine(sizes=((0.0, 0.0),)))

        result = await convert_page(SourceDocument(data=b"%PDF-1.7", name="a.pdf"), loader=loader)

        assert result == ConversionResult(image_url="", file=None, error=NULL_BLOB_ERROR)
        assert NULL_BLOB_ERROR == "Failed to create image blob"

    @pytest.mark.asyncio
    async def test_load_failure_returns_error(self):
        def broken():
            raise ImportError("engine missing")

        loader = EngineLoader(
            strategies={LoadStrategy.PRIMARY: broken, LoadStrategy.FALLBACK: broken},
            options=EngineOptions(),
        )

        result = await convert_page(SourceDocument(data=b"%PDF-1.7", name="a.pdf"), loader=loader)

        assert result.file is None
        assert "Failed to convert PDF" in result.error

    @pytest.mark.asyncio
    async def test_page_out_of_range_returns_error(self):
        loader = fake_loader(FakeEngine(sizes=((100.0, 50.0),)))

        result = await convert_page(SourceDocument(data=b"%PDF-1.7", name="a.pdf"), page=2, loader=loader)

        assert result.file is None
        assert "out of range" in result.error


# ============================================================
# Viewport & Smoothing (FakeEngine)
# ============================================================

class TestViewport:

    @pytest.mark.asyncio
    async def test_default_scale_is_four(self):
        engine = FakeEngine(sizes=((100.0, 50.0),))
        result = await convert_page(SourceDocument(data=b"%PDF-1.7", name="a.pdf"), loader=fake_loader(engine))

        assert (result.file.width, result.file.height) == (400, 200)

    @pytest.mark.asyncio
    async def test_fractional_page_size_truncates(self):
        engine = FakeEngine(sizes=((100.6, 50.3),))
        result = await convert_page(
            SourceDocument(data=b"%PDF-1.7", name="a.pdf"), scale=1.0, loader=fake_loader(engine),
        )

        assert (result.file.width, result.file.height) == (100, 50)

    @pytest.mark.asyncio
    async def test_smoothing_enabled_before_render(self):
        engine = FakeEngine()
        await convert_page(SourceDocument(data=b"%PDF-1.7", name="a.pdf"), loader=fake_loader(engine))

        assert engine.smoothing is True
        assert engine.renders == 1


# ============================================================
# Output Naming
# ============================================================

class TestImageName:

    @pytest.mark.parametrize(
        "source, expected",
        [
            ("resume.pdf", "resume.png"),
            ("Jane Doe CV.PDF", "Jane Doe CV.png"),
            ("cv.v2.pdf", "cv.v2.png"),
            ("resume", "resume.png"),
            ("uploads/2024/cv.pdf", "cv.png"),
            (".pdf", "document.png"),
            ("", "document.png"),
        ],
    )
    def test_extension_is_replaced(self, source, expected):
        assert image_name_for(source) == expected


# ============================================================
# Fallback Engine (needs poppler installed)
# ============================================================

@pytest.mark.skipif(shutil.which("pdftoppm") is None, reason="poppler-utils not installed")
class TestPopplerFallback:

    @pytest.mark.asyncio
    async def test_fallback_renders_same_size(self, source_document):
        loader = EngineLoader(
            strategies={LoadStrategy.PRIMARY: load_poppler, LoadStrategy.FALLBACK: load_poppler},
            options=EngineOptions(),
        )
        result = await convert_page(source_document, scale=2.0, loader=loader)

        assert result.error is None
        assert (result.file.width, result.file.height) == (400, 200)


# ============================================================
# One Render at a Time
# ============================================================

class ActiveCounter:
    """Tracks how many threads are inside a wrapped call at once."""

    def __init__(self):
        self.active = 0
        self.peak = 0
        self._lock = threading.Lock()

    def enter(self):
        with self._lock:
            self.active += 1
            self.peak = max(self.peak, self.active)

    def leave(self):
        with self._lock:
            self.active -= 1

    def __enter__(self):
        self.enter()

    def __exit__(self, *exc):
        self.leave()


class SlowEngine(FakeEngine):
    """FakeEngine whose open-to-close span is long enough to overlap."""

    def __init__(self):
        super().__init__()
        self.counter = ActiveCounter()

    def open(self, data: bytes):
        self.counter.enter()
        document = super().open(data)
        document.close = self.counter.leave
        return document

    def render(self, document, page_number, viewport):
        time.sleep(0.02)
        return super().render(document, page_number, viewport)


class TestSerializedRendering:
    """Concurrent conversions on one engine never render in parallel."""

    @pytest.mark.asyncio
    async def test_pymupdf_renders_one_at_a_time(self, source_document, real_loader, monkeypatch):
        counter = ActiveCounter()
        original = PyMuPDFEngine.render

        def tracked(self, document, page_number, viewport):
            with counter:
                time.sleep(0.01)
                return original(self, document, page_number, viewport)

        monkeypatch.setattr(PyMuPDFEngine, "render", tracked)

        results = await asyncio.gather(
            *[convert_page(source_document, scale=1.0, loader=real_loader) for _ in range(8)]
        )

        assert [r.error for r in results] == [None] * 8
        assert counter.peak == 1

    @pytest.mark.asyncio
    async def test_open_through_close_is_exclusive(self):
        """The lock spans the whole parse, not just the rasterize step."""
        engine = SlowEngine()
        document = SourceDocument(data=b"%PDF-1.7", name="a.pdf")

        results = await asyncio.gather(
            *[convert_page(document, scale=1.0, loader=fake_loader(engine)) for _ in range(6)]
        )

        assert all(r.success for r in results)
        assert engine.renders == 6
        assert engine.counter.peak == 1
        assert engine.counter.active == 0

    def test_each_handle_has_its_own_lock(self):
        assert FakeEngine().lock is not FakeEngine().lock
