# tests/conftest.py
# ============================================================
# Shared Test Fixtures
# ============================================================
# - make_pdf(): synthetic PDFs built with PyMuPDF
# - FakeEngine: an in-memory EngineHandle for loader/renderer
#   tests that must not depend on a real rasterizer
# - Mocked storage / key-value / AI collaborators
# ============================================================

from typing import Optional, Sequence, Tuple
from unittest.mock import AsyncMock, MagicMock

import fitz
import pytest
from PIL import Image

from resumind.render.converter import ConversionResult, ImageFile, SourceDocument
from resumind.render.engine import EngineHandle, ParsedDocument, Viewport
from resumind.render.loader import EngineLoader, EngineOptions, LoadStrategy
from resumind.services.storage import StoredFile


# ============================================================
# Helpers
# ============================================================

def make_pdf(width: float = 200, height: float = 100, pages: int = 1) -> bytes:
    """Build a small PDF with one line of text per page."""
    doc = fitz.open()
    for i in range(pages):
        page = doc.new_page(width=width, height=height)
        page.insert_text((10, height / 2), f"Jane Doe page {i + 1}", fontsize=12)
    data = doc.tobytes()
    doc.close()
    return data


class FakeDocument(ParsedDocument):
    def __init__(self, sizes: Sequence[Tuple[float, float]]):
        self.sizes = list(sizes)
        self.closed = False

    @property
    def page_count(self) -> int:
        return len(self.sizes)

    def page_size(self, page_number: int) -> Tuple[float, float]:
        self.check_page(page_number)
        return self.sizes[page_number - 1]

    def close(self) -> None:
        self.closed = True


class FakeEngine(EngineHandle):
    """Renders every page as a solid grey image of the viewport size."""

    name = "fake"

    def __init__(self, sizes=((100.0, 50.0),), version: str = "1.0", worker_src: Optional[str] = "/opt/fake"):
        super().__init__(version=version, worker_src=worker_src)
        self.sizes = sizes
        self.smoothing = False
        self.renders = 0

    def open(self, data: bytes) -> ParsedDocument:
        if not data.startswith(b"%PDF"):
            raise ValueError("not a PDF")
        return FakeDocument(self.sizes)

    def enable_smoothing(self) -> None:
        self.smoothing = True

    def render(self, document: ParsedDocument, page_number: int, viewport: Viewport) -> Image.Image:
        self.renders += 1
        return Image.new("RGB", viewport.size, (128, 128, 128))


def fake_loader(engine: EngineHandle) -> EngineLoader:
    """A loader whose primary strategy always returns ``engine``."""
    def fail():
        raise ImportError("fallback unavailable")

    return EngineLoader(
        strategies={LoadStrategy.PRIMARY: lambda: engine, LoadStrategy.FALLBACK: fail},
        options=EngineOptions(),
    )


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def pdf_bytes() -> bytes:
    return make_pdf()


@pytest.fixture
def source_document(pdf_bytes) -> SourceDocument:
    return SourceDocument(data=pdf_bytes, name="resume.pdf")


@pytest.fixture
def real_loader() -> EngineLoader:
    """Default strategies, isolated from the process-wide cache."""
    return EngineLoader(options=EngineOptions())


@pytest.fixture
def image_file() -> ImageFile:
    return ImageFile(name="resume.png", data=b"\x89PNG fake", width=800, height=400)


@pytest.fixture
def storage():
    """Object storage mock: source → /r/1, image → /i/1."""
    mock = MagicMock()
    mock.upload = AsyncMock(side_effect=[StoredFile(path="/r/1"), StoredFile(path="/i/1")])
    mock.read = AsyncMock(return_value=b"\x89PNG fake")
    return mock


@pytest.fixture
def store():
    mock = MagicMock()
    mock.set = AsyncMock(return_value=True)
    return mock


@pytest.fixture
def ai_service():
    mock = MagicMock()
    mock.feedback = AsyncMock(return_value={"message": {"content": '{"score": 80}'}})
    return mock


@pytest.fixture
def converter(image_file):
    return AsyncMock(return_value=ConversionResult(image_url="data:image/png;base64,AAAA", file=image_file))
