# resumind/render/engine.py
# ============================================================
# Rendering Engine Backends
# ============================================================
# Thin adapters over the two PDF rasterizers we can load:
#
#   - PyMuPDFEngine: in-process MuPDF bindings (primary)
#   - PopplerEngine: pdftoppm/pdftocairo via pdf2image (fallback)
#
# Both expose the same small surface the renderer needs: parse
# bytes into a page-addressable document, report page sizes in
# points, and rasterize one page at a viewport's scale.
# ============================================================

import re
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Tuple

from PIL import Image

# PDF user space is 72 units per inch
POINTS_PER_INCH = 72.0

# MuPDF anti-aliasing levels run 0 (off) to 8 (best)
MAX_AA_LEVEL = 8

_PAGE_SIZE_RE = re.compile(r"([\d.]+)\s*x\s*([\d.]+)\s*pts")


@dataclass(frozen=True)
class Viewport:
    """Pixel size of a page rendered at ``scale``."""
    width: int
    height: int
    scale: float

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)

    @classmethod
    def for_page(cls, page_size: Tuple[float, float], scale: float) -> "Viewport":
        width_pt, height_pt = page_size
        return cls(width=int(width_pt * scale), height=int(height_pt * scale), scale=scale)


class ParsedDocument(ABC):
    """A parsed PDF whose pages are addressed 1-based."""

    @property
    @abstractmethod
    def page_count(self) -> int:
        ...

    @abstractmethod
    def page_size(self, page_number: int) -> Tuple[float, float]:
        """(width, height) of a page in points, after rotation."""

    def close(self) -> None:
        pass

    def check_page(self, page_number: int) -> None:
        if not 1 <= page_number <= self.page_count:
            raise IndexError(
                f"Page {page_number} out of range (document has {self.page_count} pages)"
            )


class EngineHandle(ABC):
    """
    A loaded rendering engine.

    Attributes:
        name: Backend identifier ("pymupdf" or "poppler").
        version: Version string reported by the backend.
        worker_src: Filesystem location of the engine's worker code or binaries.
        lock: Held for the whole parse-and-render of one page. MuPDF
            is not thread-safe, so renders on one handle run one at a time.
    """

    name: str = "engine"

    def __init__(self, version: str, worker_src: Optional[str] = None):
        self.version = version
        self.worker_src = worker_src
        self.lock = threading.Lock()

    @abstractmethod
    def open(self, data: bytes) -> ParsedDocument:
        """Parse raw document bytes. Raises on corrupt or non-PDF input."""

    @abstractmethod
    def render(self, document: ParsedDocument, page_number: int, viewport: Viewport) -> Image.Image:
        """Rasterize one page at ``viewport.scale``. Returns an RGB image."""

    def enable_smoothing(self) -> None:
        """Switch the backend to its highest-quality anti-aliasing."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} {self.version}>"


# ============================================================
# PyMuPDF
# ============================================================

class _PyMuPDFDocument(ParsedDocument):
    def __init__(self, doc: Any):
        self.doc = doc

    @property
    def page_count(self) -> int:
        return self.doc.page_count

    def page_size(self, page_number: int) -> Tuple[float, float]:
        self.check_page(page_number)
        rect = self.doc.load_page(page_number - 1).rect
        return (rect.width, rect.height)

    def close(self) -> None:
        self.doc.close()


class PyMuPDFEngine(EngineHandle):
    name = "pymupdf"

    def __init__(self, fitz_module: Any, worker_src: Optional[str] = None):
        version = getattr(fitz_module, "VersionBind", None) or getattr(fitz_module, "__version__", "unknown")
        super().__init__(version=str(version), worker_src=worker_src)
        self._fitz = fitz_module

    def open(self, data: bytes) -> ParsedDocument:
        doc = self._fitz.open(stream=data, filetype="pdf")
        if doc.page_count < 1:
            doc.close()
            raise ValueError("Document has no pages")
        return _PyMuPDFDocument(doc)

    def enable_smoothing(self) -> None:
        self._fitz.TOOLS.set_aa_level(MAX_AA_LEVEL)

    def render(self, document: ParsedDocument, page_number: int, viewport: Viewport) -> Image.Image:
        document.check_page(page_number)
        page = document.doc.load_page(page_number - 1)
        matrix = self._fitz.Matrix(viewport.scale, viewport.scale)
        pix = page.get_pixmap(matrix=matrix, alpha=False)
        return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)


# ============================================================
# Poppler (pdf2image)
# ============================================================

class _PopplerDocument(ParsedDocument):
    def __init__(self, data: bytes, info: dict):
        self.data = data
        self.info = info

    @property
    def page_count(self) -> int:
        return int(self.info.get("Pages", 0))

    def page_size(self, page_number: int) -> Tuple[float, float]:
        self.check_page(page_number)
        # pdfinfo reports the size of the first page only
        if page_number != 1:
            raise ValueError("poppler backend can only size page 1")
        match = _PAGE_SIZE_RE.search(str(self.info.get("Page size", "")))
        if not match:
            raise ValueError(f"Unreadable page size: {self.info.get('Page size')!r}")
        width, height = float(match.group(1)), float(match.group(2))
        if int(self.info.get("Page rot", 0) or 0) % 180:
            width, height = height, width
        return (width, height)


class PopplerEngine(EngineHandle):
    name = "poppler"

    def __init__(
        self,
        pdf2image_module: Any,
        version: str,
        poppler_path: Optional[str] = None,
        worker_src: Optional[str] = None,
    ):
        super().__init__(version=version, worker_src=worker_src)
        self._pdf2image = pdf2image_module
        self.poppler_path = poppler_path
        self.use_pdftocairo = False

    def open(self, data: bytes) -> ParsedDocument:
        info = self._pdf2image.pdfinfo_from_bytes(data, poppler_path=self.poppler_path)
        document = _PopplerDocument(data, info)
        if document.page_count < 1:
            raise ValueError("Document has no pages")
        return document

    def enable_smoothing(self) -> None:
        # pdftocairo anti-aliases vector art as well as text
        self.use_pdftocairo = True

    def render(self, document: ParsedDocument, page_number: int, viewport: Viewport) -> Image.Image:
        document.check_page(page_number)
        images = self._pdf2image.convert_from_bytes(
            document.data,
            dpi=POINTS_PER_INCH * viewport.scale,
            first_page=page_number,
            last_page=page_number,
            fmt="png",
            poppler_path=self.poppler_path,
            use_pdftocairo=self.use_pdftocairo,
        )
        if not images:
            raise RuntimeError(f"poppler produced no image for page {page_number}")
        return images[0].convert("RGB")
