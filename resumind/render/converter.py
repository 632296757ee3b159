# resumind/render/converter.py
# ============================================================
# Page Renderer: PDF Page → PNG Image
# ============================================================
# Turns one page of an uploaded document into a PNG that the
# vision model can read.
#
# Flow:
#   1. Acquire the shared rendering engine (lazy, loaded once)
#   2. Parse the bytes into a page-addressable document
#   3. Pick the page (page 1, since resumes are analysed on their
#      first page only)
#   4. Compute the viewport at the render scale
#   5. Allocate a white surface the size of the viewport
#   6. Turn on the engine's best anti-aliasing
#   7. Rasterize the page into the surface (worker thread,
#      one render per engine at a time)
#   8. Encode the surface once as PNG
#
# The single encode feeds both outputs: an inline preview URL and
# a named PNG file for upload.
#
# Failures never escape convert_page(): they come back as a
# ConversionResult with `error` set and `file` = None.
# ============================================================

import asyncio
import time
from dataclasses import dataclass
from pathlib import Path, PurePath
from typing import Optional, Union

from PIL import Image

from config.settings import settings
from resumind.errors import ConversionFailure
from resumind.render.engine import EngineHandle, ParsedDocument, Viewport
from resumind.render.loader import EngineLoader, engine_loader
from resumind.utils.image import PNG_CONTENT_TYPE, encode_png, fit_to_viewport, to_data_url
from resumind.utils.logger import get_logger

logger = get_logger(__name__)

IMAGE_EXTENSION = ".png"
NULL_BLOB_ERROR = "Failed to create image blob"


# ============================================================
# Data Classes
# ============================================================

@dataclass
class SourceDocument:
    """Raw bytes of an uploaded document plus its original file name."""
    data: bytes
    name: str

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "SourceDocument":
        path = Path(path)
        return cls(data=path.read_bytes(), name=path.name)


@dataclass
class ImageFile:
    """A rendered page, ready to upload."""
    name: str
    data: bytes
    width: int
    height: int
    content_type: str = PNG_CONTENT_TYPE


@dataclass
class ConversionResult:
    """
    Outcome of convert_page().

    Exactly one of these holds:
        - success: ``file`` and ``image_url`` are set, ``error`` is None
        - failure: ``file`` is None, ``image_url`` is "", ``error`` is set
    """
    image_url: str = ""
    file: Optional[ImageFile] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.file is not None and self.error is None

    @classmethod
    def failure(cls, message: str) -> "ConversionResult":
        return cls(image_url="", file=None, error=message)


def image_name_for(source_name: str) -> str:
    """
    Swap the document's extension for ``.png``.

    Example:
        >>> image_name_for("Jane Doe CV.PDF")
        'Jane Doe CV.png'
    """
    name = PurePath(source_name or "document").name or "document"
    if name.startswith(".") and name.count(".") == 1:
        # ".pdf" alone has no stem to keep
        return f"document{IMAGE_EXTENSION}"
    return str(PurePath(name).with_suffix(IMAGE_EXTENSION))


# ============================================================
# Rendering
# ============================================================

def _rasterize(handle: EngineHandle, parsed: ParsedDocument, page: int, viewport: Viewport) -> Image.Image:
    surface = Image.new("RGB", viewport.size, "white")
    if surface.width == 0 or surface.height == 0:
        return surface

    handle.enable_smoothing()
    rendered = handle.render(parsed, page, viewport)
    surface.paste(fit_to_viewport(rendered, viewport.size), (0, 0))
    return surface


def _parse_and_render(handle: EngineHandle, data: bytes, page: int, scale: float) -> Image.Image:
    with handle.lock:
        parsed = handle.open(data)
        try:
            viewport = Viewport.for_page(parsed.page_size(page), scale)
            logger.debug(
                f"Page {page}/{parsed.page_count} viewport {viewport.width}x{viewport.height} @ {scale}x"
            )
            return _rasterize(handle, parsed, page, viewport)
        finally:
            parsed.close()


async def convert_page(
    doc: SourceDocument,
    page: int = 1,
    scale: Optional[float] = None,
    loader: Optional[EngineLoader] = None,
) -> ConversionResult:
    """
    Render one page of ``doc`` to PNG.

    Args:
        doc: The uploaded document.
        page: 1-based page number. Only this single page is rendered.
        scale: Viewport scale. Defaults to settings.render_scale (4x keeps
               small resume fonts legible to the model).
        loader: Engine loader to use. Defaults to the process-wide one.

    Returns:
        ConversionResult. Never raises.
    """
    loader = loader or engine_loader
    scale = scale if scale is not None else settings.render_scale
    start = time.perf_counter()

    try:
        handle = await loader.acquire(settings.render_strategy)
        surface = await asyncio.to_thread(_parse_and_render, handle, doc.data, page, scale)

        blob = await asyncio.to_thread(encode_png, surface)
        if blob is None:
            logger.error(f"Conversion of [bold]{doc.name}[/bold] produced no image blob")
            return ConversionResult.failure(NULL_BLOB_ERROR)

        image_file = ImageFile(
            name=image_name_for(doc.name),
            data=blob,
            width=surface.width,
            height=surface.height,
        )
        logger.info(
            f"Converted [bold]{doc.name}[/bold] → {image_file.name} "
            f"({image_file.width}x{image_file.height}, {len(blob)} bytes) "
            f"in {(time.perf_counter() - start) * 1000:.0f}ms"
        )
        return ConversionResult(image_url=to_data_url(blob), file=image_file)

    except Exception as e:
        logger.error(f"Failed to convert [bold]{doc.name}[/bold]: {e}")
        return ConversionResult.failure(f"Failed to convert PDF: {e}")


def require_image(result: ConversionResult) -> ImageFile:
    """Unwrap a ConversionResult, raising ConversionFailure if it carries none."""
    if result.file is None:
        raise ConversionFailure(result.error or "Conversion produced no file")
    return result.file
