# resumind/utils/image.py
# ============================================================
# Image Utility Functions
# ============================================================
# Pillow helpers shared by the renderer and the feedback client:
# PNG encoding of raster surfaces, data-URL previews, fitting a
# rendered page onto its viewport.
#
# Usage:
#   from resumind.utils.image import encode_png, to_data_url
#   blob = encode_png(surface)
#   preview = to_data_url(blob)
# ============================================================

import base64
import io
import time
from typing import Optional, Tuple

from PIL import Image

from resumind.utils.logger import get_logger

logger = get_logger(__name__)

PNG_CONTENT_TYPE = "image/png"

# Largest per-axis gap between a render and its viewport that is
# closed by cropping or padding instead of resampling
EDGE_TOLERANCE_PX = 1


def encode_png(surface: Image.Image) -> Optional[bytes]:
    """
    Encode a raster surface as a lossless PNG blob.

    PNG is lossless, so "maximum quality" here means no quantization
    and the slowest (smallest) zlib setting.

    Returns:
        The PNG bytes, or None when the surface has zero area. Callers
        treat None as a distinct failure rather than an exception.
    """
    width, height = surface.size
    if width <= 0 or height <= 0:
        logger.warning(f"Refusing to encode zero-area surface ({width}x{height})")
        return None

    start = time.perf_counter()
    buffer = io.BytesIO()
    surface.save(buffer, format="PNG", optimize=True, compress_level=9)
    blob = buffer.getvalue()

    duration = (time.perf_counter() - start) * 1000
    logger.debug(f"PNG encoding ({width}x{height}, {len(blob)} bytes) took {duration:.2f}ms")
    return blob or None


def to_data_url(blob: bytes, content_type: str = PNG_CONTENT_TYPE) -> str:
    """Build an inline ``data:`` URL usable as a local preview of the blob."""
    return f"data:{content_type};base64,{base64.b64encode(blob).decode('utf-8')}"


def fit_to_viewport(image: Image.Image, size: Tuple[int, int]) -> Image.Image:
    """
    Return ``image`` at exactly ``size``.

    The viewport truncates fractional page edges while MuPDF rounds them
    outward, so a render is often a pixel over. Within EDGE_TOLERANCE_PX
    on both axes the render is cropped (or padded with white) and its
    pixels are kept as they are. Anything further off is resampled with
    Lanczos.
    """
    width, height = size
    if image.size == (width, height):
        return image

    start = time.perf_counter()
    if abs(image.width - width) <= EDGE_TOLERANCE_PX and abs(image.height - height) <= EDGE_TOLERANCE_PX:
        fitted = Image.new(image.mode, (width, height), "white")
        fitted.paste(image.crop((0, 0, min(image.width, width), min(image.height, height))), (0, 0))
        how = "Trimmed"
    else:
        fitted = image.resize((width, height), Image.Resampling.LANCZOS)
        how = "Resampled"

    duration = (time.perf_counter() - start) * 1000
    logger.debug(
        f"{how} render {image.width}x{image.height} -> {width}x{height} in {duration:.2f}ms"
    )
    return fitted
