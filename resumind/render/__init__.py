# resumind/render/__init__.py
# ============================================================
# Rendering Package
# ============================================================
# Turns the first page of an uploaded PDF into a PNG.
#
# Key classes:
#   - EngineLoader: Lazy, de-duplicated engine loading
#   - EngineHandle: A loaded rasterizer (PyMuPDF or poppler)
#   - ConversionResult: Preview URL + PNG file, or an error
# ============================================================

from resumind.render.converter import (
    ConversionResult,
    ImageFile,
    SourceDocument,
    convert_page,
)
from resumind.render.engine import EngineHandle, Viewport
from resumind.render.loader import (
    EngineLoader,
    LoadStrategy,
    check_engine_version,
    engine_loader,
    engine_options,
)

__all__ = [
    "ConversionResult",
    "ImageFile",
    "SourceDocument",
    "convert_page",
    "EngineHandle",
    "Viewport",
    "EngineLoader",
    "LoadStrategy",
    "check_engine_version",
    "engine_loader",
    "engine_options",
]
