# resumind/errors.py
# ============================================================
# Error Taxonomy
# ============================================================
# One exception per failure kind. The renderer turns its own
# failures into ConversionResult values; the orchestrator raises
# these internally and its driver converts them into a failed
# PipelineOutcome plus a status string.
# ============================================================

from typing import Dict, Optional


class ResumindError(Exception):
    """Base class for every failure raised by this package."""


class LoadFailure(ResumindError):
    """The rendering engine could not be loaded by any strategy."""

    def __init__(self, message: str, causes: Optional[Dict[str, BaseException]] = None):
        super().__init__(message)
        self.causes: Dict[str, BaseException] = dict(causes or {})


class ConversionFailure(ResumindError):
    """Parsing, rendering or encoding the page failed (including a null blob)."""


class UploadFailure(ResumindError):
    """Object storage returned no handle for an upload."""


class PersistFailure(ResumindError):
    """The key-value store rejected a write."""


class AnalysisFailure(ResumindError):
    """The AI feedback service returned nothing."""


class ParseFailure(ResumindError):
    """The AI response or its feedback text did not have the expected shape."""
