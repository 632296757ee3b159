# resumind/utils/__init__.py
# ============================================================
# Shared Utilities Package
# ============================================================
# Reusable helpers used across the pipeline:
#   - logger: Console logging with Rich formatting
#   - image: PNG encoding, previews, viewport fitting
# ============================================================

from resumind.utils.logger import get_logger
from resumind.utils.image import (
    encode_png,
    fit_to_viewport,
    to_data_url,
)

__all__ = [
    "get_logger",
    "encode_png",
    "fit_to_viewport",
    "to_data_url",
]
