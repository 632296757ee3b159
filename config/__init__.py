# config/__init__.py
# ============================================================
# Configuration package for the resume analysis pipeline.
# Provides centralized, validated settings loaded from .env file.
#
# Usage:
#   from config.settings import settings
#   print(settings.render_scale)
# ============================================================

from config.settings import settings

__all__ = ["settings"]
