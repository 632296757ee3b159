# config/settings.py
# ============================================================
# Centralized Configuration for the Resume Analysis Pipeline
# ============================================================
# All settings are loaded from environment variables (or .env file).
# Pydantic validates types and provides sensible defaults.
#
# Usage:
#   from config.settings import settings
#   result = await convert_page(doc, scale=settings.render_scale)
# ============================================================

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
    """
    Application-wide settings. Values are loaded from environment variables
    or a .env file. Every setting has a typed default so the app can run
    out-of-the-box with zero configuration.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # --- Rendering Engine ---
    render_scale: float = Field(
        default=4.0,
        gt=0,
        description="Viewport scale for page rasterization. Higher = sharper image, slower render.",
    )
    render_strategy: Literal["primary", "fallback"] = Field(
        default="primary",
        description="Engine load strategy: primary (PyMuPDF) | fallback (poppler via pdf2image).",
    )
    poppler_path: Optional[str] = Field(
        default=None,
        description="Directory holding the poppler binaries. If unset, pdftoppm is looked up on PATH.",
    )

    # --- Storage ---
    storage_dir: str = Field(
        default="data/uploads",
        description="Root directory of the local object storage.",
    )
    kv_dir: str = Field(
        default="data/kv",
        description="Root directory of the file-backed key-value store.",
    )
    record_key_prefix: str = Field(
        default="record",
        description="Key prefix for persisted pipeline records (<prefix>-<id>).",
    )

    # --- AI Feedback Service ---
    ai_server_url: str = Field(
        default="http://127.0.0.1:8000",
        description="Base URL of an OpenAI-compatible chat completions server.",
    )
    ai_model_name: str = Field(
        default="gpt-4o-mini",
        description="Vision model used to analyse the rendered resume.",
    )
    ai_api_key: Optional[str] = Field(
        default=None,
        description="Bearer token for the AI server, if it requires one.",
    )
    ai_max_tokens: int = Field(
        default=2048,
        description="Maximum number of tokens to generate for the feedback.",
    )
    ai_timeout_s: float = Field(
        default=300.0,
        description="Transport timeout for AI requests (seconds).",
    )

    # --- Logging ---
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG | INFO | WARNING | ERROR.",
    )


# ============================================================
# Singleton instance, import this everywhere:
#   from config.settings import settings
# ============================================================
settings = Settings()
