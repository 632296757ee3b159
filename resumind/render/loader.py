# resumind/render/loader.py
# ============================================================
# Rendering Engine Loader: Lazy Process-Wide Singleton
# ============================================================
# Importing and probing a PDF rasterizer is slow, so the engine
# is loaded on first use and cached for the life of the process.
#
# Two strategies are available:
#   1. PRIMARY: import PyMuPDF in-process
#   2. FALLBACK: pdf2image over the poppler command-line tools
#
# A PRIMARY request that fails falls through to FALLBACK before
# giving up with LoadFailure. Callers that arrive while a load is
# still running await the same task, so concurrent first use
# never starts two loads.
#
# Usage:
#   from resumind.render.loader import engine_loader
#   engine = await engine_loader.acquire()
# ============================================================

import asyncio
import importlib
import os
import shutil
import time
from dataclasses import dataclass
from enum import Enum
from importlib import metadata
from typing import Callable, Dict, Optional, Union

from config.settings import settings
from resumind.errors import LoadFailure
from resumind.render.engine import EngineHandle, PopplerEngine, PyMuPDFEngine
from resumind.utils.logger import get_logger

logger = get_logger(__name__)


class LoadStrategy(str, Enum):
    """How the rendering engine is brought into the process."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


@dataclass
class EngineOptions:
    """
    Process-wide engine configuration.

    ``worker_src`` records where the loaded engine's worker code lives.
    It is written once, by the first successful load.
    """
    worker_src: Optional[str] = None


engine_options = EngineOptions()


# ============================================================
# Strategies
# ============================================================
# Both run in a worker thread; they may block on imports and
# filesystem probes.

def load_pymupdf() -> EngineHandle:
    """Import PyMuPDF and wrap it."""
    fitz = importlib.import_module("fitz")
    return PyMuPDFEngine(fitz, worker_src=os.path.dirname(fitz.__file__))


def load_poppler() -> EngineHandle:
    """Import pdf2image and locate the poppler binaries it shells out to."""
    pdf2image = importlib.import_module("pdf2image")

    poppler_path = settings.poppler_path
    binary = shutil.which("pdftoppm", path=poppler_path) if poppler_path else shutil.which("pdftoppm")
    if binary is None:
        raise FileNotFoundError(
            "pdftoppm not found. Install poppler-utils or set POPPLER_PATH."
        )

    return PopplerEngine(
        pdf2image,
        version=f"pdf2image {metadata.version('pdf2image')}",
        poppler_path=poppler_path,
        worker_src=os.path.dirname(binary),
    )


DEFAULT_STRATEGIES: Dict[LoadStrategy, Callable[[], EngineHandle]] = {
    LoadStrategy.PRIMARY: load_pymupdf,
    LoadStrategy.FALLBACK: load_poppler,
}


# ============================================================
# Loader
# ============================================================

class EngineLoader:
    """
    Loads the rendering engine at most once and shares it.

    Two pieces of state are kept apart:
        - ``_handle``: the resolved engine, returned directly once set.
        - ``_pending``: the in-flight load task, awaited by everyone who
          asks before it finishes.

    A failed load clears ``_pending`` so a later call can try again.

    Example:
        >>> loader = EngineLoader()
        >>> a, b = await asyncio.gather(loader.acquire(), loader.acquire())
        >>> a is b
        True
    """

    def __init__(
        self,
        strategies: Optional[Dict[LoadStrategy, Callable[[], EngineHandle]]] = None,
        options: Optional[EngineOptions] = None,
    ):
        self.strategies = dict(strategies or DEFAULT_STRATEGIES)
        self.options = options if options is not None else engine_options
        self._handle: Optional[EngineHandle] = None
        self._pending: Optional[asyncio.Future] = None

    @property
    def is_loaded(self) -> bool:
        return self._handle is not None

    async def acquire(
        self, strategy: Union[LoadStrategy, str] = LoadStrategy.PRIMARY
    ) -> EngineHandle:
        """
        Return the engine, loading it on first use.

        Args:
            strategy: PRIMARY tries PyMuPDF then poppler; FALLBACK tries
                      poppler only. Ignored once an engine is cached.

        Raises:
            LoadFailure: Every attempted strategy failed.
        """
        if self._handle is not None:
            return self._handle

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._initialize(LoadStrategy(strategy)))

        # shield: one cancelled caller must not cancel the shared load
        return await asyncio.shield(self._pending)

    def reset(self) -> None:
        """Forget the cached engine and any in-flight load."""
        self._handle = None
        self._pending = None

    async def _initialize(self, strategy: LoadStrategy) -> EngineHandle:
        if strategy is LoadStrategy.FALLBACK:
            order = [LoadStrategy.FALLBACK]
        else:
            order = [LoadStrategy.PRIMARY, LoadStrategy.FALLBACK]

        causes: Dict[str, BaseException] = {}
        last_error: Optional[BaseException] = None
        try:
            for attempt in order:
                start = time.perf_counter()
                try:
                    handle = await asyncio.to_thread(self.strategies[attempt])
                except Exception as e:
                    logger.warning(f"Engine load via [bold]{attempt.value}[/bold] failed: {e}")
                    causes[attempt.value] = e
                    last_error = e
                    continue

                elapsed = (time.perf_counter() - start) * 1000
                self._install(handle)
                logger.info(
                    f"Rendering engine loaded — [bold]{handle.name}[/bold] {handle.version} "
                    f"via {attempt.value} in {elapsed:.0f}ms"
                )
                return handle

            tried = ", ".join(causes)
            raise LoadFailure(f"Rendering engine failed to load (tried: {tried})", causes) from last_error
        finally:
            self._pending = None

    def _install(self, handle: EngineHandle) -> None:
        self._handle = handle
        if self.options.worker_src is None:
            self.options.worker_src = handle.worker_src
            logger.debug(f"Engine worker location set to {handle.worker_src}")


# Singleton instance shared by every pipeline in the process
engine_loader = EngineLoader()


async def check_engine_version(loader: Optional[EngineLoader] = None) -> dict:
    """
    Report the loaded engine's version.

    Never raises: a load failure is reported as an incompatible,
    unknown engine.

    Returns:
        ``{"api": str, "worker": str, "compatible": bool}``
    """
    loader = loader or engine_loader
    try:
        handle = await loader.acquire(settings.render_strategy)
    except LoadFailure as e:
        logger.warning(f"Engine version check failed: {e}")
        return {"api": "unknown", "worker": "unknown", "compatible": False}

    return {
        "api": f"{handle.name} {handle.version}",
        "worker": handle.worker_src or "bundled",
        "compatible": True,
    }
