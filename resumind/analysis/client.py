# resumind/analysis/client.py
# ============================================================
# AI Feedback Client: OpenAI-Compatible Chat Completions
# ============================================================
# Sends the rendered resume image plus the review instructions
# to a vision model and hands back the first choice's message:
#
#     {"message": {"content": ...}}
#
# The image is read back from object storage by its path and
# inlined as a base64 data URL, so the server never needs access
# to our storage.
#
# Any transport or protocol error is logged and reported as None;
# the pipeline turns that into "Failed to analyse resume".
# ============================================================

import time
from typing import Any, Optional, Protocol, runtime_checkable

import httpx

from config.settings import settings
from resumind.services.storage import ObjectStorage
from resumind.utils.image import to_data_url
from resumind.utils.logger import get_logger

logger = get_logger(__name__)


@runtime_checkable
class FeedbackService(Protocol):
    async def feedback(self, image_path: str, instructions: str) -> Optional[dict[str, Any]]:
        ...


class FeedbackClient:
    """
    Feedback service backed by a chat completions endpoint.

    The httpx client is created lazily and reused across requests;
    call aclose() when done.
    """

    def __init__(
        self,
        storage: ObjectStorage,
        base_url: Optional[str] = None,
        model_name: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.storage = storage
        self.base_url = base_url or settings.ai_server_url
        self.model_name = model_name or settings.ai_model_name
        self.api_key = api_key if api_key is not None else settings.ai_api_key
        self.timeout_s = timeout_s or settings.ai_timeout_s
        self._transport = transport
        self._aclient: Optional[httpx.AsyncClient] = None

        logger.info(
            f"FeedbackClient initialized — model: [bold]{self.model_name}[/bold], "
            f"server: {self.base_url}"
        )

    def _client(self) -> httpx.AsyncClient:
        if self._aclient is None:
            headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
            self._aclient = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout_s),
                transport=self._transport,
            )
        return self._aclient

    async def aclose(self) -> None:
        if self._aclient is not None:
            await self._aclient.aclose()
            self._aclient = None

    def build_payload(self, image_data_url: str, instructions: str) -> dict:
        return {
            "model": self.model_name,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": instructions},
                        {"type": "image_url", "image_url": {"url": image_data_url}},
                    ],
                }
            ],
            "temperature": 0.0,
            "max_tokens": settings.ai_max_tokens,
        }

    async def feedback(self, image_path: str, instructions: str) -> Optional[dict[str, Any]]:
        """
        Ask the model to review the image stored at ``image_path``.

        Returns:
            ``{"message": {...}}`` from the first choice, or None on failure.
        """
        start = time.perf_counter()
        try:
            image_bytes = await self.storage.read(image_path)
            payload = self.build_payload(to_data_url(image_bytes), instructions)

            response = await self._client().post("/v1/chat/completions", json=payload)
            response.raise_for_status()
            message = response.json()["choices"][0]["message"]

        except (httpx.HTTPError, OSError, ValueError, KeyError, IndexError, TypeError) as e:
            logger.error(f"Feedback request for {image_path} failed: {e}")
            return None

        logger.info(
            f"Feedback received for {image_path} in {(time.perf_counter() - start) * 1000:.0f}ms"
        )
        return {"message": message}
