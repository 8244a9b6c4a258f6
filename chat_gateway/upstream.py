from __future__ import annotations

import logging
from typing import Any, AsyncGenerator

import httpx

from .config import Settings
from .providers import ResolvedConfig


logger = logging.getLogger(__name__)


class UpstreamError(RuntimeError):
    def __init__(
        self, message: str, status_code: int | None = None, body: str | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamClient:
    """HTTP client for one provider's streaming /chat/completions endpoint.

    The credential travels with the client instance; nothing is written
    back to the process environment.
    """

    def __init__(
        self,
        config: ResolvedConfig,
        timeout: float | None = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(cls, config: ResolvedConfig, settings: Settings) -> "UpstreamClient":
        return cls(config, timeout=settings.request_timeout)

    @property
    def url(self) -> str:
        return f"{self._config.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.credential:
            headers["Authorization"] = f"Bearer {self._config.credential}"
        return headers

    async def stream_bytes(self, payload: dict[str, Any]) -> AsyncGenerator[bytes, None]:
        """POST the payload and yield the raw response body as it arrives."""
        logger.info(
            "streaming %s model=%s to %s",
            self._config.provider.value,
            self._config.model,
            self.url,
        )
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                async with client.stream(
                    "POST", self.url, headers=self._headers(), json=payload
                ) as resp:
                    if not resp.is_success:
                        body = (await resp.aread()).decode("utf-8", errors="replace")
                        raise UpstreamError(
                            f"API error {resp.status_code}: {body}",
                            status_code=resp.status_code,
                            body=body,
                        )
                    async for chunk in resp.aiter_bytes():
                        yield chunk
        except httpx.HTTPError as exc:
            reason = str(exc) or exc.__class__.__name__
            raise UpstreamError(f"Request failed: {reason}") from exc
