"""HTTP transport to the vendor endpoints."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from unichat.config import ProviderConfig
from unichat.llm.adapter import ProviderAdapter
from unichat.llm.errors import VendorHttpError, VendorParseError, VendorTransportError

logger = logging.getLogger(__name__)


class ChatClient:
    """Posts adapter-built request bodies and returns the decoded JSON reply.

    Credentials come from the per-call ProviderConfig, so one client can
    serve any number of conversations. No retries: failures propagate.
    """

    def __init__(
        self,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    async def complete(
        self,
        adapter: ProviderAdapter,
        body: dict[str, Any],
        config: ProviderConfig,
    ) -> dict[str, Any]:
        url = config.endpoint_base + adapter.endpoint_path
        logger.debug(
            "POST %s model=%s messages=%d tools=%d",
            url,
            body.get("model"),
            len(body.get("messages", [])),
            len(body.get("tools", [])),
        )

        try:
            resp = await self._client.post(url, json=body, headers=adapter.headers(config))
        except httpx.HTTPError as exc:
            raise VendorTransportError(adapter.name, f"{adapter.name} request failed: {exc}") from exc

        if not resp.is_success:
            raise VendorHttpError(adapter.name, resp.status_code, resp.text)

        try:
            data = resp.json()
        except ValueError as exc:
            raise VendorParseError(adapter.name, f"body is not JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise VendorParseError(adapter.name, "body is not a JSON object")

        logger.debug("%s replied with status %d", adapter.name, resp.status_code)
        return data

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> ChatClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
