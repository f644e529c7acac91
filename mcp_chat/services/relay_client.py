# Client-side transport that talks to the relay over HTTP and decodes its SSE stream.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

import json
import httpx
from typing import AsyncIterator, Optional
from mcp_chat.core.config import get_settings
from mcp_chat.core.errors import RelayRequestError, RelayUpstreamError, ServerValidationError
from mcp_chat.core.sse import Frame, SSEDecoder
from mcp_chat.models.api_models import RelayRequest, ValidateServerResponse
from mcp_chat.utils.logger import console


def _error_message(response: httpx.Response, body: bytes) -> str:
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, dict) and isinstance(data.get("error"), str):
        return data["error"]
    return f"HTTP error! status: {response.status_code}"


class RelayClient:
    """
    Opens relay streams for a conversation.

    `stream()` yields decoded frames in arrival order; a non-200 answer raises
    RelayRequestError (400) or RelayUpstreamError carrying the relay's status and
    message. Cancelling the consuming task closes the HTTP response.
    """

    def __init__(self, base_url: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None):
        settings = get_settings()
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url or settings.RELAY_BASE_URL,
            timeout=httpx.Timeout(settings.UPSTREAM_TIMEOUT, connect=10.0),
        )

    async def stream(self, provider: str, request: RelayRequest) -> AsyncIterator[Frame]:
        payload = request.model_dump(mode="json", exclude_none=True)
        decoder = SSEDecoder()
        async with self._client.stream("POST", f"/v1/mcp/{provider}", json=payload) as response:
            if response.status_code != 200:
                body = await response.aread()
                message = _error_message(response, body)
                console.error(f"Relay answered {response.status_code}: {message}")
                if response.status_code == 400:
                    raise RelayRequestError(message)
                raise RelayUpstreamError(message, status_code=response.status_code)

            async for chunk in response.aiter_bytes():
                for frame in decoder.feed(chunk):
                    yield frame
        for frame in decoder.flush():
            yield frame

    async def validate_server(self, url: str, label: str) -> ValidateServerResponse:
        response = await self._client.post("/v1/mcp/tools", json={"server_url": url, "server_label": label})
        if response.status_code != 200:
            raise ServerValidationError(_error_message(response, response.content))
        return ValidateServerResponse.model_validate(response.json())

    async def aclose(self):
        await self._client.aclose()
