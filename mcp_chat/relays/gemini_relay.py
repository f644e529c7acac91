# The module defines the relay for Gemini generateContent.
# Gemini events are normalized into text-delta / thinking-delta frames, and the
# finished answer is post-processed into search suggestions and cleaned text.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.1.0

import json
import httpx
from typing import Any, AsyncIterator, Dict, List, Optional
from .base_relay import BaseRelay
from mcp_chat.core.config import get_settings
from mcp_chat.core.errors import RelayUpstreamError
from mcp_chat.models.api_models import RelayRequest, UserInputItem
from mcp_chat.services.postprocess import SEARCH_SUGGESTIONS_PROMPT, closing_events
from mcp_chat.utils.logger import console


def gemini_error(status_code: int, body: bytes) -> RelayUpstreamError:
    """Maps a Gemini error body (`{"error": {"message": ...}}`, possibly in a list) to a relay error."""
    try:
        data = json.loads(body)
    except ValueError:
        data = None
    if isinstance(data, list) and data:
        data = data[0]
    if isinstance(data, dict) and isinstance(data.get("error"), dict) and data["error"].get("message"):
        return RelayUpstreamError(str(data["error"]["message"]), status_code=status_code)
    return RelayUpstreamError("Failed to process Gemini request", status_code=500)


def chunk_events(chunk: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Normalizes one streamed GenerateContentResponse into relay frames."""
    if isinstance(chunk.get("error"), dict):
        return [{"type": "error", "error": str(chunk["error"].get("message") or "Gemini stream error")}]

    candidates = chunk.get("candidates") or []
    if not candidates or not isinstance(candidates[0], dict):
        return []
    content = candidates[0].get("content") or {}
    events = []
    for part in content.get("parts") or []:
        text = part.get("text") if isinstance(part, dict) else None
        if not text:
            continue
        if part.get("thought"):
            events.append({"type": "thinking-delta", "thinking": text})
        else:
            events.append({"type": "text-delta", "text": text})
    return events


class GeminiRelay(BaseRelay):
    """
    Relay for `models/{model}:streamGenerateContent` over plain HTTP.
    Gemini has no response chaining, so the client sends the whole history as input.
    """
    name: str = "gemini"

    _client: httpx.AsyncClient

    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        super().__init__()
        settings = get_settings()
        if not settings.GEMINI_API_KEY and http_client is None:
            raise ValueError("GEMINI_API_KEY is not set in the environment.")
        self.default_model = settings.GEMINI_DEFAULT_MODEL
        self._api_key = settings.GEMINI_API_KEY or ""
        self._api_version = settings.GEMINI_API_VERSION
        self._thinking_budget = settings.GEMINI_THINKING_BUDGET
        self._client = http_client or httpx.AsyncClient(
            base_url=settings.GEMINI_BASE_URL,
            timeout=settings.UPSTREAM_TIMEOUT,
        )

    def build_body(self, request: RelayRequest) -> Dict[str, Any]:
        contents = []
        for item in request.input or []:
            if not isinstance(item, UserInputItem):
                console.warning(f"Gemini relay dropped unsupported input item of type '{item.type}'.")
                continue
            text = item.text()
            if text:
                contents.append({"role": "model" if item.role == "assistant" else "user", "parts": [{"text": text}]})

        if request.previous_response_id:
            console.warning("Gemini relay ignores previous_response_id; history travels in 'input'.")
        if request.tools:
            console.warning(f"Gemini relay does not forward {len(request.tools)} MCP tool descriptor(s).")

        generation_config: Dict[str, Any] = {"candidateCount": 1}
        if request.temperature is not None:
            generation_config["temperature"] = request.temperature
        if request.top_p is not None:
            generation_config["topP"] = request.top_p
        if request.max_output_tokens is not None:
            generation_config["maxOutputTokens"] = request.max_output_tokens
        if request.reasoning_type == "Thinking":
            generation_config["thinkingConfig"] = {"includeThoughts": True, "thinkingBudget": self._thinking_budget}

        return {
            "contents": contents,
            "systemInstruction": {"parts": [{"text": request.instructions or SEARCH_SUGGESTIONS_PROMPT}]},
            "generationConfig": generation_config,
        }

    def _url(self, model: str, method: str) -> str:
        return f"/{self._api_version}/models/{model}:{method}"

    async def _send(self, model: str, method: str, body: Dict[str, Any], stream: bool) -> httpx.Response:
        request = self._client.build_request(
            "POST",
            self._url(model, method),
            params={"alt": "sse"} if stream else None,
            json=body,
            headers={"x-goog-api-key": self._api_key},
        )
        try:
            response = await self._client.send(request, stream=stream)
        except httpx.RequestError as e:
            console.error(f"An HTTP error occurred while calling Gemini: {e}")
            raise RelayUpstreamError("Failed to reach the Gemini API", status_code=500) from e

        if response.status_code != 200:
            error_body = await response.aread()
            await response.aclose()
            error = gemini_error(response.status_code, error_body)
            console.error(f"Gemini API error ({error.status_code}): {error.message}")
            raise error
        return response

    async def open_stream(self, request: RelayRequest) -> AsyncIterator[Dict[str, Any]]:
        model = request.model or self.default_model
        console.info(f"Opening Gemini stream: model={model}, reasoning={request.reasoning_type}")
        response = await self._send(model, "streamGenerateContent", self.build_body(request), stream=True)
        return self._iterate(response, model, request.reasoning_type)

    async def _iterate(self, response: httpx.Response, model: str,
                       reasoning_type: Optional[str]) -> AsyncIterator[Dict[str, Any]]:
        full_text = ""
        try:
            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                data = line[5:].strip()
                if not data:
                    continue
                try:
                    chunk = json.loads(data)
                except json.JSONDecodeError:
                    console.warning(f"Skipping unparseable Gemini chunk: {data[:200]}")
                    continue
                for event in chunk_events(chunk):
                    if event["type"] == "error":
                        yield event
                        return
                    if event["type"] == "text-delta":
                        full_text += event["text"]
                    yield event
        finally:
            await response.aclose()

        for event in closing_events(full_text, model, self.name, reasoning_type):
            yield event

    async def complete(self, request: RelayRequest) -> Dict[str, Any]:
        model = request.model or self.default_model
        response = await self._send(model, "generateContent", self.build_body(request), stream=False)
        return response.json()

    async def aclose(self):
        await self._client.aclose()
