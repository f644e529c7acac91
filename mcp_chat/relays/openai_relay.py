# The module defines the relay for the OpenAI Responses API.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from contextlib import aclosing
from openai import AsyncOpenAI, APIError, APIStatusError
from typing import Any, AsyncIterator, Dict, Optional
from .base_relay import BaseRelay
from mcp_chat.core.config import get_settings
from mcp_chat.core.errors import RelayUpstreamError
from mcp_chat.models.api_models import RelayRequest
from mcp_chat.services.postprocess import SEARCH_SUGGESTIONS_PROMPT, closing_events
from mcp_chat.utils.logger import console

REASONING_OPTIONS = {"effort": "medium", "summary": "auto"}
WEB_SEARCH_TOOL = {"type": "web_search_preview", "search_context_size": "medium"}


def stream_error_message(event: Dict[str, Any]) -> str:
    if isinstance(event.get("error"), dict) and event["error"].get("message"):
        return str(event["error"]["message"])
    if event.get("message"):
        return str(event["message"])
    response = event.get("response")
    if isinstance(response, dict) and isinstance(response.get("error"), dict):
        return str(response["error"].get("message") or "Upstream response failed.")
    return "Unknown error occurred"


def to_relay_error(e: APIError) -> RelayUpstreamError:
    """
    Keeps the upstream status and message when OpenAI returned a structured error,
    otherwise falls back to a generic 500.
    """
    message = None
    if isinstance(e.body, dict):
        message = e.body.get("message")
        if not message and isinstance(e.body.get("error"), dict):
            message = e.body["error"].get("message")
    status_code = e.status_code if isinstance(e, APIStatusError) else None
    if message and status_code:
        return RelayUpstreamError(str(message), status_code=status_code)
    return RelayUpstreamError(str(message or e.message or "An OpenAI API error occurred"), status_code=status_code or 500)


class OpenAIRelay(BaseRelay):
    """
    Forwards requests to `responses.create`.

    In `mcp` mode every streamed event is passed through unchanged and the
    conversation interprets it. In `research` mode the MCP tools are replaced by
    web search (unless the model is thinking), events are normalized into
    text-delta / thinking-delta / openai-thinking-done frames, and the finished
    answer is post-processed like the Gemini relay does.
    """
    name: str = "openai"

    _client: AsyncOpenAI

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        """Initializes the OpenAI client from application settings unless one is given."""
        super().__init__()
        settings = get_settings()
        self.default_model = settings.OPENAI_DEFAULT_MODEL
        if client is None:
            if not settings.OPENAI_API_KEY:
                raise ValueError("OPENAI_API_KEY is not set in the environment.")
            client = AsyncOpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.OPENAI_BASE_URL,
                timeout=settings.UPSTREAM_TIMEOUT,
            )
        self._client = client

    def build_payload(self, request: RelayRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": request.model or self.default_model,
            "input": [item.model_dump(mode="json", exclude_none=True) for item in request.input or []],
            "stream": request.stream,
        }
        if request.previous_response_id:
            payload["previous_response_id"] = request.previous_response_id
        if request.tools:
            payload["tools"] = [tool.model_dump(mode="json", exclude_none=True) for tool in request.tools]
        if request.instructions:
            payload["instructions"] = request.instructions
        if request.reasoning_type == "Thinking":
            # Reasoning models reject sampling parameters.
            payload["reasoning"] = dict(REASONING_OPTIONS)
        else:
            if request.temperature is not None:
                payload["temperature"] = request.temperature
            if request.top_p is not None:
                payload["top_p"] = request.top_p
        if request.max_output_tokens is not None:
            payload["max_output_tokens"] = request.max_output_tokens
        return payload

    async def create(self, payload: Dict[str, Any]) -> Any:
        """Calls `responses.create`, translating SDK errors into RelayUpstreamError."""
        try:
            return await self._client.responses.create(**payload)
        except APIError as e:
            error = to_relay_error(e)
            console.error(f"OpenAI API error ({error.status_code}): {error.message}")
            raise error from e

    async def stream_events(self, payload: Dict[str, Any]) -> AsyncIterator[Dict[str, Any]]:
        stream = await self.create({**payload, "stream": True})
        return self._iterate(stream)

    async def _iterate(self, stream) -> AsyncIterator[Dict[str, Any]]:
        try:
            async for event in stream:
                yield event.model_dump(mode="json", exclude_none=True)
        finally:
            await stream.close()

    def build_research_payload(self, request: RelayRequest) -> Dict[str, Any]:
        payload = self.build_payload(request)
        payload.pop("tools", None)
        payload["instructions"] = request.instructions or SEARCH_SUGGESTIONS_PROMPT
        payload["parallel_tool_calls"] = False
        if request.reasoning_type != "Thinking":
            payload["tools"] = [dict(WEB_SEARCH_TOOL)]
        return payload

    async def _research_iterate(self, stream, model: str,
                                reasoning_type: Optional[str]) -> AsyncIterator[Dict[str, Any]]:
        full_text = ""
        async with aclosing(self._iterate(stream)) as events:
            async for event in events:
                event_type = event.get("type")
                if event_type == "response.output_text.delta":
                    text = event.get("delta") or ""
                    full_text += text
                    yield {"type": "text-delta", "text": text}
                elif event_type == "response.reasoning_summary_text.delta":
                    yield {
                        "type": "thinking-delta",
                        "thinking": event.get("delta") or "",
                        "summary_index": event.get("summary_index", 0),
                    }
                elif event_type == "response.reasoning_summary_text.done":
                    yield {
                        "type": "openai-thinking-done",
                        "thinking": event.get("text"),
                        "summary_index": event.get("summary_index", 0),
                    }
                elif event_type in ("error", "response.failed"):
                    yield {"type": "error", "error": stream_error_message(event)}
                    return

        for frame in closing_events(full_text, model, self.name, reasoning_type):
            yield frame

    async def open_stream(self, request: RelayRequest) -> AsyncIterator[Dict[str, Any]]:
        if request.mode == "research":
            payload = self.build_research_payload(request)
            console.info(f"Opening OpenAI research stream: model={payload['model']}, reasoning={request.reasoning_type}")
            stream = await self.create({**payload, "stream": True})
            return self._research_iterate(stream, payload["model"], request.reasoning_type)

        payload = self.build_payload(request)
        console.info(
            f"Opening OpenAI stream: model={payload['model']}, "
            f"continuation={payload.get('previous_response_id')}, tools={len(payload.get('tools', []))}"
        )
        return await self.stream_events(payload)

    async def complete(self, request: RelayRequest) -> Dict[str, Any]:
        payload = self.build_payload(request)
        payload["stream"] = False
        response = await self.create(payload)
        return response.model_dump(mode="json", exclude_none=True)

    async def aclose(self):
        await self._client.close()
