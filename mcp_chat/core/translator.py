# Translates relay wire frames into the internal stream events.
# This is the only place that knows the upstream event shapes.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from typing import Any, Dict, List
from mcp_chat.core.sse import DONE, Frame
from mcp_chat.models.common import ApprovalRequest
from mcp_chat.models.events import (
    ApprovalRequested,
    CleanedText,
    ReasoningTypeReported,
    ResponseCreated,
    SearchSuggestionsReady,
    SelectedModel,
    SelectedProvider,
    StreamDone,
    StreamError,
    StreamEvent,
    TextDelta,
    TextDone,
    ThinkingDelta,
    ThinkingDone,
    ToolsListed,
)


def _summary_index(frame: Dict[str, Any]) -> int:
    value = frame.get("summary_index")
    return value if isinstance(value, int) else 0


def _output_item_events(item: Dict[str, Any]) -> List[StreamEvent]:
    item_type = item.get("type")
    if item_type == "mcp_approval_request":
        return [ApprovalRequested(request=ApprovalRequest(
            id=str(item.get("id", "")),
            server_label=str(item.get("server_label", "")),
            tool_name=str(item.get("name", "")),
            tool_arguments=item.get("arguments") or "{}",
        ))]
    if item_type == "mcp_list_tools":
        tools = item.get("tools") or []
        names = [tool.get("name") for tool in tools if isinstance(tool, dict) and tool.get("name")]
        return [ToolsListed(server_label=str(item.get("server_label", "")), tools=names)]
    return []


def _error_message(frame: Dict[str, Any]) -> str:
    if isinstance(frame.get("error"), str):
        return frame["error"]
    if isinstance(frame.get("error"), dict) and frame["error"].get("message"):
        return str(frame["error"]["message"])
    if frame.get("message"):
        return str(frame["message"])
    response = frame.get("response")
    if isinstance(response, dict) and isinstance(response.get("error"), dict):
        return str(response["error"].get("message") or "Upstream response failed.")
    return "Unknown error occurred"


def translate_frame(frame: Frame) -> List[StreamEvent]:
    """
    Maps one decoded frame to zero or more internal events.
    Unknown frame types yield nothing so new upstream events never break a turn.
    """
    if frame is DONE:
        return [StreamDone()]

    frame_type = frame.get("type")

    # OpenAI Responses API events, passed through by the relay.
    if frame_type == "response.created":
        response = frame.get("response") or {}
        if response.get("id"):
            return [ResponseCreated(response_id=response["id"])]
        return []
    if frame_type == "response.output_text.delta":
        return [TextDelta(text=frame["delta"])] if frame.get("delta") else []
    if frame_type == "response.output_text.done":
        return [TextDone(text=frame["text"])] if frame.get("text") else []
    if frame_type == "response.output_item.done":
        item = frame.get("item")
        return _output_item_events(item) if isinstance(item, dict) else []
    if frame_type == "response.reasoning_summary_text.delta":
        return [ThinkingDelta(text=frame.get("delta") or "", summary_index=_summary_index(frame))]
    if frame_type == "response.reasoning_summary_text.done":
        return [ThinkingDone(text=frame.get("text"), summary_index=_summary_index(frame))]
    if frame_type in ("response.failed", "error"):
        return [StreamError(error=_error_message(frame))]

    # Normalized events emitted by the Gemini-style relay.
    if frame_type == "text-delta":
        return [TextDelta(text=frame["text"])] if frame.get("text") else []
    if frame_type == "thinking-delta":
        return [ThinkingDelta(text=frame.get("thinking") or "", summary_index=_summary_index(frame))]
    if frame_type in ("thinking-done", "openai-thinking-done"):
        return [ThinkingDone(text=frame.get("thinking"), summary_index=_summary_index(frame))]
    if frame_type == "cleaned-text" and isinstance(frame.get("text"), str):
        return [CleanedText(text=frame["text"])]
    if frame_type == "searchSuggestions":
        terms = frame.get("searchSuggestions")
        confidence = frame.get("confidence")
        reasoning = frame.get("reasoning")
        return [SearchSuggestionsReady(
            terms=[str(term) for term in terms] if isinstance(terms, list) else [],
            confidence=confidence if isinstance(confidence, (int, float)) else None,
            reasoning=reasoning if isinstance(reasoning, str) else "",
        )]
    if frame_type == "selected-model" and isinstance(frame.get("model"), str):
        return [SelectedModel(model=frame["model"])]
    if frame_type == "selected-provider" and isinstance(frame.get("provider"), str):
        return [SelectedProvider(provider=frame["provider"])]
    if frame_type == "reasoning-type" and isinstance(frame.get("reasoning"), str):
        return [ReasoningTypeReported(reasoning=frame["reasoning"])]

    return []
