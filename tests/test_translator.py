"""Tests for translating relay frames into stream events."""

from mcp_chat.core.sse import DONE
from mcp_chat.core.translator import translate_frame
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
    TextDelta,
    TextDone,
    ThinkingDelta,
    ThinkingDone,
    ToolsListed,
)


class TestResponsesEvents:
    def test_response_created_carries_id(self):
        [event] = translate_frame({"type": "response.created", "response": {"id": "resp_9"}})
        assert event == ResponseCreated(response_id="resp_9")

    def test_text_delta_and_done(self):
        assert translate_frame({"type": "response.output_text.delta", "delta": "Hi"}) == [TextDelta(text="Hi")]
        assert translate_frame({"type": "response.output_text.done", "text": "Hi all"}) == [TextDone(text="Hi all")]

    def test_empty_delta_is_ignored(self):
        assert translate_frame({"type": "response.output_text.delta", "delta": ""}) == []

    def test_approval_request_item(self):
        frame = {
            "type": "response.output_item.done",
            "item": {
                "type": "mcp_approval_request",
                "id": "apr_1",
                "server_label": "shop",
                "name": "search_products",
                "arguments": '{"q": "shoes"}',
            },
        }
        [event] = translate_frame(frame)
        assert isinstance(event, ApprovalRequested)
        assert event.request.id == "apr_1"
        assert event.request.tool_name == "search_products"
        assert event.request.tool_arguments == '{"q": "shoes"}'

    def test_list_tools_item(self):
        frame = {
            "type": "response.output_item.done",
            "item": {"type": "mcp_list_tools", "server_label": "shop", "tools": [{"name": "a"}, {"name": "b"}]},
        }
        assert translate_frame(frame) == [ToolsListed(server_label="shop", tools=["a", "b"])]

    def test_reasoning_summary_events_keep_index(self):
        delta = translate_frame({"type": "response.reasoning_summary_text.delta", "delta": "x", "summary_index": 2})
        done = translate_frame({"type": "response.reasoning_summary_text.done", "text": "xy", "summary_index": 2})
        assert delta == [ThinkingDelta(text="x", summary_index=2)]
        assert done == [ThinkingDone(text="xy", summary_index=2)]

    def test_failed_response_becomes_error(self):
        frame = {"type": "response.failed", "response": {"error": {"message": "server_error"}}}
        assert translate_frame(frame) == [StreamError(error="server_error")]

    def test_error_frame_string(self):
        assert translate_frame({"type": "error", "error": "boom"}) == [StreamError(error="boom")]


class TestNormalizedEvents:
    def test_text_and_thinking(self):
        assert translate_frame({"type": "text-delta", "text": "a"}) == [TextDelta(text="a")]
        assert translate_frame({"type": "thinking-delta", "thinking": "t"}) == [ThinkingDelta(text="t")]
        assert translate_frame({"type": "openai-thinking-done", "summary_index": 1}) == [
            ThinkingDone(summary_index=1)
        ]

    def test_cleaned_text(self):
        assert translate_frame({"type": "cleaned-text", "text": "clean", "messageId": "1"}) == [
            CleanedText(text="clean")
        ]

    def test_search_suggestions(self):
        frame = {"type": "searchSuggestions", "searchSuggestions": ["a", "b"], "confidence": 0.7, "reasoning": "r"}
        assert translate_frame(frame) == [SearchSuggestionsReady(terms=["a", "b"], confidence=0.7, reasoning="r")]

    def test_metadata(self):
        assert translate_frame({"type": "selected-model", "model": "m"}) == [SelectedModel(model="m")]
        assert translate_frame({"type": "selected-provider", "provider": "gemini"}) == [
            SelectedProvider(provider="gemini")
        ]
        assert translate_frame({"type": "reasoning-type", "reasoning": "Thinking"}) == [
            ReasoningTypeReported(reasoning="Thinking")
        ]


def test_done_sentinel():
    assert translate_frame(DONE) == [StreamDone()]


def test_unknown_frames_are_ignored():
    assert translate_frame({"type": "response.in_progress"}) == []
    assert translate_frame({"type": "something-new", "payload": 1}) == []
