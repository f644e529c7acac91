"""HTTP-level tests for the relay, validation and provider endpoints."""

import json

import pytest
from conftest import MockRelay, upstream_error

from mcp_chat.core.sse import DONE, SSEDecoder


def decode(body: str):
    decoder = SSEDecoder()
    return decoder.feed(body) + decoder.flush()


TURN = {
    "model": "gpt-4.1-mini",
    "input": [{"role": "user", "content": [{"type": "input_text", "text": "hi"}]}],
    "tools": [{"type": "mcp", "server_label": "shop", "server_url": "https://shop.example/mcp",
               "require_approval": "always"}],
}


class TestRelayEndpoint:
    @pytest.mark.asyncio
    async def test_streams_every_event_then_done(self, client_factory):
        relay = MockRelay(frames=[
            {"type": "response.created", "response": {"id": "resp_1"}},
            {"type": "response.output_text.delta", "delta": "Hello"},
        ])
        client = await client_factory(relay)

        resp = await client.post("/v1/mcp/openai", json=TURN)

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        assert resp.headers["cache-control"] == "no-cache"
        frames = decode(resp.text)
        assert frames[0]["response"]["id"] == "resp_1"
        assert frames[1]["delta"] == "Hello"
        assert frames[-1] is DONE
        assert relay.calls[0].tools[0].server_label == "shop"

    @pytest.mark.asyncio
    async def test_approval_continuation_is_accepted(self, client_factory):
        relay = MockRelay(frames=[])
        client = await client_factory(relay)

        resp = await client.post("/v1/mcp/openai", json={
            "previous_response_id": "resp_1",
            "input": [{"type": "mcp_approval_response", "approval_request_id": "apr_1", "approve": True}],
        })

        assert resp.status_code == 200
        [item] = relay.calls[0].input
        assert item.type == "mcp_approval_response"
        assert item.approve is True

    @pytest.mark.asyncio
    async def test_missing_input_is_rejected_without_upstream_call(self, client_factory):
        relay = MockRelay()
        client = await client_factory(relay)

        resp = await client.post("/v1/mcp/openai", json={"model": "gpt-4.1-mini"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Invalid request: 'input' array is required for new responses."}

        resp = await client.post("/v1/mcp/openai", json={"previous_response_id": "resp_1", "input": []})
        assert resp.status_code == 400
        assert resp.json() == {
            "error": "Invalid request: 'input' array with new items is required for continuation."
        }
        assert relay.calls == []

    @pytest.mark.asyncio
    async def test_malformed_body_is_a_400(self, client_factory):
        client = await client_factory(MockRelay())
        resp = await client.post("/v1/mcp/openai", json={"input": "not a list"})
        assert resp.status_code == 400
        assert "error" in resp.json()

    @pytest.mark.asyncio
    async def test_upstream_status_is_passed_through(self, client_factory):
        client = await client_factory(MockRelay(error=upstream_error("Rate limit reached", 429)))
        resp = await client.post("/v1/mcp/openai", json=TURN)
        assert resp.status_code == 429
        assert resp.json() == {"error": "Rate limit reached"}

    @pytest.mark.asyncio
    async def test_unexpected_failure_is_a_500(self, client_factory):
        client = await client_factory(MockRelay(error=RuntimeError("socket closed")))
        resp = await client.post("/v1/mcp/openai", json=TURN)
        assert resp.status_code == 500
        assert resp.json() == {"error": "Failed to process request"}

    @pytest.mark.asyncio
    async def test_unknown_provider_is_a_404(self, client_factory):
        client = await client_factory(MockRelay())
        resp = await client.post("/v1/mcp/anthropic", json=TURN)
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_non_streaming_returns_json(self, client_factory):
        client = await client_factory(MockRelay())
        resp = await client.post("/v1/mcp/openai", json={**TURN, "stream": False})
        assert resp.status_code == 200
        assert resp.json()["id"] == "resp_mock"


class TestValidationEndpoint:
    @pytest.mark.asyncio
    async def test_returns_tools_and_prompts(self, client_factory):
        relay = MockRelay(frames=[
            {"type": "response.output_item.done",
             "item": {"type": "mcp_list_tools", "server_label": "shop", "tools": [{"name": "search"}]}},
            {"type": "response.output_text.done",
             "text": json.dumps({"suggested_prompts": [{"output": "Find shoes"}]})},
        ])
        client = await client_factory(relay)

        resp = await client.post("/v1/mcp/tools", json={"server_url": "https://shop.example/mcp",
                                                        "server_label": "shop"})

        assert resp.status_code == 200
        assert resp.json() == {"tools": ["search"], "suggestedPrompts": ["Find shoes"]}

    @pytest.mark.asyncio
    async def test_missing_fields(self, client_factory):
        client = await client_factory(MockRelay())
        resp = await client.post("/v1/mcp/tools", json={"server_url": "https://shop.example/mcp"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "server_url and server_label are required"}

    @pytest.mark.asyncio
    async def test_label_mismatch(self, client_factory):
        relay = MockRelay(frames=[
            {"type": "response.output_item.done",
             "item": {"type": "mcp_list_tools", "server_label": "other", "tools": [{"name": "search"}]}},
        ])
        client = await client_factory(relay)
        resp = await client.post("/v1/mcp/tools", json={"server_url": "https://shop.example/mcp",
                                                        "server_label": "shop"})
        assert resp.status_code == 400
        assert "label mismatch" in resp.json()["error"]

    @pytest.mark.asyncio
    async def test_unexpected_failure(self, client_factory):
        client = await client_factory(MockRelay(error=RuntimeError("connection refused")))
        resp = await client.post("/v1/mcp/tools", json={"server_url": "https://shop.example/mcp",
                                                        "server_label": "shop"})
        assert resp.status_code == 500
        assert resp.json() == {"error": "connection refused"}


class TestStatusEndpoints:
    @pytest.mark.asyncio
    async def test_providers(self, client_factory):
        client = await client_factory(MockRelay("openai"), MockRelay("gemini"))
        resp = await client.get("/v1/providers/")
        assert resp.json() == {"openai": True, "gemini": True, "anthropic": False}

    @pytest.mark.asyncio
    async def test_health(self, client_factory):
        client = await client_factory()
        resp = await client.get("/")
        assert resp.status_code == 200
