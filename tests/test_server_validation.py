"""Tests for MCP server validation."""

import json

import pytest
from conftest import MockRelay

from mcp_chat.core.errors import ServerValidationError
from mcp_chat.services.server_validation import (
    INVALID_SERVER_MESSAGE,
    build_validation_payload,
    collect_validation,
    validate_server,
)


def list_tools(label="shop", names=("search_products", "get_product")):
    return {
        "type": "response.output_item.done",
        "item": {"type": "mcp_list_tools", "server_label": label, "tools": [{"name": n} for n in names]},
    }


def suggestions(*prompts):
    text = json.dumps({"suggested_prompts": [{"output": p} for p in prompts]})
    return {"type": "response.output_text.done", "text": text}


class TestCollectValidation:
    def test_success(self):
        result = collect_validation([list_tools(), suggestions("Find shoes", "Track order")], "shop")
        assert result.tools == ["search_products", "get_product"]
        assert result.suggested_prompts == ["Find shoes", "Track order"]
        assert result.model_dump(by_alias=True) == {
            "tools": ["search_products", "get_product"],
            "suggestedPrompts": ["Find shoes", "Track order"],
        }

    def test_label_mismatch_fails(self):
        with pytest.raises(ServerValidationError) as exc_info:
            collect_validation([list_tools(label="other"), suggestions("x")], "shop")
        assert str(exc_info.value) == INVALID_SERVER_MESSAGE

    def test_no_tool_list_fails(self):
        with pytest.raises(ServerValidationError):
            collect_validation([suggestions("x")], "shop")

    def test_malformed_suggestions_are_not_fatal(self):
        frames = [list_tools(), {"type": "response.output_text.done", "text": "Here are some ideas!"}]
        result = collect_validation(frames, "shop")
        assert result.tools == ["search_products", "get_product"]
        assert result.suggested_prompts == []


class TestPayload:
    def test_structured_output_and_no_approval(self):
        payload = build_validation_payload("https://shop.example/mcp", "shop", "gpt-4.1-mini")
        assert payload["text"]["format"]["name"] == "Suggests"
        assert payload["text"]["format"]["type"] == "json_schema"
        assert payload["tools"] == [{
            "type": "mcp",
            "server_label": "shop",
            "server_url": "https://shop.example/mcp",
            "require_approval": "never",
        }]
        assert payload["input"][0]["role"] == "system"


@pytest.mark.asyncio
async def test_validate_server_through_relay():
    relay = MockRelay(frames=[list_tools(), suggestions("Find shoes")])
    result = await validate_server(relay, "https://shop.example/mcp", "shop")
    assert result.tools == ["search_products", "get_product"]
    assert relay.calls[0]["tools"][0]["server_label"] == "shop"
