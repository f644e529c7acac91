# The module validates a candidate MCP server by asking OpenAI to list its tools
# and to suggest example prompts for them.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.1.0

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing import Any, Dict, Iterable, List
from mcp_chat.core.config import get_settings
from mcp_chat.core.errors import ServerValidationError
from mcp_chat.models.api_models import ValidateServerResponse
from mcp_chat.relays.openai_relay import OpenAIRelay
from mcp_chat.utils.logger import console

SYSTEM_PROMPT = """You are an assistant that helps configure MCP servers.
1. Interact with the provided MCP server to list its available tools.
2. Based on the listed tools, generate a list of 5 distinct example prompts a user might ask.
  Focus on a shopping context if the tools seem related to e-commerce.
  Return these prompts in the specified JSON format using the 'Suggests' tool.
  The JSON object should have a key "suggested_prompts", which is an array of objects, each with an "output" key holding the question string."""

INVALID_SERVER_MESSAGE = "MCP server did not respond with a valid tool list or label mismatch."


class SuggestedPrompt(BaseModel):
    model_config = ConfigDict(extra="forbid")

    output: str = Field(description="A single suggested prompt string.")


class SuggestedPromptsList(BaseModel):
    model_config = ConfigDict(extra="forbid")

    suggested_prompts: List[SuggestedPrompt] = Field(
        description="An array of 5 distinct example questions a user might ask related to the MCP server's tools."
    )


def build_validation_payload(url: str, label: str, model: str) -> Dict[str, Any]:
    return {
        "model": model,
        "input": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": f'List tools for MCP server "{label}" at {url} and provide suggested user prompts.',
            },
        ],
        "tools": [{"type": "mcp", "server_label": label, "server_url": url, "require_approval": "never"}],
        "text": {
            "format": {
                "type": "json_schema",
                "name": "Suggests",
                "schema": SuggestedPromptsList.model_json_schema(),
                "strict": True,
            }
        },
    }


def collect_validation(frames: Iterable[Dict[str, Any]], label: str) -> ValidateServerResponse:
    """
    Reads the events of a validation call.

    The server is valid only if the provider listed tools for a server carrying the
    requested label. Suggested prompts that fail to parse leave the list empty.
    """
    server_valid = False
    tools: List[str] = []
    suggested_prompts: List[str] = []

    for frame in frames:
        frame_type = frame.get("type")
        if frame_type == "response.output_item.done":
            item = frame.get("item") or {}
            if item.get("type") == "mcp_list_tools" and item.get("server_label") == label:
                server_valid = True
                tools = [tool["name"] for tool in item.get("tools") or [] if tool.get("name")]
        elif frame_type == "response.output_text.done":
            text = frame.get("text") or ""
            try:
                parsed = SuggestedPromptsList.model_validate_json(text)
                suggested_prompts = [prompt.output for prompt in parsed.suggested_prompts]
            except ValidationError as e:
                console.warning(f"Failed to parse structured suggestions, might not be in expected JSON format: {e}")

    if not server_valid:
        raise ServerValidationError(INVALID_SERVER_MESSAGE)
    return ValidateServerResponse(tools=tools, suggested_prompts=suggested_prompts)


async def validate_server(relay: OpenAIRelay, url: str, label: str) -> ValidateServerResponse:
    """Runs one validation call against the server and returns its tools and suggested prompts."""
    console.info(f"Validating MCP server '{label}' at {url}")
    payload = build_validation_payload(url, label, get_settings().VALIDATION_MODEL)
    stream = await relay.stream_events(payload)
    frames = [frame async for frame in stream]
    result = collect_validation(frames, label)
    console.success(f"MCP server '{label}' listed {len(result.tools)} tools.")
    return result
