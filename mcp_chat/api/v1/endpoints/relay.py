# The module defines the relay endpoints: per-provider streaming relay and MCP server validation.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.1.0

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, StreamingResponse
from mcp_chat.core.errors import RelayError, ServerValidationError
from mcp_chat.core.relay_registry import RelayRegistry, get_relay_registry
from mcp_chat.core.sse import stream_as_sse
from mcp_chat.models.api_models import RelayRequest, ValidateServerRequest, ValidateServerResponse
from mcp_chat.services.server_validation import validate_server
from mcp_chat.utils.logger import console

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# Declared before the provider route so 'tools' is never taken for a provider id.
@router.post("/tools", response_model=ValidateServerResponse)
async def validate_mcp_server(request: ValidateServerRequest,
                              registry: RelayRegistry = Depends(get_relay_registry)):
    """
    Checks that an MCP server answers with its tool list and returns the tools
    together with suggested example prompts.
    """
    if not request.server_url or not request.server_label:
        return error_response(400, "server_url and server_label are required")

    relay = registry.get("openai")
    if relay is None:
        return error_response(500, "The OpenAI relay is not configured.")

    try:
        result = await validate_server(relay, request.server_url, request.server_label)
    except ServerValidationError as e:
        console.warning(f"Validation of '{request.server_label}' failed: {e}")
        return error_response(400, str(e))
    except RelayError as e:
        return error_response(e.status_code, e.message)
    except Exception as e:
        console.exception("Error fetching MCP tools and suggestions.")
        return error_response(500, str(e) or "Failed to fetch MCP tools and suggestions")

    body = result.model_dump(by_alias=True)
    console.display_data_as_table(body, title=f"MCP server '{request.server_label}' validated")
    return JSONResponse(content=body)


@router.post("/{provider}")
async def relay_turn(provider: str, request: RelayRequest,
                     registry: RelayRegistry = Depends(get_relay_registry)):
    """
    Forwards one turn to the provider. Streams every upstream event as an SSE
    frame, or returns the whole response when `stream` is false.
    """
    relay = registry.get(provider)
    if relay is None:
        return error_response(404, f"Provider '{provider}' is not available.")

    console.info(f"Relay request for provider '{provider}' (continuation: {request.previous_response_id})")
    try:
        relay.validate_request(request)
        if not request.stream:
            return JSONResponse(content=await relay.complete(request))
        events = await relay.open_stream(request)
    except RelayError as e:
        console.error(f"Relay request to '{provider}' failed ({e.status_code}): {e.message}")
        return error_response(e.status_code, e.message)
    except Exception:
        console.exception(f"Unexpected error while relaying to '{provider}'.")
        return error_response(500, "Failed to process request")

    return StreamingResponse(stream_as_sse(events), media_type="text/event-stream", headers=SSE_HEADERS)
