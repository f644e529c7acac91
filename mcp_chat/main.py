# The module provides the FastAPI application that serves as the relay entry point.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.2.0

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from mcp_chat.api.v1.api import api_router
from mcp_chat.utils.logger import console

app = FastAPI(
    title="MCP Chat Relay",
    version="0.1.0",
    description="Streams multi-turn, tool-using conversations between a chat client and LLM providers.",
)

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed request bodies are answered with 400 and a single error message."""
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location + ': ' if location else ''}{first.get('msg', 'invalid value')}"
    else:
        message = "Invalid request."
    console.warning(f"Rejected request to {request.url.path}: {message}")
    return JSONResponse(status_code=400, content={"error": message})

@app.get("/", summary="Health Check", tags=["Status"])
def read_root():
    """Root endpoint to check if the service is alive."""
    console.info("Health check endpoint was hit.")
    return {"message": "MCP Chat Relay is alive and running!"}

# Include the v1 router with a global '/v1' prefix
app.include_router(api_router, prefix="/v1")
