# The module is to define the API router for the application.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.2.0

from fastapi import APIRouter
from mcp_chat.api.v1.endpoints import providers, relay

api_router = APIRouter()

# Include the relay router with a '/mcp' prefix
api_router.include_router(relay.router, prefix="/mcp", tags=["Relay"])

# Include the providers router with a '/providers' prefix
api_router.include_router(providers.router, prefix="/providers", tags=["Providers"])
