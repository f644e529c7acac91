# The module defines the provider availability endpoint.
# Author: Shibo Li
# Date: 2025-06-21
# Version: 0.1.0

from fastapi import APIRouter, Depends
from mcp_chat.core.relay_registry import RelayRegistry, get_relay_registry
from mcp_chat.models.api_models import ProviderAvailability

router = APIRouter()

@router.get("/", response_model=ProviderAvailability)
async def list_providers(registry: RelayRegistry = Depends(get_relay_registry)):
    """Reports which provider relays are configured on this deployment."""
    available = registry.available()
    return ProviderAvailability(
        openai="openai" in available,
        gemini="gemini" in available,
        anthropic="anthropic" in available,
    )
