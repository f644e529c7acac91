# The module is to define the base class for all provider relays.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict
from mcp_chat.core.errors import RelayRequestError
from mcp_chat.models.api_models import RelayRequest


class BaseRelay(ABC):
    """
    Abstract Base Class for all provider relays.

    A relay is stateless per request: it validates the normalized request,
    calls the upstream provider and hands back its events one by one so the
    HTTP layer can flush each of them as an SSE frame without buffering.
    Attributes:
        name (str): The provider id, used as the relay path segment.
        default_model (str): Model used when the request names none.
    """
    name: str
    default_model: str

    def validate_request(self, request: RelayRequest):
        """
        Rejects requests the upstream cannot accept, before any upstream call.
        A new response needs input items; a continuation needs new items to attach.
        """
        if request.input:
            return
        if not request.previous_response_id:
            raise RelayRequestError("Invalid request: 'input' array is required for new responses.")
        raise RelayRequestError("Invalid request: 'input' array with new items is required for continuation.")

    @abstractmethod
    async def open_stream(self, request: RelayRequest) -> AsyncIterator[Dict[str, Any]]:
        """
        Makes the upstream call and returns an iterator over its events.
        Errors the upstream reports before streaming starts must be raised here
        as RelayUpstreamError so the HTTP layer can answer with their status.
        """

    @abstractmethod
    async def complete(self, request: RelayRequest) -> Dict[str, Any]:
        """Makes a non-streaming upstream call and returns the whole response document."""

    async def aclose(self):
        """Releases upstream clients."""
