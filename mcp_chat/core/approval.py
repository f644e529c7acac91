# The module implements the single-slot tool approval gate.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from typing import Optional
from mcp_chat.core.errors import ApprovalProtocolError
from mcp_chat.models.api_models import ApprovalResponseItem
from mcp_chat.models.common import ApprovalRequest


class ApprovalGate:
    """
    Holds at most one pending tool approval.

    The slot must be empty to accept a request; a second request while one is
    pending is an upstream protocol violation and is never silently overwritten.
    """

    def __init__(self):
        self._pending: Optional[ApprovalRequest] = None

    @property
    def pending(self) -> Optional[ApprovalRequest]:
        return self._pending

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def offer(self, request: ApprovalRequest):
        if self._pending is not None:
            raise ApprovalProtocolError(
                f"Approval request '{request.id}' arrived while '{self._pending.id}' is still pending."
            )
        self._pending = request

    def take(self) -> Optional[ApprovalRequest]:
        """Empties the slot and returns what was in it."""
        request, self._pending = self._pending, None
        return request

    def clear(self):
        self._pending = None

    @staticmethod
    def decision_text(request: ApprovalRequest, approve: bool) -> str:
        verdict = "approved" if approve else "declined"
        return (
            f'Tool call to "{request.tool_name}" on server "{request.server_label}" was {verdict}. '
            f"Arguments: {request.tool_arguments}"
        )

    @staticmethod
    def response_item(request: ApprovalRequest, approve: bool) -> ApprovalResponseItem:
        return ApprovalResponseItem(approval_request_id=request.id, approve=approve)
