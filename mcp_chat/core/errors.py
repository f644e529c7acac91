# The module defines the exceptions shared by the relay, the registry and the chat client.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0


class RelayError(Exception):
    """
    Base class for failures that end up as an `{error}` JSON body.
    Attributes:
        status_code (int): The HTTP status the relay answers with.
        message (str): A short human-readable message.
    """
    status_code: int = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class RelayRequestError(RelayError):
    """The request was rejected before any upstream call was made."""
    status_code = 400


class RelayUpstreamError(RelayError):
    """The upstream provider failed; carries its status when it reported one."""


class ApprovalProtocolError(Exception):
    """A second approval request arrived while one was still pending."""


class ServerValidationError(Exception):
    """An MCP server could not be validated through the provider."""


class DuplicateServerError(ValueError):
    """A server label is already used within the task."""


class TaskNotFoundError(KeyError):
    """No task is registered under the given id."""
