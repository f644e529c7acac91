# The module is to define the common models shared by the chat client and the task registry.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.2.0

from enum import Enum
from uuid import uuid4
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional, Literal

Role = Literal["user", "assistant", "system",
               "thinking", "tool_approval"]

ProviderId = Literal["openai", "gemini", "anthropic"]

ReasoningType = Literal["Reasoning", "Thinking", "Intelligence"]

RequireApproval = Literal["never", "always"]

RelayMode = Literal["mcp", "research"]


def new_message_id() -> str:
    """Generates a short opaque id for a message."""
    return uuid4().hex[:21]


class TurnStatus(str, Enum):
    """Lifecycle of the in-flight turn."""
    READY = "ready"
    SUBMITTED = "submitted"
    STREAMING = "streaming"
    AWAITING_APPROVAL = "awaiting-approval"
    ERROR = "error"


class Message(BaseModel):
    """
    One unit of the conversation as the user sees it.
    Attributes:
        id (str): Opaque identifier, stable for the message's lifetime.
        role (Role): Who produced the message. 'thinking' holds provider reasoning,
            'system' and 'tool_approval' hold audit text that is never sent upstream.
        content (str): Accumulated text; grows with each delta.
        provider (Optional[str]): The upstream that produced it, for display.
    """
    id: str = Field(default_factory=new_message_id)
    role: Role
    content: str = ""
    provider: Optional[ProviderId] = None


class ApprovalRequest(BaseModel):
    """
    A tool invocation the provider wants permission to perform.
    Attributes:
        id (str): Provider-issued request id, echoed back in the approval response.
        server_label (str): Label of the MCP server that owns the tool.
        tool_name (str): Name of the tool to call.
        tool_arguments (str): Opaque JSON string of the call arguments.
    """
    id: str
    server_label: str
    tool_name: str
    tool_arguments: str = "{}"


class MCPServerConfig(BaseModel):
    """
    A configured remote MCP endpoint. Immutable once created; removal is the only change.
    Attributes:
        label (str): Human identifier, unique within a task.
        url (str): The server URL the provider connects to.
        allowed_tools (Optional[List[str]]): Allow-list of tool names; None means all tools.
        require_approval (RequireApproval): Whether each call must be approved by the user.
        suggested_prompts (List[str]): Example queries fetched when the server was validated.
    """
    model_config = ConfigDict(frozen=True)

    label: str
    url: str
    allowed_tools: Optional[List[str]] = None
    require_approval: RequireApproval = "always"
    suggested_prompts: List[str] = Field(default_factory=list)


class Task(BaseModel):
    """
    A named bundle of a model and the MCP servers it may call.
    """
    id: str
    name: str
    model: str
    reasoning_type: Optional[ReasoningType] = None
    servers: List[MCPServerConfig] = Field(default_factory=list)


class ModelConfig(BaseModel):
    """Sampling parameters sent with every request."""
    temperature: float = 0.2
    top_p: Optional[float] = 0.8
    max_tokens: int = 4000


class SearchSuggestions(BaseModel):
    """Follow-up search terms a provider appended to its answer."""
    terms: List[str] = Field(default_factory=list)
    confidence: Optional[float] = None
    reasoning: str = ""
