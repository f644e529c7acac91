# The module is to define the API models for the relay endpoints.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.2.0

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional, Union
from mcp_chat.models.common import RelayMode, ReasoningType, RequireApproval

class InputText(BaseModel):
    """A text part of an input message; assistant history uses 'output_text'."""
    type: Literal["input_text", "output_text"] = "input_text"
    text: str

class UserInputItem(BaseModel):
    """
    A message item of the request input.
    Attributes:
        role (str): 'user' for new input, 'assistant' when replaying history.
        content (List[InputText]): The text parts of the message.
    """
    role: Literal["user", "assistant"] = "user"
    content: List[InputText]

    @classmethod
    def from_text(cls, text: str, role: str = "user") -> "UserInputItem":
        part_type = "output_text" if role == "assistant" else "input_text"
        return cls(role=role, content=[InputText(type=part_type, text=text)])

    def text(self) -> str:
        return "".join(part.text for part in self.content)

class ApprovalResponseItem(BaseModel):
    """
    The user's decision on a pending tool call.
    Attributes:
        approval_request_id (str): The id of the approval request being answered.
        approve (bool): Whether the call may proceed.
    """
    type: Literal["mcp_approval_response"] = "mcp_approval_response"
    approval_request_id: str
    approve: bool

InputItem = Union[ApprovalResponseItem, UserInputItem]

class ToolDescriptor(BaseModel):
    """An MCP server handed to the provider as a remote tool."""
    type: Literal["mcp"] = "mcp"
    server_label: str
    server_url: str
    allowed_tools: Optional[List[str]] = None
    require_approval: Optional[RequireApproval] = None

class RelayRequest(BaseModel):
    """
    Defines the request body for the /v1/mcp/{provider} relay endpoint.
    Attributes:
        model (str): The upstream model id; the relay picks its default when absent.
        input (List[InputItem]): New input items, or the full history for providers
            without continuation support.
        previous_response_id (str): Continuation id of the exchange being continued.
        tools (List[ToolDescriptor]): MCP servers the provider may call. Must be resent
            on every continuation.
        temperature, top_p, max_output_tokens: Sampling parameters.
        stream (bool): Stream events as SSE (chat turns) or return one JSON document.
        instructions (str): Optional system instructions.
        reasoning_type (ReasoningType): 'Thinking' asks the provider for reasoning summaries.
        mode (RelayMode): 'mcp' passes provider events through unchanged; 'research' answers with
            web search, normalized frames and search-term post-processing.
    """
    model: Optional[str] = None
    input: Optional[List[InputItem]] = None
    previous_response_id: Optional[str] = None
    tools: Optional[List[ToolDescriptor]] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    max_output_tokens: Optional[int] = None
    stream: bool = True
    instructions: Optional[str] = None
    reasoning_type: Optional[ReasoningType] = None
    mode: RelayMode = "mcp"

class ValidateServerRequest(BaseModel):
    """Defines the request body for the /v1/mcp/tools endpoint."""
    server_url: Optional[str] = None
    server_label: Optional[str] = None

class ValidateServerResponse(BaseModel):
    """
    Defines the response body for the /v1/mcp/tools endpoint.
    Attributes:
        tools (List[str]): Tool names the server reported.
        suggested_prompts (List[str]): Example prompts, serialized as 'suggestedPrompts'.
    """
    model_config = ConfigDict(populate_by_name=True)

    tools: List[str] = Field(default_factory=list)
    suggested_prompts: List[str] = Field(default_factory=list, alias="suggestedPrompts")

class ErrorResponse(BaseModel):
    """Body of every non-streaming error response."""
    error: str

class ProviderAvailability(BaseModel):
    """Which provider relays are configured on this deployment."""
    openai: bool = False
    gemini: bool = False
    anthropic: bool = False
