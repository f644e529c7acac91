# The module defines the internal stream events the conversation state machine folds.
# Every wire frame is translated into one of these before it reaches the state machine.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from pydantic import BaseModel, Field
from typing import List, Literal, Optional, Union
from mcp_chat.models.common import ApprovalRequest


class ResponseCreated(BaseModel):
    kind: Literal["response_created"] = "response_created"
    response_id: str


class TextDelta(BaseModel):
    kind: Literal["text_delta"] = "text_delta"
    text: str


class TextDone(BaseModel):
    """The provider's full text for the current output item."""
    kind: Literal["text_done"] = "text_done"
    text: str


class CleanedText(BaseModel):
    """Post-processed final text that replaces the accumulated deltas."""
    kind: Literal["cleaned_text"] = "cleaned_text"
    text: str


class ThinkingDelta(BaseModel):
    kind: Literal["thinking_delta"] = "thinking_delta"
    text: str
    summary_index: int = 0


class ThinkingDone(BaseModel):
    kind: Literal["thinking_done"] = "thinking_done"
    summary_index: int = 0
    text: Optional[str] = None


class ApprovalRequested(BaseModel):
    kind: Literal["approval_requested"] = "approval_requested"
    request: ApprovalRequest


class ToolsListed(BaseModel):
    kind: Literal["tools_listed"] = "tools_listed"
    server_label: str
    tools: List[str] = Field(default_factory=list)


class SearchSuggestionsReady(BaseModel):
    kind: Literal["search_suggestions"] = "search_suggestions"
    terms: List[str] = Field(default_factory=list)
    confidence: Optional[float] = None
    reasoning: str = ""


class SelectedModel(BaseModel):
    kind: Literal["selected_model"] = "selected_model"
    model: str


class SelectedProvider(BaseModel):
    kind: Literal["selected_provider"] = "selected_provider"
    provider: str


class ReasoningTypeReported(BaseModel):
    kind: Literal["reasoning_type"] = "reasoning_type"
    reasoning: str


class StreamError(BaseModel):
    kind: Literal["error"] = "error"
    error: str


class StreamDone(BaseModel):
    """The [DONE] sentinel."""
    kind: Literal["done"] = "done"


StreamEvent = Union[
    ResponseCreated,
    TextDelta,
    TextDone,
    CleanedText,
    ThinkingDelta,
    ThinkingDone,
    ApprovalRequested,
    ToolsListed,
    SearchSuggestionsReady,
    SelectedModel,
    SelectedProvider,
    ReasoningTypeReported,
    StreamError,
    StreamDone,
]
