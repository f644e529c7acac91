# The module implements the conversation / turn state machine.
# It owns the message list, the in-flight turn, the continuation id and the approval slot,
# and folds relay events into that state strictly in arrival order.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

import asyncio
from uuid import uuid4
from typing import AsyncIterator, List, Optional, Protocol
from mcp_chat.core.approval import ApprovalGate
from mcp_chat.core.catalog import get_default_model_config, provider_for_model, supports_continuation
from mcp_chat.core.errors import ApprovalProtocolError, RelayError, RelayRequestError
from mcp_chat.core.message_log import MessageLog
from mcp_chat.core.sse import Frame
from mcp_chat.core.task_registry import TaskRegistry
from mcp_chat.core.thinking import ThinkingStrategy, thinking_strategy_for
from mcp_chat.core.translator import translate_frame
from mcp_chat.models.api_models import RelayRequest, UserInputItem
from mcp_chat.models.common import (
    ApprovalRequest,
    Message,
    ModelConfig,
    ProviderId,
    SearchSuggestions,
    Task,
    TurnStatus,
)
from mcp_chat.models.events import (
    ApprovalRequested,
    CleanedText,
    ReasoningTypeReported,
    ResponseCreated,
    SearchSuggestionsReady,
    SelectedModel,
    SelectedProvider,
    StreamDone,
    StreamError,
    StreamEvent,
    TextDelta,
    TextDone,
    ThinkingDelta,
    ThinkingDone,
    ToolsListed,
)
from mcp_chat.utils.logger import console

BUSY_STATES = (TurnStatus.SUBMITTED, TurnStatus.STREAMING, TurnStatus.AWAITING_APPROVAL)
LOADING_STATES = (TurnStatus.SUBMITTED, TurnStatus.STREAMING)


class RelayTransport(Protocol):
    def stream(self, provider: str, request: RelayRequest) -> AsyncIterator[Frame]:
        ...


def new_session_id() -> str:
    return uuid4().hex[:21]


class Conversation:
    """
    One independent chat with the chat-active task of a TaskRegistry.

    States: ready -> submitted -> streaming -> ready, with
    streaming -> awaiting-approval -> submitted while a tool call waits for the
    user, and any state -> error. Each transport call runs in its own asyncio
    task tagged with a generation number; events from an older generation are
    discarded, so a stopped stream can never write into a newer turn.
    """

    def __init__(self, registry: TaskRegistry, transport: RelayTransport):
        self._registry = registry
        self._transport = transport

        self.messages = MessageLog()
        self.status = TurnStatus.READY
        self.error: Optional[str] = None
        self.response_id: Optional[str] = None
        self.session_id = new_session_id()
        self.approval = ApprovalGate()

        self.search_suggestions: Optional[SearchSuggestions] = None
        self.response_model: Optional[str] = None
        self.response_provider: Optional[str] = None
        self.response_reasoning_type: Optional[str] = None

        task = registry.chat_active_task
        self.model_config: ModelConfig = get_default_model_config(task.model if task else None)
        self._provider: ProviderId = provider_for_model(task.model) if task else "openai"
        self._thinking: ThinkingStrategy = thinking_strategy_for(self._provider)

        self._generation = 0
        self._transport_task: Optional["asyncio.Task[None]"] = None
        self._open_assistant_id: Optional[str] = None
        self._unsubscribe = registry.subscribe(self._on_chat_task_changed)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def pending_approval(self) -> Optional[ApprovalRequest]:
        return self.approval.pending

    @property
    def is_busy(self) -> bool:
        return self.status in BUSY_STATES

    @property
    def is_loading(self) -> bool:
        return self.status in LOADING_STATES

    @property
    def provider(self) -> ProviderId:
        return self._provider

    def snapshot(self) -> List[Message]:
        return self.messages.snapshot()

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def send_message(self, text: str) -> bool:
        """
        Starts a new turn. Returns False without touching the transport when a
        turn is already in flight or waiting for approval, when no chat task is
        active, or when the active task has no MCP servers.
        """
        if self.is_busy:
            console.warning(f"Ignoring new message while the turn is '{self.status.value}'.")
            return False
        if not text or not text.strip():
            return False

        task = self._registry.chat_active_task
        if task is None:
            self.error = "No active chat task selected."
            return False
        if not task.servers:
            self.error = f'Task "{task.name}" has no MCP servers configured.'
            return False

        provider = provider_for_model(task.model)
        self._use_provider(provider)
        self._reset_response_metadata()
        self.error = None
        self.approval.clear()

        history = self.messages.history()
        self.messages.append("user", text)
        self._open_assistant_id = self.messages.append("assistant", provider=provider).id
        self.status = TurnStatus.SUBMITTED

        request = self._build_request(task, provider)
        if self.response_id and supports_continuation(provider):
            request.previous_response_id = self.response_id
            request.input = [UserInputItem.from_text(text)]
        else:
            request.input = [UserInputItem.from_text(m.content, role=m.role) for m in history]
            request.input.append(UserInputItem.from_text(text))

        console.rule(f"Turn on '{task.name}' ({provider}:{task.model})")
        self._start_transport(provider, request)
        return True

    async def handle_approval(self, approve: bool) -> bool:
        """
        Resolves the pending approval and continues the turn from the current
        response id. Without a pending request or a continuation id the slot is
        cleared, the failure is logged and nothing is sent.
        """
        pending = self.approval.pending
        if pending is None or not self.response_id:
            console.error("No pending approval request or previous response ID to handle.")
            self.approval.clear()
            if self.status == TurnStatus.AWAITING_APPROVAL:
                self.status = TurnStatus.READY
            return False

        task = self._registry.chat_active_task
        if task is None:
            self.approval.clear()
            self.error = "No active chat task selected for approval."
            self.status = TurnStatus.READY
            return False

        self.approval.take()
        self._thinking.reset()
        self.messages.append("tool_approval", ApprovalGate.decision_text(pending, approve))
        self._open_assistant_id = self.messages.append("assistant", provider=self._provider).id
        self.error = None
        self.status = TurnStatus.SUBMITTED

        request = self._build_request(task, self._provider)
        request.previous_response_id = self.response_id
        request.input = [ApprovalGate.response_item(pending, approve)]

        console.info(f"Tool call '{pending.tool_name}' {'approved' if approve else 'declined'}; continuing {self.response_id}.")
        self._start_transport(self._provider, request)
        return True

    def stop(self):
        """Aborts the in-flight transport call and any pending approval. Safe to call at any time."""
        cancelled = self._cancel_transport()
        self._open_assistant_id = None
        self._thinking.reset()
        if cancelled or self.status != TurnStatus.READY:
            console.info(f"Turn stopped from '{self.status.value}'.")
        self.approval.clear()
        self.status = TurnStatus.READY

    def clear_messages(self):
        """Aborts any turn and forgets the conversation, including the continuation id."""
        self.stop()
        self.messages.clear()
        self.response_id = None
        self.approval.clear()
        self.error = None
        self.status = TurnStatus.READY
        self._reset_response_metadata()
        self.session_id = new_session_id()

        task = self._registry.chat_active_task
        if task is not None:
            self._use_provider(provider_for_model(task.model))
        self.model_config = get_default_model_config(task.model if task else None)

    reset_agent = clear_messages

    def update_model_config(self, **changes) -> ModelConfig:
        self.model_config = self.model_config.model_copy(update=changes)
        console.info(
            f"Model configuration updated: temperature={self.model_config.temperature}, "
            f"max_tokens={self.model_config.max_tokens}"
        )
        return self.model_config

    async def join(self):
        """Waits until the current transport call has finished or been cancelled."""
        task = self._transport_task
        if task is not None:
            await asyncio.wait({task})

    def close(self):
        """Stops the turn and detaches from the registry."""
        self.stop()
        self._unsubscribe()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _build_request(self, task: Task, provider: ProviderId) -> RelayRequest:
        return RelayRequest(
            model=task.model,
            tools=self._registry.tool_descriptors(task),
            temperature=self.model_config.temperature,
            max_output_tokens=self.model_config.max_tokens,
            reasoning_type=task.reasoning_type,
            stream=True,
        )

    def _start_transport(self, provider: ProviderId, request: RelayRequest):
        self._cancel_transport()
        generation = self._generation
        self._transport_task = asyncio.create_task(self._run_transport(generation, provider, request))

    def _cancel_transport(self) -> bool:
        """Invalidates the current generation; returns True if a live call was cancelled."""
        self._generation += 1
        task, self._transport_task = self._transport_task, None
        if task is not None and not task.done():
            task.cancel()
            return True
        return False

    async def _run_transport(self, generation: int, provider: ProviderId, request: RelayRequest):
        try:
            async for frame in self._transport.stream(provider, request):
                if generation != self._generation:
                    return
                for event in translate_frame(frame):
                    self._fold(generation, event)
        except RelayRequestError as e:
            self._fail(generation, e.message, TurnStatus.READY)
        except RelayError as e:
            self._fail(generation, e.message)
        except Exception as e:
            console.exception("Error reading the relay stream.")
            self._fail(generation, str(e) or "Error reading response stream")
        else:
            self._finish(generation)

    def _finish(self, generation: int):
        if generation != self._generation:
            return
        if self.status in LOADING_STATES:
            self.status = TurnStatus.READY
        self._open_assistant_id = None

    def _fail(self, generation: int, message: str, status: TurnStatus = TurnStatus.ERROR):
        if generation != self._generation:
            return
        console.error(f"Turn failed: {message}")
        self.error = message
        self.status = status
        self._open_assistant_id = None

    # ------------------------------------------------------------------
    # Event folding
    # ------------------------------------------------------------------

    def _fold(self, generation: int, event: StreamEvent):
        if generation != self._generation:
            return

        if isinstance(event, ResponseCreated):
            # Captured before any content so an approval interrupt can continue from it.
            self.response_id = event.response_id
        elif isinstance(event, TextDelta):
            if not self.messages.append_to(self._open_assistant_id, event.text):
                self._open_assistant_id = self.messages.append("assistant", event.text, provider=self._provider).id
            self._mark_streaming()
        elif isinstance(event, TextDone):
            if not self.messages.replace(self._open_assistant_id, event.text):
                self.messages.append("assistant", event.text, provider=self._provider)
            self._open_assistant_id = None
        elif isinstance(event, CleanedText):
            last = self.messages.last_of_role("assistant")
            if last is not None:
                last.content = event.text
        elif isinstance(event, ThinkingDelta):
            self._thinking.fold_thinking_delta(self.messages, event)
            self._mark_streaming()
        elif isinstance(event, ThinkingDone):
            self._thinking.fold_thinking_done(self.messages, event)
        elif isinstance(event, ApprovalRequested):
            self._on_approval_requested(event.request)
        elif isinstance(event, ToolsListed):
            console.info(f"Server '{event.server_label}' listed tools: {', '.join(event.tools) or '-'}")
        elif isinstance(event, SearchSuggestionsReady):
            self.search_suggestions = SearchSuggestions(
                terms=event.terms, confidence=event.confidence, reasoning=event.reasoning
            )
        elif isinstance(event, SelectedModel):
            self.response_model = event.model
        elif isinstance(event, SelectedProvider):
            self.response_provider = event.provider
        elif isinstance(event, ReasoningTypeReported):
            self.response_reasoning_type = event.reasoning
        elif isinstance(event, StreamError):
            console.error(f"Provider reported an error: {event.error}")
            self.error = event.error
            self.status = TurnStatus.ERROR
        elif isinstance(event, StreamDone):
            if self.status in LOADING_STATES:
                self.status = TurnStatus.READY

    def _on_approval_requested(self, request: ApprovalRequest):
        try:
            self.approval.offer(request)
        except ApprovalProtocolError as e:
            console.display_error_panel("Approval protocol violation", str(e))
            self.approval.clear()
            self.error = str(e)
            self.status = TurnStatus.ERROR
            return
        console.display_approval_request(request)
        self.status = TurnStatus.AWAITING_APPROVAL

    def _mark_streaming(self):
        if self.status == TurnStatus.SUBMITTED:
            self.status = TurnStatus.STREAMING

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _use_provider(self, provider: ProviderId):
        if provider != self._provider:
            self._provider = provider
            self._thinking = thinking_strategy_for(provider)
        else:
            self._thinking.reset()

    def _reset_response_metadata(self):
        self.search_suggestions = None
        self.response_model = None
        self.response_provider = None
        self.response_reasoning_type = None

    def _on_chat_task_changed(self, previous: Optional[Task], current: Optional[Task]):
        console.info(
            f"Chat task changed from '{previous.name if previous else None}' "
            f"to '{current.name if current else None}'; clearing the conversation."
        )
        self.clear_messages()
