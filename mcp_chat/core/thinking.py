# Per-provider strategies for folding reasoning ("thinking") deltas into messages.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from abc import ABC, abstractmethod
from typing import Dict, Optional
from mcp_chat.core.message_log import MessageLog
from mcp_chat.models.common import ProviderId
from mcp_chat.models.events import ThinkingDelta, ThinkingDone


class ThinkingStrategy(ABC):
    """
    Abstract Base Class for thinking folding strategies.
    Attributes:
        provider (ProviderId): The provider stamped on the thinking messages.
    """

    def __init__(self, provider: ProviderId):
        self.provider = provider

    @abstractmethod
    def fold_thinking_delta(self, log: MessageLog, event: ThinkingDelta):
        """Folds one fragment of reasoning text into the log."""

    @abstractmethod
    def fold_thinking_done(self, log: MessageLog, event: ThinkingDone):
        """Closes the reasoning block identified by the event's summary index."""

    @abstractmethod
    def reset(self):
        """Drops any per-turn state."""


class BufferedThinkingStrategy(ThinkingStrategy):
    """
    Buffers fragments per summary index and emits one finished thinking message
    when that index is reported done. OpenAI streams reasoning summaries in
    fragments without a usable boundary per visible chunk.
    """

    def __init__(self, provider: ProviderId = "openai"):
        super().__init__(provider)
        self._buffers: Dict[int, str] = {}

    def fold_thinking_delta(self, log: MessageLog, event: ThinkingDelta):
        self._buffers[event.summary_index] = self._buffers.get(event.summary_index, "") + event.text

    def fold_thinking_done(self, log: MessageLog, event: ThinkingDone):
        content = self._buffers.pop(event.summary_index, None)
        if not content:
            content = event.text
        if content:
            log.append("thinking", content, provider=self.provider)

    def reset(self):
        self._buffers.clear()


class IncrementalThinkingStrategy(ThinkingStrategy):
    """
    Opens a thinking message on the first fragment and appends in place.
    Used for providers whose stream already has usable incremental boundaries.
    """

    def __init__(self, provider: ProviderId = "gemini"):
        super().__init__(provider)
        self._open_message_id: Optional[str] = None

    def fold_thinking_delta(self, log: MessageLog, event: ThinkingDelta):
        if not log.append_to(self._open_message_id, event.text):
            self._open_message_id = log.append("thinking", event.text, provider=self.provider).id

    def fold_thinking_done(self, log: MessageLog, event: ThinkingDone):
        self._open_message_id = None

    def reset(self):
        self._open_message_id = None


def thinking_strategy_for(provider: ProviderId) -> ThinkingStrategy:
    if provider == "openai":
        return BufferedThinkingStrategy(provider)
    return IncrementalThinkingStrategy(provider)
