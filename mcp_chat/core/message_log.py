# Ordered, mutable list of conversation messages owned by one state machine.
# Author: Shibo Li
# Date: 2025-06-20
# Version: 0.1.0

from typing import Iterator, List, Optional
from mcp_chat.models.common import Message, ProviderId, Role

# Roles that are replayed to providers which cannot continue from a response id.
HISTORY_ROLES = ("user", "assistant")


class MessageLog:
    """
    Holds the messages of a conversation in display order.
    Messages are looked up by id so that an open message can keep receiving
    deltas while newer messages are appended after it.
    """

    def __init__(self):
        self._messages: List[Message] = []

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def append(self, role: Role, content: str = "", provider: Optional[ProviderId] = None) -> Message:
        message = Message(role=role, content=content, provider=provider)
        self._messages.append(message)
        return message

    def get(self, message_id: Optional[str]) -> Optional[Message]:
        if message_id is None:
            return None
        for message in self._messages:
            if message.id == message_id:
                return message
        return None

    def append_to(self, message_id: Optional[str], text: str) -> bool:
        message = self.get(message_id)
        if message is None:
            return False
        message.content += text
        return True

    def replace(self, message_id: Optional[str], text: str) -> bool:
        message = self.get(message_id)
        if message is None:
            return False
        message.content = text
        return True

    def last_of_role(self, role: Role) -> Optional[Message]:
        for message in reversed(self._messages):
            if message.role == role:
                return message
        return None

    def clear(self):
        self._messages = []

    def snapshot(self) -> List[Message]:
        """Deep copies, safe to hand to a renderer."""
        return [message.model_copy(deep=True) for message in self._messages]

    def history(self, exclude_id: Optional[str] = None) -> List[Message]:
        """User and assistant messages with content, in order; audit and thinking text is left out."""
        return [
            message for message in self._messages
            if message.role in HISTORY_ROLES and message.content and message.id != exclude_id
        ]
