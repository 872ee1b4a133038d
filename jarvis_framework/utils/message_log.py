"""
Append-only conversation log.
"""

from typing import Iterator, List, Tuple

from ..models.data_models import Message, MessageRole


class MessageLog:
    """Ordered sequence of turns. Entries are appended, never edited or reordered."""

    def __init__(self):
        self._messages: List[Message] = []

    def append(self, role: MessageRole, content: str) -> Message:
        message = Message(role=role, content=content)
        self._messages.append(message)
        return message

    def recent(self, count: int) -> Tuple[Message, ...]:
        """Return the last ``count`` messages, oldest first."""
        if count <= 0:
            return ()
        return tuple(self._messages[-count:])

    def snapshot(self) -> Tuple[Message, ...]:
        return tuple(self._messages)

    def clear(self) -> None:
        self._messages = []

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self.snapshot())
