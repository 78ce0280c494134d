"""Conversation history for one orchestration session."""

from __future__ import annotations

from typing import Iterator, Union

from devhub_ai.types import ChatMessage, MessageRole


class ConversationHistory:
    """Append-only message log with an explicit clear.

    There is no length cap; sessions are expected to be short-lived.
    """

    def __init__(self) -> None:
        self._messages: list[ChatMessage] = []

    def append(self, role: Union[MessageRole, str], content: str) -> ChatMessage:
        """Add one timestamped entry and return it."""
        message = ChatMessage(role=MessageRole(role), content=content)
        self._messages.append(message)
        return message

    def clear(self) -> None:
        self._messages = []

    def snapshot(self) -> tuple[ChatMessage, ...]:
        """Messages as of now; later appends do not show up in the result."""
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.snapshot())

    def to_list(self) -> list[dict]:
        return [m.to_dict() for m in self._messages]


__all__ = ["ConversationHistory"]
