"""Chat transcript.

Append-only record of every message exchanged in a session, in order, for
display and audit. Lives in memory only and is lost with the session.
"""

from typing import Iterator

from raidchat.chat.models import ChatMessage, MessageRole, new_message


class Transcript:
    """
    Ordered, append-only list of ChatMessages.

    Usage:
        transcript = Transcript()
        transcript.record_user("create a risk")
        transcript.record(reply_message)
        for message in transcript: ...
    """

    def __init__(self):
        self._entries: list[ChatMessage] = []

    def record(self, message: ChatMessage) -> ChatMessage:
        self._entries.append(message)
        return message

    def record_user(self, content: str) -> ChatMessage:
        """Record text typed by the user, verbatim."""
        return self.record(new_message(MessageRole.USER, content))

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._entries)

    def last(self) -> ChatMessage | None:
        return self._entries[-1] if self._entries else None

    def to_dicts(self) -> list[dict]:
        """Plain-data view for serialising to a UI or log."""
        return [
            {
                "id": m.id,
                "role": m.role.value,
                "content": m.content,
                "timestamp": m.timestamp.isoformat(),
            }
            for m in self._entries
        ]

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
