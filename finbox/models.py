"""
Data models for the inbox.
These define the shape of conversations flowing through the copilot and
the JSON shape written to local storage (camelCase keys, as the browser
client stores them).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class Sender(str, enum.Enum):
    USER = "user"
    AGENT = "agent"
    BOT = "bot"
    SYSTEM = "system"


class MessageStatus(str, enum.Enum):
    DELIVERED = "delivered"
    SEEN = "seen"


def display_time(now: datetime | None = None) -> str:
    """Clock time the way the inbox shows it, e.g. '3:05 PM'."""
    now = now or datetime.now()
    hour = now.hour % 12 or 12
    return f"{hour}:{now.minute:02d} {'AM' if now.hour < 12 else 'PM'}"


@dataclass(frozen=True)
class Message:
    """A single message in a conversation. Immutable once created."""
    id: int
    content: str
    sender: Sender
    timestamp: str = ""
    status: MessageStatus = MessageStatus.DELIVERED

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "sender": self.sender.value,
            "timestamp": self.timestamp,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        return cls(
            id=int(data["id"]),
            content=data.get("content", ""),
            sender=Sender(data.get("sender", "user")),
            timestamp=data.get("timestamp", ""),
            status=MessageStatus(data.get("status", "delivered")),
        )


@dataclass
class Customer:
    name: str
    source: str = ""
    email: str = ""
    order_id: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "source": self.source,
            "email": self.email,
            "orderId": self.order_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Customer:
        return cls(
            name=data.get("name", ""),
            source=data.get("source", ""),
            email=data.get("email", ""),
            order_id=data.get("orderId", ""),
        )


@dataclass
class Conversation:
    """
    An inbox conversation. The message list is append-only: use append(),
    which assigns the next id, rather than mutating `messages` directly.
    """
    id: int
    user: Customer
    messages: list[Message] = field(default_factory=list)
    snippet: str = ""
    time_ago: str = ""
    unread: bool = False
    avatar: str = ""
    priority: bool = False
    second_line: str = ""
    is_system: bool = False

    def next_message_id(self) -> int:
        return self.messages[-1].id + 1 if self.messages else 1

    def append(
        self,
        content: str,
        sender: Sender,
        status: MessageStatus = MessageStatus.DELIVERED,
        timestamp: str | None = None,
    ) -> Message:
        msg = Message(
            id=self.next_message_id(),
            content=content,
            sender=sender,
            timestamp=timestamp if timestamp is not None else display_time(),
            status=status,
        )
        self.messages.append(msg)
        return msg

    def context(self) -> list[dict]:
        """Ordered [{sender, content}] pairs used to ground a prompt."""
        return [{"sender": m.sender.value, "content": m.content} for m in self.messages]

    @property
    def last_message(self) -> str:
        return self.messages[-1].content if self.messages else ""

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "user": self.user.to_dict(),
            "messages": [m.to_dict() for m in self.messages],
            "snippet": self.snippet,
            "timeAgo": self.time_ago,
            "unread": self.unread,
            "avatar": self.avatar,
        }
        if self.priority:
            data["priority"] = True
        if self.second_line:
            data["secondLine"] = self.second_line
        if self.is_system:
            data["isSystem"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> Conversation:
        return cls(
            id=int(data["id"]),
            user=Customer.from_dict(data.get("user", {})),
            messages=[Message.from_dict(m) for m in data.get("messages", [])],
            snippet=data.get("snippet", ""),
            time_ago=data.get("timeAgo", ""),
            unread=bool(data.get("unread", False)),
            avatar=data.get("avatar", ""),
            priority=bool(data.get("priority", False)),
            second_line=data.get("secondLine", ""),
            is_system=bool(data.get("isSystem", False)),
        )
