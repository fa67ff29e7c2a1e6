"""Event types for the message bus."""

from dataclasses import dataclass, field
from typing import Any, Literal

ChatType = Literal["direct", "group"]

# Transport field names (PascalCase) mapped to IncomingMessage attributes.
_TRANSPORT_FIELDS = {
    "Body": "body",
    "From": "from_",
    "To": "to",
    "Provider": "provider",
    "ChatType": "chat_type",
    "SenderE164": "sender_e164",
    "SenderId": "sender_id",
    "SenderName": "sender_name",
    "GroupSubject": "group_subject",
    "GroupMembers": "group_members",
    "CommandAuthorized": "command_authorized",
    "WasMentioned": "was_mentioned",
}


@dataclass(frozen=True)
class IncomingMessage:
    """Normalized message received from a chat channel."""

    body: str
    from_: str
    to: str = ""
    provider: str | None = None
    chat_type: ChatType = "direct"
    sender_e164: str | None = None
    sender_id: str | None = None
    sender_name: str | None = None
    group_subject: str | None = None
    group_members: str | None = None
    command_authorized: bool | None = None
    was_mentioned: bool | None = None

    @property
    def is_group(self) -> bool:
        return self.chat_type == "group"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "IncomingMessage":
        """Build a message from transport keys (``Body``, ``From``, ...) or snake_case keys."""
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = _TRANSPORT_FIELDS.get(key, key)
            if name == "from":
                name = "from_"
            if name in cls.__dataclass_fields__:
                kwargs[name] = value
        chat_type = str(kwargs.get("chat_type") or "direct").strip().lower()
        kwargs["chat_type"] = "group" if chat_type == "group" else "direct"
        kwargs.setdefault("body", "")
        kwargs.setdefault("from_", "")
        return cls(**kwargs)


@dataclass
class ReplyPayload:
    """One visible reply part."""

    text: str
    metadata: dict[str, Any] = field(default_factory=dict)


Reply = ReplyPayload | list[ReplyPayload]


def first_text(reply: Reply | None) -> str | None:
    """Return the primary visible text of a reply, or None for a drop."""
    if reply is None:
        return None
    if isinstance(reply, list):
        return reply[0].text if reply else None
    return reply.text
