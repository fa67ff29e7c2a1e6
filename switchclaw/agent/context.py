"""Group-chat context injected into the agent's system prompt."""

import json
from typing import Any

from switchclaw.bus.events import IncomingMessage
from switchclaw.config.schema import ChannelConfig
from switchclaw.session.store import SessionEntry

ACTIVATION_ALWAYS = "always-on"
ACTIVATION_MENTION = "mention-required"

_ACTIVATION_HINTS = {
    ACTIVATION_ALWAYS: "you receive every group message",
    ACTIVATION_MENTION: "you are invoked only when explicitly mentioned",
}


def resolve_activation(channel: ChannelConfig, group_id: str, entry: SessionEntry | None = None) -> str:
    """
    Describe how the agent is activated in a group.

    A per-group override set with /activation wins. Otherwise the group is
    always-on only when it does not require a mention and the channel admits
    every sender.
    """
    if entry is not None and entry.group_activation:
        return ACTIVATION_ALWAYS if entry.group_activation == "always" else ACTIVATION_MENTION

    settings = channel.group_settings(group_id)
    require_mention = settings.require_mention if settings is not None else None
    if not require_mention and channel.allows_everyone:
        return ACTIVATION_ALWAYS
    return ACTIVATION_MENTION


def normalize_members(raw: str | None) -> list[str]:
    """Split a "Alice (+1), Bob (+2)" member string into unique trimmed names."""
    if not raw:
        return []
    seen: set[str] = set()
    members: list[str] = []
    for part in raw.split(","):
        member = " ".join(part.split())
        if member and member not in seen:
            seen.add(member)
            members.append(member)
    return members


class GroupContextBuilder:
    """Builds the extra system prompt for messages delegated from group chats."""

    def __init__(self, channel: ChannelConfig, provider: str):
        self.channel = channel
        self.provider = provider

    def metadata(self, message: IncomingMessage, entry: SessionEntry | None) -> dict[str, Any]:
        subject = message.group_subject or (entry.subject if entry else None)
        return {
            "chat_type": "group",
            "provider": self.provider,
            "group_id": message.from_,
            "group_subject": subject,
            "members": normalize_members(message.group_members),
            "activation": resolve_activation(self.channel, message.from_, entry),
        }

    def build(self, message: IncomingMessage, entry: SessionEntry | None = None) -> str | None:
        """Return the extra system prompt, or None for direct chats."""
        if not message.is_group:
            return None

        meta = self.metadata(message, entry)
        activation = meta["activation"]
        lines = [
            "## Group Chat",
            "```json",
            json.dumps(meta, ensure_ascii=False, indent=2),
            "```",
            f"Activation: {activation} ({_ACTIVATION_HINTS[activation]}).",
        ]
        if meta["group_subject"]:
            lines.append(f"Group subject: {meta['group_subject']}")
        if meta["members"]:
            lines.append(f"Group members: {', '.join(meta['members'])}")
        lines.append("Address the sender directly and keep replies short; others in the group can read them.")
        return "\n".join(lines)
