"""Sender authorization for control commands."""

import re
from dataclasses import dataclass

from switchclaw.bus.events import IncomingMessage
from switchclaw.config.schema import ChannelConfig

_JID_SUFFIXES = ("@s.whatsapp.net", "@c.us")
_PHONE_NOISE_RE = re.compile(r"[\s\-().]")


@dataclass(frozen=True)
class AuthContext:
    """Authorization decision for one message; computed once and passed along."""

    sender: str
    provider: str
    chat_type: str
    authorized: bool
    is_owner: bool


def normalize_address(value: str | None, provider: str | None = None) -> str:
    """Normalize a sender address so config entries and inbound ids compare equal."""
    text = str(value or "").strip()
    if not text:
        return ""
    if text == "*":
        return text
    lowered = text.lower()
    if provider and lowered.startswith(f"{provider.lower()}:"):
        text = text[len(provider) + 1:]
    for prefix in ("whatsapp:", "telegram:", "sms:"):
        if text.lower().startswith(prefix):
            text = text[len(prefix):]
            break
    for suffix in _JID_SUFFIXES:
        if text.lower().endswith(suffix):
            text = text[: -len(suffix)]
            break
    if "|" in text:
        # Channels that send "id|username" are keyed by the id part.
        text = text.split("|", 1)[0]
    compact = _PHONE_NOISE_RE.sub("", text)
    if compact.startswith("+") or compact.isdigit():
        return compact
    return text.strip()


def sender_identity(message: IncomingMessage) -> str:
    """The human sender of a message; in groups this is never the group address."""
    if message.is_group:
        return message.sender_e164 or message.sender_id or ""
    return message.sender_e164 or message.from_ or message.sender_id or ""


class AuthorizationEvaluator:
    """Decides whether a sender may run restricted commands on a channel."""

    def __init__(self, channel: ChannelConfig, provider: str):
        self.channel = channel
        self.provider = provider
        self._allow = {normalize_address(entry, provider) for entry in channel.allow_from if entry}
        self._owners = self._resolve_owners()

    def _resolve_owners(self) -> set[str]:
        explicit = {normalize_address(e, self.provider) for e in self.channel.owner_from if e and e != "*"}
        if explicit:
            return explicit
        for entry in self.channel.allow_from:
            normalized = normalize_address(entry, self.provider)
            if normalized and normalized != "*":
                return {normalized}
        return set()

    def is_allowed(self, sender: str) -> bool:
        if "*" in self._allow:
            return True
        return bool(sender) and sender in self._allow

    def is_owner(self, sender: str, authorized: bool) -> bool:
        if not authorized:
            return False
        # Without a configured owner every authorized sender is treated as one.
        if not self._owners:
            return True
        return bool(sender) and sender in self._owners

    def evaluate(self, message: IncomingMessage) -> AuthContext:
        sender = normalize_address(sender_identity(message), self.provider)
        authorized = message.command_authorized is True or self.is_allowed(sender)
        return AuthContext(
            sender=sender,
            provider=self.provider,
            chat_type=message.chat_type,
            authorized=authorized,
            is_owner=self.is_owner(sender, authorized),
        )
