"""Message records exchanged between channels and the router."""

from switchclaw.bus.events import IncomingMessage, Reply, ReplyPayload, first_text

__all__ = ["IncomingMessage", "Reply", "ReplyPayload", "first_text"]
