"""Routes one inbound message to a command handler or the agent."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from loguru import logger

from switchclaw.agent.context import GroupContextBuilder
from switchclaw.agent.delegate import AgentDelegate
from switchclaw.agent.runner import AgentRunner
from switchclaw.audit.logger import AuditLogger
from switchclaw.auth.evaluator import AuthorizationEvaluator
from switchclaw.bus.events import IncomingMessage, Reply, ReplyPayload
from switchclaw.commands.dispatcher import CommandDispatcher
from switchclaw.commands.parser import classify
from switchclaw.config.schema import Config
from switchclaw.session.store import SessionEntry, SessionStore, resolve_session_key

BlockReplyFn = Callable[[ReplyPayload], Awaitable[None]]


@dataclass
class ReplyOptions:
    """Per-call hooks supplied by the transport."""

    on_block_reply: BlockReplyFn | None = None


class TriggerRouter:
    """
    Entry point for inbound chat messages.

    It:
    1. Classifies the body (top-level command, inline command, plain text)
    2. Evaluates sender authorization once
    3. Runs the matched command, which may reply, drop, or hand off
    4. Applies the session send policy
    5. Adds group context and delegates to the agent
    """

    def __init__(
        self,
        config: Config,
        store: SessionStore,
        agent: AgentRunner,
        audit_logger: AuditLogger | None = None,
    ):
        self.config = config
        self.store = store
        self.audit_logger = audit_logger
        self.delegate = AgentDelegate(agent)
        self.dispatcher = CommandDispatcher(store, config.agent, audit_logger=audit_logger)

    def _provider_for(self, message: IncomingMessage) -> str:
        return (message.provider or self.config.channels.default_provider or "").strip().lower()

    async def get_reply(
        self,
        message: IncomingMessage,
        options: ReplyOptions | None = None,
    ) -> Reply | None:
        """
        Produce the reply for one message.

        Returns:
            None when nothing should be sent, a single ReplyPayload, or an
            ordered list of payloads.
        """
        options = options or ReplyOptions()
        provider = self._provider_for(message)
        channel = self.config.channels.for_provider(provider)
        auth = AuthorizationEvaluator(channel, provider).evaluate(message)
        session_key = resolve_session_key(
            provider,
            message.chat_type,
            message.from_,
            main_key=self.config.session.main_key,
        )

        if self.audit_logger:
            self.audit_logger.log_message(
                direction="inbound",
                channel=provider,
                length=len(message.body or ""),
                sender=auth.sender,
            )

        parsed = classify(message.body)
        result = await self.dispatcher.dispatch(parsed, message, auth, session_key, channel)
        if result.drop:
            return None
        if result.reply is not None:
            return result.reply
        if result.reset and self.audit_logger:
            self.audit_logger.log_event("session_reset", {"session_key": session_key, "channel": provider})

        parts: list[ReplyPayload] = []
        if result.block_reply is not None:
            if options.on_block_reply is not None:
                await options.on_block_reply(result.block_reply)
            else:
                parts.append(result.block_reply)

        prompt = (result.prompt or "").strip()
        if not prompt:
            return self._combine(parts, None)

        entry = await self._session_for_delegation(session_key, message, provider)
        if entry.send_policy == "deny":
            logger.info(f"Agent reply suppressed for {session_key}: send policy is deny")
            return self._combine(parts, None)

        extra_system_prompt = GroupContextBuilder(channel, provider).build(message, entry)
        agent_reply = await self.delegate.delegate(
            prompt,
            extra_system_prompt=extra_system_prompt,
            session_key=session_key,
            session_id=entry.session_id,
            provider=provider,
            sender=auth.sender,
        )
        reply = self._combine(parts, agent_reply)

        if self.audit_logger and reply is not None:
            self.audit_logger.log_message(
                direction="outbound",
                channel=provider,
                length=sum(len(p.text) for p in (reply if isinstance(reply, list) else [reply])),
                sender=message.from_,
            )
        return reply

    async def _session_for_delegation(
        self,
        session_key: str,
        message: IncomingMessage,
        provider: str,
    ) -> SessionEntry:
        entry = await self.store.get(session_key)
        if entry is not None:
            return entry

        def init(new: SessionEntry) -> None:
            new.chat_type = message.chat_type
            new.provider = provider
            new.subject = message.group_subject

        return await self.store.update(session_key, init)

    @staticmethod
    def _combine(parts: list[ReplyPayload], agent_reply: Reply | None) -> Reply | None:
        if agent_reply is not None:
            parts = parts + (agent_reply if isinstance(agent_reply, list) else [agent_reply])
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        return parts


async def get_reply_from_config(
    message: IncomingMessage | dict[str, Any],
    config: Config,
    agent: AgentRunner,
    options: ReplyOptions | None = None,
) -> Reply | None:
    """Route one message using the store and audit settings found in the config."""
    if isinstance(message, dict):
        message = IncomingMessage.from_dict(message)
    audit_logger = None
    if config.audit.enabled:
        audit_logger = AuditLogger(config.audit.path, level=config.audit.level)
    router = TriggerRouter(config, SessionStore(config.store_path), agent, audit_logger=audit_logger)
    return await router.get_reply(message, options)
