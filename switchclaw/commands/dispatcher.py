"""Executes slash commands against session state and channel policy."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from loguru import logger

from switchclaw.agent.context import resolve_activation
from switchclaw.auth.evaluator import AuthContext
from switchclaw.bus.events import IncomingMessage, ReplyPayload
from switchclaw.commands.parser import ParsedCommand
from switchclaw.commands.registry import COMMANDS, CommandSpec
from switchclaw.errors import MalformedCommandArgument
from switchclaw.session.store import SessionEntry, SessionStore

if TYPE_CHECKING:
    from switchclaw.audit.logger import AuditLogger
    from switchclaw.config.schema import AgentConfig, ChannelConfig

SEND_POLICY_ARGS = {"on": "allow", "allow": "allow", "off": "deny", "deny": "deny", "inherit": None, "default": None}
ACTIVATION_ARGS = {"mention": "mention", "always": "always"}


@dataclass
class CommandResult:
    """What the router should do after command handling."""

    reply: ReplyPayload | None = None  # terminal reply, agent not invoked
    drop: bool = False  # emit nothing at all
    prompt: str | None = None  # delegate this prompt to the agent
    block_reply: ReplyPayload | None = None  # emitted before the agent's answer
    reset: bool = False


@dataclass(frozen=True)
class CommandContext:
    """Per-message inputs shared by every handler."""

    message: IncomingMessage
    auth: AuthContext
    session_key: str
    channel: "ChannelConfig"
    args: str = ""


class CommandDispatcher:
    """
    State machine over classified commands.

    Restricted top-level commands from senders who fail authorization are
    dropped silently. Inline commands only run for authorized senders; for
    everyone else the original text goes to the agent untouched.
    """

    _HANDLERS: dict[str, str] = {
        "/help": "_cmd_help",
        "/commands": "_cmd_commands",
        "/whoami": "_cmd_whoami",
        "/status": "_cmd_status",
        "/reset": "_cmd_reset",
        "/new": "_cmd_reset",
        "/send": "_cmd_send",
        "/activation": "_cmd_activation",
    }

    def __init__(
        self,
        store: SessionStore,
        agent_config: "AgentConfig",
        audit_logger: "AuditLogger | None" = None,
    ):
        self.store = store
        self.agent_config = agent_config
        self.audit_logger = audit_logger

    @staticmethod
    def permits(spec: CommandSpec, auth: AuthContext) -> bool:
        if spec.restriction == "open":
            return True
        if spec.restriction == "owner":
            return auth.is_owner
        return auth.authorized

    async def dispatch(
        self,
        parsed: ParsedCommand,
        message: IncomingMessage,
        auth: AuthContext,
        session_key: str,
        channel: "ChannelConfig",
    ) -> CommandResult:
        spec = parsed.command
        if parsed.kind == "none" or spec is None:
            return CommandResult(prompt=parsed.stripped_body)

        ctx = CommandContext(
            message=message,
            auth=auth,
            session_key=session_key,
            channel=channel,
            args=parsed.args,
        )

        if parsed.kind == "inline":
            if not auth.authorized:
                self._audit(spec, "delegated", ctx)
                return CommandResult(prompt=message.body.strip())
            reply = await self._run(spec, ctx)
            return CommandResult(prompt=parsed.stripped_body, block_reply=reply.reply)

        if not self.permits(spec, auth):
            logger.debug(
                f"Dropping {spec.name} from unauthorized sender {auth.sender or '?'} "
                f"on {auth.provider} ({auth.chat_type})"
            )
            self._audit(spec, "dropped", ctx)
            return CommandResult(drop=True)

        return await self._run(spec, ctx)

    async def _run(self, spec: CommandSpec, ctx: CommandContext) -> CommandResult:
        handler = getattr(self, self._HANDLERS[spec.name])
        try:
            result = await handler(ctx)
        except MalformedCommandArgument as e:
            logger.debug(f"{e}")
            self._audit(spec, "rejected", ctx)
            return CommandResult(reply=ReplyPayload(text=f"⚙️ Usage: {e.usage}"))
        self._audit(spec, "executed", ctx)
        return result

    def _audit(self, spec: CommandSpec, decision: str, ctx: CommandContext) -> None:
        if self.audit_logger is None:
            return
        self.audit_logger.log_command(
            command=spec.name,
            decision=decision,
            channel=ctx.auth.provider,
            chat_type=ctx.auth.chat_type,
            sender=ctx.auth.sender,
            args=ctx.args,
        )

    def _stamp(self, ctx: CommandContext):
        message = ctx.message

        def apply(entry: SessionEntry) -> None:
            entry.chat_type = message.chat_type
            entry.provider = ctx.auth.provider
            if message.group_subject:
                entry.subject = message.group_subject

        return apply

    # -- Static replies ---------------------------------------------------

    async def _cmd_help(self, ctx: CommandContext) -> CommandResult:
        lines = [
            "ℹ️ Help",
            "Session",
            "/new | /reset - start a fresh conversation",
            "/send on|off - turn agent replies on or off",
            "/activation mention|always - group reply mode",
            "Info",
            "/status - session status",
            "/whoami - your sender id",
            "More: /commands for full list",
        ]
        return CommandResult(reply=ReplyPayload(text="\n".join(lines)))

    async def _cmd_commands(self, ctx: CommandContext) -> CommandResult:
        lines = ["ℹ️ Slash commands"]
        for spec in COMMANDS:
            label = spec.usage or spec.name
            if spec.aliases:
                label = " | ".join([label, *spec.aliases])
            lines.append(f"{label} - {spec.description}")
        return CommandResult(reply=ReplyPayload(text="\n".join(lines)))

    async def _cmd_whoami(self, ctx: CommandContext) -> CommandResult:
        message = ctx.message
        lines = [
            "🧭 Identity",
            f"Channel: {ctx.auth.provider}",
            f"User id: {message.sender_id or ctx.auth.sender or 'unknown'}",
        ]
        if ctx.auth.sender:
            lines.append(f"Sender: {ctx.auth.sender}")
        if message.sender_name:
            lines.append(f"Name: {message.sender_name}")
        lines.append(f"Chat: {message.chat_type}")
        if message.is_group:
            lines.append(f"Group: {message.from_}")
        return CommandResult(reply=ReplyPayload(text="\n".join(lines)))

    async def _cmd_status(self, ctx: CommandContext) -> CommandResult:
        entry = await self.store.get(ctx.session_key)
        policy = entry.send_policy if entry and entry.send_policy else "allow (default)"
        lines = [
            "📊 Status",
            f"Session: {ctx.session_key}",
        ]
        if entry is not None:
            lines.append(f"Session id: {entry.session_id[:12]}")
            updated = datetime.fromtimestamp(entry.updated_at / 1000).isoformat(timespec="seconds")
            lines.append(f"Updated: {updated}")
        lines.append(f"Send policy: {policy}")
        lines.append(f"Chat: {ctx.message.chat_type} via {ctx.auth.provider}")
        if ctx.message.is_group:
            lines.append(f"Activation: {resolve_activation(ctx.channel, ctx.message.from_, entry)}")
        lines.append(f"Model: {self.agent_config.model}")
        return CommandResult(reply=ReplyPayload(text="\n".join(lines)))

    # -- State-changing commands ------------------------------------------

    async def _cmd_reset(self, ctx: CommandContext) -> CommandResult:
        stamp = self._stamp(ctx)

        def apply(entry: SessionEntry) -> None:
            entry.reset()
            stamp(entry)

        entry = await self.store.update(ctx.session_key, apply)
        logger.info(f"Session {ctx.session_key} reset by {ctx.auth.sender or '?'} (id {entry.session_id[:12]})")
        prompt = ctx.args.strip() or self.agent_config.greeting_prompt
        return CommandResult(prompt=prompt, reset=True)

    @staticmethod
    def parse_send_policy(arg: str) -> str | None:
        value = arg.strip().lower()
        if value not in SEND_POLICY_ARGS:
            raise MalformedCommandArgument("/send", arg, "/send on|off|inherit")
        return SEND_POLICY_ARGS[value]

    async def _cmd_send(self, ctx: CommandContext) -> CommandResult:
        if not ctx.args:
            entry = await self.store.get(ctx.session_key)
            current = entry.send_policy if entry and entry.send_policy else None
            label = {"allow": "on", "deny": "off"}.get(current or "", "inherit")
            return CommandResult(reply=ReplyPayload(text=f"⚙️ Current send policy: {label}."))

        policy = self.parse_send_policy(ctx.args)
        stamp = self._stamp(ctx)

        def apply(entry: SessionEntry) -> None:
            entry.send_policy = policy
            stamp(entry)

        await self.store.update(ctx.session_key, apply)
        logger.info(f"Send policy for {ctx.session_key} set to {policy or 'inherit'}")
        if policy is None:
            return CommandResult(reply=ReplyPayload(text="⚙️ Send policy reset to inherit."))
        label = "on" if policy == "allow" else "off"
        return CommandResult(reply=ReplyPayload(text=f"⚙️ Send policy set to {label}."))

    @staticmethod
    def parse_activation(arg: str) -> str:
        value = arg.strip().lower()
        if value not in ACTIVATION_ARGS:
            raise MalformedCommandArgument("/activation", arg, "/activation mention|always")
        return ACTIVATION_ARGS[value]

    async def _cmd_activation(self, ctx: CommandContext) -> CommandResult:
        if not ctx.message.is_group:
            return CommandResult(reply=ReplyPayload(text="⚙️ Group activation only applies to group chats."))
        if not ctx.args:
            entry = await self.store.get(ctx.session_key)
            current = resolve_activation(ctx.channel, ctx.message.from_, entry)
            return CommandResult(reply=ReplyPayload(text=f"⚙️ Current group activation: {current}."))

        mode = self.parse_activation(ctx.args)
        stamp = self._stamp(ctx)

        def apply(entry: SessionEntry) -> None:
            entry.group_activation = mode
            stamp(entry)

        await self.store.update(ctx.session_key, apply)
        logger.info(f"Group activation for {ctx.session_key} set to {mode}")
        return CommandResult(reply=ReplyPayload(text=f"⚙️ Group activation set to {mode}."))
