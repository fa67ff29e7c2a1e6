"""Hands conversation off to the agent and maps its output to replies."""

from loguru import logger

from switchclaw.agent.runner import AgentRequest, AgentResult, AgentRunner
from switchclaw.bus.events import Reply, ReplyPayload
from switchclaw.errors import AgentInvocationError


class AgentDelegate:
    """Builds the agent request, invokes the runner and shapes the reply."""

    def __init__(self, runner: AgentRunner):
        self.runner = runner

    async def delegate(
        self,
        prompt: str,
        *,
        extra_system_prompt: str | None = None,
        session_key: str = "",
        session_id: str = "",
        provider: str = "",
        sender: str = "",
    ) -> Reply | None:
        request = AgentRequest(
            prompt=prompt,
            extra_system_prompt=extra_system_prompt,
            session_key=session_key,
            session_id=session_id,
            provider=provider,
            sender=sender,
        )
        preview = prompt[:80] + "..." if len(prompt) > 80 else prompt
        logger.info(f"Delegating to agent ({session_key}) from {provider}:{sender or '?'}: {preview}")

        try:
            result = await self.runner.run(request)
        except AgentInvocationError:
            raise
        except Exception as e:
            raise AgentInvocationError(f"Agent run failed for session {session_key}: {e}") from e

        reply = self.to_reply(result)
        logger.debug(f"Agent finished ({session_key}) in {result.meta.duration_ms}ms")
        return reply

    @staticmethod
    def to_reply(result: AgentResult) -> Reply | None:
        """One payload becomes a single reply, several an ordered sequence, none a drop."""
        parts = [ReplyPayload(text=p.text) for p in result.payloads if p.text and p.text.strip()]
        if not parts:
            return None
        if len(parts) == 1:
            return parts[0]
        return parts
