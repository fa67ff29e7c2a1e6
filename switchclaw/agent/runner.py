"""Agent invocation interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass
class AgentRequest:
    """Everything the agent needs for one turn."""
    prompt: str
    extra_system_prompt: str | None = None
    session_key: str = ""
    session_id: str = ""
    provider: str = ""
    sender: str = ""


@dataclass
class AgentPayload:
    """One piece of agent output."""
    text: str


@dataclass
class AgentMeta:
    duration_ms: int = 0
    agent_meta: dict[str, Any] = field(default_factory=dict)


@dataclass
class AgentResult:
    """Response from an agent run."""
    payloads: list[AgentPayload] = field(default_factory=list)
    meta: AgentMeta = field(default_factory=AgentMeta)


class AgentRunner(Protocol):
    """Anything that can turn an AgentRequest into an AgentResult."""

    async def run(self, request: AgentRequest) -> AgentResult: ...


class EchoAgentRunner:
    """Replies with the prompt it was given. Useful for dry runs."""

    async def run(self, request: AgentRequest) -> AgentResult:
        return AgentResult(
            payloads=[AgentPayload(text=request.prompt)],
            meta=AgentMeta(agent_meta={"sessionId": request.session_id, "model": "echo"}),
        )
