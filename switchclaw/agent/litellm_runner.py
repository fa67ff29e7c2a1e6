"""Single-turn agent runner backed by LiteLLM."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

import litellm
from litellm import acompletion

from switchclaw.agent.runner import AgentMeta, AgentPayload, AgentRequest, AgentResult
from switchclaw.errors import AgentInvocationError

if TYPE_CHECKING:
    from switchclaw.config.schema import Config


class LiteLLMAgentRunner:
    """Single-turn agent that answers through ``litellm.acompletion``."""

    def __init__(
        self,
        model: str,
        *,
        api_key: str | None = None,
        api_base: str | None = None,
        extra_headers: dict[str, str] | None = None,
        system_prompt: str = "",
        max_tokens: int = 1024,
        temperature: float = 0.7,
    ):
        self.model = model
        self.api_key = api_key
        self.api_base = api_base
        self.extra_headers = extra_headers or {}
        self.system_prompt = system_prompt
        self.max_tokens = max_tokens
        self.temperature = temperature
        litellm.suppress_debug_info = True

    @classmethod
    def from_config(cls, config: Config) -> LiteLLMAgentRunner:
        return cls(
            config.agent.model,
            api_key=config.provider.api_key or None,
            api_base=config.provider.api_base,
            extra_headers=config.provider.extra_headers,
            system_prompt=config.agent.system_prompt,
            max_tokens=config.agent.max_tokens,
            temperature=config.agent.temperature,
        )

    def build_messages(self, request: AgentRequest) -> list[dict[str, Any]]:
        system_parts = [part for part in (self.system_prompt, request.extra_system_prompt) if part]
        messages: list[dict[str, Any]] = []
        if system_parts:
            messages.append({"role": "system", "content": "\n\n".join(system_parts)})
        messages.append({"role": "user", "content": request.prompt})
        return messages

    def completion_kwargs(self, request: AgentRequest) -> dict[str, Any]:
        # Credentials go with each call so the process environment is left alone.
        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": self.build_messages(request),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers
        return kwargs

    async def run(self, request: AgentRequest) -> AgentResult:
        started = time.monotonic()
        response = await acompletion(**self.completion_kwargs(request))
        choice = response.choices[0]
        if choice.finish_reason == "error":
            raise AgentInvocationError(f"{self.model} returned an error for session {request.session_key}")

        usage = getattr(response, "usage", None)
        text = choice.message.content or ""
        return AgentResult(
            payloads=[AgentPayload(text=text)] if text.strip() else [],
            meta=AgentMeta(
                duration_ms=int((time.monotonic() - started) * 1000),
                agent_meta={
                    "sessionId": request.session_id,
                    "model": self.model,
                    "finishReason": choice.finish_reason or "stop",
                    "usage": {
                        "prompt_tokens": usage.prompt_tokens,
                        "completion_tokens": usage.completion_tokens,
                        "total_tokens": usage.total_tokens,
                    }
                    if usage
                    else {},
                },
            ),
        )
