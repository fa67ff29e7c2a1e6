"""Configuration schema using Pydantic."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class GroupConfig(BaseModel):
    """Per-group settings, keyed by group address or "*"."""
    require_mention: bool | None = None


class ChannelConfig(BaseModel):
    """Command policy for one chat channel."""
    enabled: bool = True
    allow_from: list[str] = Field(default_factory=list)  # Sender addresses, "*" allows everyone
    owner_from: list[str] = Field(default_factory=list)  # Explicit owners; defaults to first allow_from entry
    groups: dict[str, GroupConfig] = Field(default_factory=dict)

    @field_validator("allow_from", "owner_from", mode="before")
    @classmethod
    def split_csv(cls, value):
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @property
    def allows_everyone(self) -> bool:
        return "*" in self.allow_from

    def group_settings(self, group_id: str) -> GroupConfig | None:
        """Return settings for a group, falling back to the "*" entry."""
        return self.groups.get(group_id) or self.groups.get("*")


class WhatsAppConfig(ChannelConfig):
    """WhatsApp channel configuration."""


class TelegramConfig(ChannelConfig):
    """Telegram channel configuration."""


class SmsConfig(ChannelConfig):
    """SMS channel configuration."""


class ChannelsConfig(BaseModel):
    """Configuration for chat channels."""
    default_provider: str = "whatsapp"  # Used when a message carries no provider
    whatsapp: WhatsAppConfig = Field(default_factory=WhatsAppConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    sms: SmsConfig = Field(default_factory=SmsConfig)

    def for_provider(self, provider: str | None) -> ChannelConfig:
        """Resolve the channel config for a provider; unknown providers get an empty policy."""
        name = (provider or self.default_provider or "").strip().lower()
        channel = getattr(self, name, None) if name in {"whatsapp", "telegram", "sms"} else None
        if isinstance(channel, ChannelConfig):
            return channel
        return ChannelConfig()


class SessionConfig(BaseModel):
    """Session store configuration."""
    store: str = "~/.switchclaw/sessions.json"
    main_key: str = "main"

    @property
    def store_path(self) -> Path:
        return Path(self.store).expanduser()


class AgentConfig(BaseModel):
    """Agent invocation defaults."""
    model: str = "anthropic/claude-opus-4-5"
    max_tokens: int = Field(default=1024, ge=1)
    temperature: float = 0.7
    system_prompt: str = "You are a helpful assistant replying inside a chat app. Keep replies short."
    greeting_prompt: str = (
        "A new session was started via /new or /reset. "
        "Say hi briefly (1-2 sentences) and ask what the user wants to do next."
    )


class ProviderConfig(BaseModel):
    """LLM provider configuration."""
    api_key: str = ""
    api_base: str | None = None
    extra_headers: dict[str, str] | None = None


class AuditConfig(BaseModel):
    """Audit logging configuration."""
    enabled: bool = False
    path: str = "~/.switchclaw/audit.log"
    level: Literal["minimal", "standard", "verbose"] = "standard"


class Config(BaseSettings):
    """Root configuration for switchclaw."""

    model_config = SettingsConfigDict(env_prefix="SWITCHCLAW_", env_nested_delimiter="__")

    channels: ChannelsConfig = Field(default_factory=ChannelsConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    agent: AgentConfig = Field(default_factory=AgentConfig)
    provider: ProviderConfig = Field(default_factory=ProviderConfig)
    audit: AuditConfig = Field(default_factory=AuditConfig)

    @model_validator(mode="after")
    def validate_main_key(self) -> "Config":
        if not self.session.main_key.strip():
            raise ValueError("session.main_key must be a non-empty string.")
        return self

    @property
    def store_path(self) -> Path:
        """Get expanded session store path."""
        return self.session.store_path
