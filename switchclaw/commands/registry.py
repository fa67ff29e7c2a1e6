"""Registered slash commands and their policies."""

from dataclasses import dataclass
from typing import Literal

Restriction = Literal["owner", "authorized", "open"]
Scope = Literal["top_level", "inline"]
ArgStyle = Literal["none", "word", "text"]


@dataclass(frozen=True)
class CommandSpec:
    """Static description of one slash command."""

    name: str  # canonical token, e.g. "/send"
    description: str
    restriction: Restriction = "authorized"
    scope: Scope = "top_level"
    args: ArgStyle = "none"
    usage: str = ""
    aliases: tuple[str, ...] = ()

    @property
    def inline_allowed(self) -> bool:
        return self.scope == "inline"


COMMANDS: tuple[CommandSpec, ...] = (
    CommandSpec(
        name="/help",
        description="Show quick help.",
        scope="inline",
    ),
    CommandSpec(
        name="/commands",
        description="List all slash commands.",
        scope="inline",
    ),
    CommandSpec(
        name="/whoami",
        description="Show your sender id.",
        scope="inline",
        aliases=("/id",),
    ),
    CommandSpec(
        name="/status",
        description="Show session status.",
        scope="inline",
    ),
    CommandSpec(
        name="/reset",
        description="Reset the current session.",
        restriction="owner",
        args="text",
    ),
    CommandSpec(
        name="/new",
        description="Start a new session.",
        restriction="owner",
        args="text",
    ),
    CommandSpec(
        name="/send",
        description="Allow or deny agent replies for this session.",
        restriction="owner",
        args="word",
        usage="/send on|off|inherit",
    ),
    CommandSpec(
        name="/activation",
        description="Group only: reply to every message or only on mention.",
        args="word",
        usage="/activation mention|always",
    ),
)

_BY_TOKEN: dict[str, CommandSpec] = {}
for _spec in COMMANDS:
    _BY_TOKEN[_spec.name] = _spec
    for _alias in _spec.aliases:
        _BY_TOKEN[_alias] = _spec


def find_command(token: str) -> CommandSpec | None:
    """Look up a command by its normalized token (including aliases)."""
    return _BY_TOKEN.get(token)


def inline_tokens() -> list[str]:
    """Tokens that may appear inside free text, longest first."""
    tokens = [token for token, spec in _BY_TOKEN.items() if spec.inline_allowed]
    return sorted(tokens, key=len, reverse=True)
