"""Classify message text as a top-level command, an inline command, or plain text."""

import re
from dataclasses import dataclass
from typing import Literal

from switchclaw.commands.registry import CommandSpec, find_command, inline_tokens

CommandKind = Literal["top_level", "inline", "none"]


@dataclass(frozen=True)
class ParsedCommand:
    """Result of classifying one message body."""

    kind: CommandKind
    stripped_body: str
    command: CommandSpec | None = None
    args: str = ""

    @property
    def name(self) -> str | None:
        return self.command.name if self.command else None


def _build_inline_re() -> re.Pattern[str]:
    alternation = "|".join(re.escape(token) for token in inline_tokens())
    # "/status:" followed by a space is the token with an empty colon argument.
    return re.compile(
        rf"(?<!\S)(?P<token>{alternation})(?:@[\w.]+)?:?(?=$|\s|[.,!?;])",
        re.IGNORECASE,
    )


_INLINE_RE = _build_inline_re()


def normalize_token(raw: str) -> tuple[str, str]:
    """Split "/Send:off" or "/status@bot" into ("/send", "off") / ("/status", "")."""
    token, _, colon_arg = raw.partition(":")
    token = token.split("@", 1)[0].lower()
    return token, colon_arg.strip()


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def _match_top_level(text: str) -> ParsedCommand | None:
    if not text.startswith("/"):
        return None
    parts = text.split(maxsplit=1)
    token, colon_arg = normalize_token(parts[0])
    spec = find_command(token)
    if spec is None:
        return None

    rest = parts[1].strip() if len(parts) > 1 else ""
    if colon_arg:
        rest = f"{colon_arg} {rest}".strip()

    if spec.args == "none" and rest:
        return None
    if spec.args == "word" and len(rest.split()) > 1:
        return None
    return ParsedCommand(kind="top_level", stripped_body=rest, command=spec, args=rest)


def _match_inline(body: str) -> ParsedCommand | None:
    match = _INLINE_RE.search(body)
    if match is None:
        return None
    spec = find_command(match.group("token").lower())
    if spec is None:
        return None
    stripped = collapse_whitespace(body[: match.start()] + " " + body[match.end():])
    return ParsedCommand(kind="inline", stripped_body=stripped, command=spec)


def classify(body: str | None) -> ParsedCommand:
    """
    Classify a message body.

    Returns:
        A top-level command when the whole body is the command (plus the
        arguments it accepts), an inline command when an inline-capable token
        sits inside longer text, otherwise plain text.
    """
    text = (body or "").strip()
    if not text:
        return ParsedCommand(kind="none", stripped_body="")

    top_level = _match_top_level(text)
    if top_level is not None:
        return top_level

    inline = _match_inline(text)
    if inline is not None:
        return inline

    return ParsedCommand(kind="none", stripped_body=text)
