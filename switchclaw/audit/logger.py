"""Structured audit logging of command decisions to a JSON lines file."""

import json
import re
import time
from pathlib import Path
from typing import Any, Literal

from loguru import logger

Decision = Literal["executed", "dropped", "delegated", "rejected"]


class AuditLogger:
    """Structured JSON-lines audit logger."""

    _SENSITIVE_KEY_RE = re.compile(
        r"(token|secret|password|passwd|api[_-]?key|authorization|bearer)",
        re.IGNORECASE,
    )
    _INLINE_SECRET_RE = re.compile(r"(?i)\b(api[_-]?key|token|secret|password)\b\s*[:=]\s*([^\s,;]+)")

    def __init__(
        self,
        log_path: Path,
        level: Literal["minimal", "standard", "verbose"] = "standard",
    ):
        self.log_path = Path(log_path).expanduser()
        self.level = level
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

    def _write(self, entry: dict[str, Any]) -> None:
        entry["ts"] = time.time()
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(json.dumps(entry, ensure_ascii=False, default=str) + "\n")
        except OSError as e:
            logger.warning(f"Audit write failed: {e}")

    @classmethod
    def _sanitize(cls, value: Any, max_len: int = 300) -> Any:
        if isinstance(value, dict):
            return {
                str(k): "<redacted:sensitive>" if cls._SENSITIVE_KEY_RE.search(str(k)) else cls._sanitize(v, max_len)
                for k, v in value.items()
            }
        if isinstance(value, list):
            return [cls._sanitize(v, max_len) for v in value]
        if isinstance(value, str):
            value = cls._INLINE_SECRET_RE.sub(lambda m: f"{m.group(1)}=<redacted:sensitive>", value)
            if len(value) > max_len:
                return value[:max_len] + f"... (truncated, {len(value) - max_len} more chars)"
            return value
        return value

    def log_command(
        self,
        command: str,
        decision: Decision,
        channel: str,
        chat_type: str,
        sender: str | None = None,
        args: str | None = None,
    ) -> None:
        """Log how a slash command was resolved."""
        entry: dict[str, Any] = {
            "type": "command",
            "command": command,
            "decision": decision,
            "channel": channel,
            "chat_type": chat_type,
        }
        if self.level in ("standard", "verbose") and sender:
            entry["sender"] = sender
        if self.level == "verbose" and args:
            entry["args"] = self._sanitize(args)
        self._write(entry)

    def log_message(
        self,
        direction: Literal["inbound", "outbound"],
        channel: str,
        length: int,
        sender: str | None = None,
    ) -> None:
        """Log a message event."""
        entry: dict[str, Any] = {
            "type": "message",
            "dir": direction,
            "channel": channel,
            "len": length,
        }
        if self.level in ("standard", "verbose") and sender:
            entry["sender"] = sender
        self._write(entry)

    def log_event(self, event: str, data: dict[str, Any] | None = None) -> None:
        """Log a generic event."""
        entry: dict[str, Any] = {"type": "event", "event": event}
        if data:
            entry["data"] = self._sanitize(data)
        self._write(entry)
