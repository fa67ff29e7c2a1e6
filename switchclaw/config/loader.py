"""Configuration loading utilities for switchclaw."""

import json
from pathlib import Path
from typing import Any

from loguru import logger

from switchclaw.config.schema import Config

# Keys whose children are user data (group addresses), not field names.
_VERBATIM_CHILDREN = {"groups"}


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return Path.home() / ".switchclaw" / "config.json"


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()

    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
            data = _migrate_config(data)
            return Config.model_validate(convert_keys(data))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}; using default configuration")

    return Config()


def save_config(config: Config, config_path: Path | None = None) -> None:
    """
    Save configuration to file.

    Args:
        config: Configuration to save.
        config_path: Optional path to save to. Uses default if not provided.
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def merge_config(base: Config, overrides: dict[str, Any]) -> Config:
    """Deep-merge snake_case overrides into a config and re-validate the result."""
    merged = _deep_merge(base.model_dump(), overrides)
    return Config.model_validate(merged)


def _deep_merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    out = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(out.get(key), dict):
            out[key] = _deep_merge(out[key], value)
        else:
            out[key] = value
    return out


def _migrate_config(data: dict) -> dict:
    """Migrate old config formats to current."""
    if not isinstance(data, dict):
        return {}

    # Move top-level sessionStore → session.store
    legacy_store = data.pop("sessionStore", None)
    session = data.setdefault("session", {})
    if not isinstance(session, dict):
        session = {}
        data["session"] = session
    if legacy_store and "store" not in session:
        session["store"] = legacy_store

    channels = data.setdefault("channels", {})
    if isinstance(channels, dict):
        for name in ("whatsapp", "telegram", "sms"):
            channel = channels.get(name)
            if not isinstance(channel, dict):
                continue
            # Older configs listed senders as one comma-separated string.
            allow_from = channel.get("allowFrom")
            if isinstance(allow_from, str):
                channel["allowFrom"] = [p.strip() for p in allow_from.split(",") if p.strip()]
            channel.setdefault("groups", {})

    return data


def convert_keys(data: Any, *, verbatim: bool = False) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        out = {}
        for k, v in data.items():
            key = k if verbatim else camel_to_snake(k)
            if verbatim:
                # Group address keys map to settings objects whose own keys do convert.
                out[key] = convert_keys(v)
            else:
                out[key] = convert_keys(v, verbatim=key in _VERBATIM_CHILDREN)
        return out
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any, *, verbatim: bool = False) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        out = {}
        for k, v in data.items():
            if verbatim:
                out[k] = convert_to_camel(v)
            else:
                out[snake_to_camel(k)] = convert_to_camel(v, verbatim=k in _VERBATIM_CHILDREN)
        return out
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
