import json

import pytest
from pydantic import ValidationError

from switchclaw.config.loader import _migrate_config, load_config, merge_config, save_config
from switchclaw.config.schema import ChannelConfig, Config


def test_defaults() -> None:
    cfg = Config()
    assert cfg.channels.default_provider == "whatsapp"
    assert cfg.channels.whatsapp.allow_from == []
    assert cfg.session.main_key == "main"
    assert cfg.store_path.name == "sessions.json"
    assert cfg.audit.enabled is False


def test_load_config_converts_camel_case_and_keeps_group_keys(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "channels": {
                    "whatsapp": {
                        "allowFrom": ["+1000"],
                        "ownerFrom": ["+1000"],
                        "groups": {"123@g.us": {"requireMention": True}, "*": {"requireMention": False}},
                    }
                },
                "session": {"store": str(tmp_path / "s.json"), "mainKey": "owner"},
            }
        )
    )

    cfg = load_config(path)

    whatsapp = cfg.channels.whatsapp
    assert whatsapp.allow_from == ["+1000"]
    assert whatsapp.owner_from == ["+1000"]
    assert whatsapp.groups["123@g.us"].require_mention is True
    assert whatsapp.group_settings("999@g.us").require_mention is False
    assert cfg.session.main_key == "owner"


def test_migration_splits_legacy_allow_from_and_moves_session_store() -> None:
    migrated = _migrate_config(
        {
            "sessionStore": "/tmp/legacy.json",
            "channels": {"sms": {"allowFrom": "+1000, +1001"}},
        }
    )
    assert migrated["session"]["store"] == "/tmp/legacy.json"
    assert migrated["channels"]["sms"]["allowFrom"] == ["+1000", "+1001"]
    assert migrated["channels"]["sms"]["groups"] == {}


def test_invalid_config_file_falls_back_to_defaults(tmp_path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{broken")
    assert load_config(path).channels.whatsapp.allow_from == []


def test_save_and_reload_round_trip(tmp_path) -> None:
    path = tmp_path / "config.json"
    cfg = Config.model_validate({"channels": {"telegram": {"allow_from": ["42"], "groups": {"-100Ab": {}}}}})
    save_config(cfg, path)

    raw = json.loads(path.read_text())
    assert raw["channels"]["telegram"]["allowFrom"] == ["42"]
    assert "-100Ab" in raw["channels"]["telegram"]["groups"]
    assert load_config(path).channels.telegram.groups["-100Ab"].require_mention is None


def test_merge_config_deep_merges_and_validates() -> None:
    base = Config.model_validate({"channels": {"whatsapp": {"allow_from": ["*"]}}})
    merged = merge_config(base, {"channels": {"whatsapp": {"groups": {"*": {"require_mention": True}}}}})

    assert merged.channels.whatsapp.allow_from == ["*"]
    assert merged.channels.whatsapp.groups["*"].require_mention is True

    with pytest.raises(ValidationError):
        merge_config(base, {"session": {"main_key": "  "}})


def test_for_provider_resolution() -> None:
    cfg = Config.model_validate({"channels": {"sms": {"allow_from": ["+1"]}}})
    assert cfg.channels.for_provider("SMS").allow_from == ["+1"]
    assert cfg.channels.for_provider(None) is cfg.channels.whatsapp
    assert cfg.channels.for_provider("carrier-pigeon") == ChannelConfig()
