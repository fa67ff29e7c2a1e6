import json

from switchclaw.agent.context import (
    ACTIVATION_ALWAYS,
    ACTIVATION_MENTION,
    GroupContextBuilder,
    normalize_members,
    resolve_activation,
)
from switchclaw.bus.events import IncomingMessage
from switchclaw.config.schema import ChannelConfig, GroupConfig
from switchclaw.session.store import SessionEntry


def _group_message(**overrides) -> IncomingMessage:
    fields = {
        "body": "hello group",
        "from_": "123@g.us",
        "chat_type": "group",
        "sender_e164": "+2000",
        "group_subject": "Test Group",
        "group_members": "Alice (+1), Bob (+2)",
    }
    fields.update(overrides)
    return IncomingMessage(**fields)


def test_wildcard_channel_without_mention_requirement_is_always_on() -> None:
    assert resolve_activation(ChannelConfig(allow_from=["*"]), "123@g.us") == ACTIVATION_ALWAYS


def test_restricted_channel_requires_mention() -> None:
    assert resolve_activation(ChannelConfig(allow_from=["+1000"]), "123@g.us") == ACTIVATION_MENTION


def test_group_require_mention_setting_applies() -> None:
    channel = ChannelConfig(allow_from=["*"], groups={"*": GroupConfig(require_mention=True)})
    assert resolve_activation(channel, "123@g.us") == ACTIVATION_MENTION

    channel.groups["123@g.us"] = GroupConfig(require_mention=False)
    assert resolve_activation(channel, "123@g.us") == ACTIVATION_ALWAYS


def test_session_override_wins() -> None:
    channel = ChannelConfig(allow_from=["+1000"])
    assert resolve_activation(channel, "123@g.us", SessionEntry(group_activation="always")) == ACTIVATION_ALWAYS
    assert resolve_activation(ChannelConfig(allow_from=["*"]), "g", SessionEntry(group_activation="mention")) == (
        ACTIVATION_MENTION
    )


def test_normalize_members() -> None:
    assert normalize_members(None) == []
    assert normalize_members(" Alice  (+1), Bob (+2),, Alice (+1) ") == ["Alice (+1)", "Bob (+2)"]


def test_build_returns_none_for_direct_chats() -> None:
    builder = GroupContextBuilder(ChannelConfig(allow_from=["*"]), "whatsapp")
    assert builder.build(IncomingMessage(body="hi", from_="+1000")) is None


def test_build_includes_metadata_block_and_lines() -> None:
    builder = GroupContextBuilder(ChannelConfig(allow_from=["*"]), "whatsapp")
    prompt = builder.build(_group_message())

    assert prompt is not None
    assert prompt.startswith("## Group Chat")
    assert "Activation: always-on" in prompt
    assert "Group subject: Test Group" in prompt
    assert "Group members: Alice (+1), Bob (+2)" in prompt

    block = prompt.split("```json\n", 1)[1].split("\n```", 1)[0]
    meta = json.loads(block)
    assert meta["chat_type"] == "group"
    assert meta["group_id"] == "123@g.us"
    assert meta["members"] == ["Alice (+1)", "Bob (+2)"]


def test_subject_falls_back_to_session_entry() -> None:
    builder = GroupContextBuilder(ChannelConfig(allow_from=["+1"]), "whatsapp")
    prompt = builder.build(_group_message(group_subject=None, group_members=None), SessionEntry(subject="Stored"))

    assert prompt is not None
    assert "Group subject: Stored" in prompt
    assert "Group members:" not in prompt
    assert "Activation: mention-required" in prompt
