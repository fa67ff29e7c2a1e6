import pytest

from switchclaw.auth.evaluator import AuthorizationEvaluator, normalize_address, sender_identity
from switchclaw.bus.events import IncomingMessage
from switchclaw.config.schema import ChannelConfig


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("+1 (555) 010-2000", "+15550102000"),
        ("whatsapp:+1000", "+1000"),
        ("15550102000@s.whatsapp.net", "15550102000"),
        ("12345|alice", "12345"),
        ("*", "*"),
        ("  ", ""),
        ("alice", "alice"),
    ],
)
def test_normalize_address(raw, expected) -> None:
    assert normalize_address(raw, "whatsapp") == expected


def test_command_authorized_flag_wins() -> None:
    evaluator = AuthorizationEvaluator(ChannelConfig(allow_from=["+1000"]), "whatsapp")
    auth = evaluator.evaluate(IncomingMessage(body="/status", from_="+2001", command_authorized=True))
    assert auth.authorized is True
    assert auth.is_owner is False


def test_allow_from_match_and_miss() -> None:
    evaluator = AuthorizationEvaluator(ChannelConfig(allow_from=["+1 000"]), "whatsapp")
    assert evaluator.evaluate(IncomingMessage(body="x", from_="+1000")).authorized is True
    assert evaluator.evaluate(IncomingMessage(body="x", from_="+2001")).authorized is False


def test_wildcard_allows_everyone_and_everyone_is_owner_without_concrete_entries() -> None:
    evaluator = AuthorizationEvaluator(ChannelConfig(allow_from=["*"]), "whatsapp")
    auth = evaluator.evaluate(IncomingMessage(body="x", from_="+3000"))
    assert auth.authorized is True
    assert auth.is_owner is True


def test_first_concrete_allow_from_entry_is_owner() -> None:
    evaluator = AuthorizationEvaluator(ChannelConfig(allow_from=["*", "+1000", "+1001"]), "whatsapp")
    assert evaluator.evaluate(IncomingMessage(body="x", from_="+1000")).is_owner is True
    assert evaluator.evaluate(IncomingMessage(body="x", from_="+1001")).is_owner is False


def test_explicit_owner_marker_overrides_allow_from_order() -> None:
    channel = ChannelConfig(allow_from=["+1000", "+1001"], owner_from=["+1001"])
    evaluator = AuthorizationEvaluator(channel, "whatsapp")
    assert evaluator.evaluate(IncomingMessage(body="x", from_="+1001")).is_owner is True
    assert evaluator.evaluate(IncomingMessage(body="x", from_="+1000")).is_owner is False


def test_unauthorized_sender_is_never_owner() -> None:
    evaluator = AuthorizationEvaluator(ChannelConfig(owner_from=["+1000"]), "whatsapp")
    auth = evaluator.evaluate(IncomingMessage(body="x", from_="+1000"))
    assert auth.authorized is False
    assert auth.is_owner is False


def test_group_messages_use_the_human_sender() -> None:
    message = IncomingMessage(
        body="/status",
        from_="123@g.us",
        chat_type="group",
        sender_e164="+1000",
    )
    assert sender_identity(message) == "+1000"
    auth = AuthorizationEvaluator(ChannelConfig(allow_from=["+1000"]), "whatsapp").evaluate(message)
    assert auth.authorized is True
    assert auth.chat_type == "group"


def test_group_without_sender_identity_is_not_authorized() -> None:
    message = IncomingMessage(body="/status", from_="+1000", chat_type="group")
    auth = AuthorizationEvaluator(ChannelConfig(allow_from=["+1000"]), "whatsapp").evaluate(message)
    assert auth.sender == ""
    assert auth.authorized is False
