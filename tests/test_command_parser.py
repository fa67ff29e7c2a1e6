import pytest

from switchclaw.commands.parser import classify, normalize_token
from switchclaw.commands.registry import COMMANDS, find_command, inline_tokens


def test_bare_command_is_top_level() -> None:
    parsed = classify("  /help  ")
    assert parsed.kind == "top_level"
    assert parsed.name == "/help"
    assert parsed.args == ""


def test_word_argument_is_captured() -> None:
    parsed = classify("/send off")
    assert parsed.kind == "top_level"
    assert parsed.name == "/send"
    assert parsed.args == "off"


def test_colon_and_bot_suffix_forms() -> None:
    assert classify("/send:off").args == "off"
    parsed = classify("/Status@switch_bot")
    assert parsed.kind == "top_level"
    assert parsed.name == "/status"
    assert normalize_token("/Send:OFF") == ("/send", "OFF")


def test_reset_accepts_trailing_text() -> None:
    parsed = classify("/reset tell me a joke")
    assert parsed.kind == "top_level"
    assert parsed.args == "tell me a joke"
    assert parsed.stripped_body == "tell me a joke"


def test_inline_command_is_stripped_and_whitespace_collapsed() -> None:
    parsed = classify("please   /help   now")
    assert parsed.kind == "inline"
    assert parsed.name == "/help"
    assert parsed.stripped_body == "please now"


def test_command_with_unexpected_argument_falls_back_to_inline() -> None:
    parsed = classify("/help me")
    assert parsed.kind == "inline"
    assert parsed.stripped_body == "me"


def test_inline_alias_and_punctuation() -> None:
    parsed = classify("who am I? /id.")
    assert parsed.kind == "inline"
    assert parsed.name == "/whoami"
    assert parsed.stripped_body == "who am I? ."


@pytest.mark.parametrize(
    ("body", "stripped"),
    [
        ("check /status: now", "check now"),
        ("check /status:", "check"),
        ("ping /help@switch_bot: thanks", "ping thanks"),
    ],
)
def test_inline_trailing_colon_is_part_of_the_token(body, stripped) -> None:
    parsed = classify(body)
    assert parsed.kind == "inline"
    assert parsed.stripped_body == stripped


@pytest.mark.parametrize(
    "body",
    [
        "please /reset now",
        "/send off please",
        "turn /activation mention on",
        "see /statusbar for details",
        "path/to/help is a file",
        "/frobnicate",
    ],
)
def test_non_commands_are_plain_text(body) -> None:
    parsed = classify(body)
    assert parsed.kind == "none"
    assert parsed.command is None
    assert parsed.stripped_body == body


def test_empty_body() -> None:
    parsed = classify(None)
    assert parsed.kind == "none"
    assert parsed.stripped_body == ""


@pytest.mark.parametrize("body", ["/help", "please /status now", "hello", "/send on"])
def test_classification_is_idempotent(body) -> None:
    assert classify(body) == classify(body)


def test_only_read_only_commands_are_inline() -> None:
    inline = {find_command(token).name for token in inline_tokens()}
    assert inline == {"/help", "/commands", "/whoami", "/status"}
    mutating = {spec.name for spec in COMMANDS if spec.name in {"/reset", "/new", "/send", "/activation"}}
    assert all(not find_command(name).inline_allowed for name in mutating)
