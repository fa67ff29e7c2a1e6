"""Slash command parsing and dispatch."""

from switchclaw.commands.dispatcher import CommandDispatcher, CommandResult
from switchclaw.commands.parser import ParsedCommand, classify
from switchclaw.commands.registry import COMMANDS, CommandSpec, find_command

__all__ = [
    "COMMANDS",
    "CommandDispatcher",
    "CommandResult",
    "CommandSpec",
    "ParsedCommand",
    "classify",
    "find_command",
]
