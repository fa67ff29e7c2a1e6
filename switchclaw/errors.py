"""Error types raised by the router."""


class SwitchclawError(Exception):
    """Base class for switchclaw errors."""


class MalformedCommandArgument(SwitchclawError):
    """A command argument is outside the accepted vocabulary."""

    def __init__(self, command: str, value: str, usage: str):
        super().__init__(f"Invalid argument {value!r} for {command}")
        self.command = command
        self.value = value
        self.usage = usage


class AgentInvocationError(SwitchclawError):
    """The agent runner failed while producing a reply."""
