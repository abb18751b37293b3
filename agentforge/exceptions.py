"""
Exception taxonomy for the orchestration core.

Every error raised here aborts the current run. Failures *inside* a tool are
not exceptions: tools report them as ordinary result strings.
"""

from typing import Optional


class ForgeError(Exception):
    """Base class for all agentforge errors."""


class ConfigurationError(ForgeError):
    """Agent or profile configuration is missing or invalid."""


class TransportError(ForgeError):
    """The completion request could not be delivered or was rejected."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 body: str = ""):
        self.status_code = status_code
        self.body = body
        super().__init__(message)


class ProtocolError(ForgeError):
    """The server answered, but not in the chat-completion shape."""


class CapabilityError(ForgeError):
    """A tool call could not be dispatched."""


class ToolNotFoundError(CapabilityError):
    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found")


class ToolArgumentsError(CapabilityError):
    def __init__(self, tool_name: str, arguments: str, reason: str = ""):
        self.tool_name = tool_name
        self.arguments = arguments
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invalid arguments for tool '{tool_name}'{detail}")


class IterationLimitError(ForgeError):
    """The tool loop ran out of rounds without a final answer."""

    def __init__(self, max_iterations: int):
        self.max_iterations = max_iterations
        super().__init__(f"Max iterations ({max_iterations}) reached")
