"""
agentforge — tool-calling agent loop over OpenAI-compatible chat completions.
"""

__version__ = "0.1.0"

from agentforge.agents import Agent, AgentBuilder
from agentforge.core import (
    prompt,
    prompt_stream,
    prompt_with_tools,
    prompt_with_tools_stream,
    run_tool_loop,
)
from agentforge.exceptions import (
    CapabilityError,
    ConfigurationError,
    ForgeError,
    IterationLimitError,
    ProtocolError,
    ToolArgumentsError,
    ToolNotFoundError,
    TransportError,
)
from agentforge.inference import OpenAICompatBackend, StreamChunk, collect_stream
from agentforge.models import Message, Role, ToolCall
from agentforge.tools import FunctionTool, Tool, ToolRegistry

__all__ = [
    "Agent",
    "AgentBuilder",
    "Message",
    "Role",
    "ToolCall",
    "Tool",
    "FunctionTool",
    "ToolRegistry",
    "OpenAICompatBackend",
    "StreamChunk",
    "collect_stream",
    "prompt",
    "prompt_stream",
    "prompt_with_tools",
    "prompt_with_tools_stream",
    "run_tool_loop",
    "ForgeError",
    "ConfigurationError",
    "TransportError",
    "ProtocolError",
    "CapabilityError",
    "ToolNotFoundError",
    "ToolArgumentsError",
    "IterationLimitError",
    "__version__",
]
