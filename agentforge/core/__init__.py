"""
Re-exports the orchestration loop.
"""

from agentforge.core.agent_core import (
    Termination,
    ToolLoopResult,
    build_request,
    prompt,
    prompt_stream,
    prompt_with_tools,
    prompt_with_tools_stream,
    run_tool_loop,
)
from agentforge.core.observer import LoggingToolObserver, ToolObserver

__all__ = [
    "prompt",
    "prompt_stream",
    "prompt_with_tools",
    "prompt_with_tools_stream",
    "run_tool_loop",
    "build_request",
    "Termination",
    "ToolLoopResult",
    "ToolObserver",
    "LoggingToolObserver",
]
