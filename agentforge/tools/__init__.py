"""
The capability interface and the registry that dispatches to it.
"""

from agentforge.tools.base import FunctionTool, Tool, build_function_schema
from agentforge.tools.registry import ToolRegistry

__all__ = [
    "Tool",
    "FunctionTool",
    "ToolRegistry",
    "build_function_schema",
]
