"""
ToolRegistry — name-keyed collection of tools available to an agent.

Populated once at startup and read-only afterwards, so one registry can be
shared by concurrent runs without locking.
"""

import logging
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from agentforge.exceptions import ToolNotFoundError
from agentforge.models import ToolDefinition
from agentforge.tools.base import Tool

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Manages registration, lookup and dispatch of tools."""

    def __init__(self, tools: Optional[Iterable[Tool]] = None):
        self._tools: dict[str, Tool] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: Tool):
        """Register a tool by its name. Last registration wins."""
        name = tool.name()
        if name in self._tools:
            logger.debug("Tool %s re-registered; replacing previous entry", name)
        self._tools[name] = tool

    def get(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def _require(self, name: str) -> Tool:
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool

    def check_tool_callback(self, name: str) -> bool:
        """Whether the tool's result should be sent back to the model."""
        return self._require(name).tool_callback()

    async def execute(self, name: str, args: Any) -> str:
        return await self._require(name).execute(args)

    def get_tool_definitions(self) -> list[ToolDefinition]:
        """Schema form of every tool; malformed definitions are left out."""
        definitions = []
        for name, tool in self._tools.items():
            try:
                definitions.append(ToolDefinition.model_validate(tool.description()))
            except ValidationError as e:
                logger.warning("Skipping tool %s: invalid definition (%d errors)",
                               name, e.error_count())
        return definitions
