"""
Tool observers — hooks the orchestration loop calls around every tool call.

Keeps reporting out of tool implementations: a CLI can render progress, a
test can record calls, and the default simply logs.
"""

import logging
from typing import Any

from agentforge.models import ToolCall

logger = logging.getLogger(__name__)

_RESULT_PREVIEW_CHARS = 500


class ToolObserver:
    """Base observer; every hook is a no-op."""

    def on_tool_call(self, call: ToolCall, args: Any) -> None:
        pass

    def on_tool_result(self, call: ToolCall, result: str, callback: bool) -> None:
        pass


class LoggingToolObserver(ToolObserver):

    def on_tool_call(self, call: ToolCall, args: Any) -> None:
        logger.info("Tool call: %s(%s)", call.function.name, args)

    def on_tool_result(self, call: ToolCall, result: str, callback: bool) -> None:
        preview = result
        if len(preview) > _RESULT_PREVIEW_CHARS:
            preview = preview[:_RESULT_PREVIEW_CHARS] + f"... [{len(result)} chars]"
        logger.debug("Tool %s returned (callback=%s): %s",
                     call.function.name, callback, preview)
