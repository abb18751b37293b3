"""
The contract every tool the model may call must meet.

A tool reports its own name, its wire-form definition, and whether its result
should be fed back to the model for another turn (``tool_callback``). Tools
encode their own failures as result strings; ``execute`` should only raise
for programming errors.
"""

import asyncio
import inspect
import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_JSON_TYPES = {int: "integer", float: "number", bool: "boolean"}


class Tool(ABC):
    """Abstract capability the orchestration loop can dispatch to."""

    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def description(self) -> dict:
        """Wire-form definition: {"type": "function", "function": {...}}."""
        ...

    @abstractmethod
    def tool_callback(self) -> bool:
        """True if the result goes back to the model; False ends the run with it."""
        ...

    @abstractmethod
    async def execute(self, args: Any) -> str:
        ...


def build_function_schema(fn: Callable, name: Optional[str] = None,
                          description: Optional[str] = None) -> dict:
    """Convert a Python function to an OpenAI-compatible tool definition."""
    sig = inspect.signature(fn)
    hints = getattr(fn, "__annotations__", {})
    params = {}
    required = []
    for pname, param in sig.parameters.items():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        ptype = _JSON_TYPES.get(hints.get(pname), "string")
        params[pname] = {"type": ptype, "description": f"The {pname} parameter"}
        if param.default is inspect.Parameter.empty:
            required.append(pname)

    if description is None:
        doc = inspect.getdoc(fn) or ""
        description = doc.split("\n\n")[0].strip()

    return {
        "type": "function",
        "function": {
            "name": name or fn.__name__,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": params,
                "required": required,
            },
        },
    }


class FunctionTool(Tool):
    """Adapts a plain sync or async function to the Tool interface.

    Exceptions from the wrapped function become "Error executing ..." result
    strings so the model can read about the failure and react.
    """

    def __init__(self, fn: Callable, callback: bool = True,
                 name: Optional[str] = None, description: Optional[str] = None):
        self._fn = fn
        self._callback = callback
        self._name = name or fn.__name__
        self._definition = build_function_schema(fn, self._name, description)

    def name(self) -> str:
        return self._name

    def description(self) -> dict:
        return self._definition

    def tool_callback(self) -> bool:
        return self._callback

    async def execute(self, args: Any) -> str:
        if args is None:
            args = {}
        if not isinstance(args, dict):
            return f"Error executing {self._name}: arguments must be a JSON object"
        try:
            result = self._fn(**args)
            if asyncio.iscoroutine(result):
                result = await result
        except Exception as e:
            logger.debug("Tool %s raised: %s", self._name, e)
            return f"Error executing {self._name}: {e}"
        return result if isinstance(result, str) else str(result)

    def __repr__(self) -> str:
        return f"FunctionTool({self._name!r}, callback={self._callback})"
