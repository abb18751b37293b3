"""
AgentCore — the tool-calling orchestration loop.

Entry points:
  - prompt / prompt_stream: one completion, system prompt prepended
  - prompt_with_tools: resolve tool calls until a final answer
  - prompt_with_tools_stream: same loop, final answer as a stream
  - run_tool_loop: the shared engine, returning history and how it ended

Loop per round:
  1. Query the model (non-streaming) with the current history
  2. No tool calls → done
  3. Record the assistant turn, then run each call in the order given
  4. A tool with callback disabled ends the run with its own result
  5. Otherwise tool results are appended and the next round starts

The caller's history list is never modified; the loop works on a copy.
"""

import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Optional

from agentforge.agents.base import Agent
from agentforge.config import MAX_TOOL_ROUNDS
from agentforge.core.observer import LoggingToolObserver, ToolObserver
from agentforge.exceptions import ConfigurationError, IterationLimitError, ToolArgumentsError
from agentforge.inference.base import InferenceBackend
from agentforge.inference.openai_compat import OpenAICompatBackend
from agentforge.inference.streaming import StreamChunk, single_chunk
from agentforge.models import CompletionRequest, Message, ToolCall

logger = logging.getLogger(__name__)


class Termination(Enum):
    NO_TOOL_CALLS = "no_tool_calls"
    SHORT_CIRCUIT = "short_circuit"
    BATCH_DRAINED = "batch_drained"


@dataclass
class ToolLoopResult:
    termination: Termination
    text: str
    history: list[Message]  # without the system message
    rounds: int


def _default_backend(agent: Agent) -> InferenceBackend:
    return OpenAICompatBackend(agent.url, agent.api_key)


def build_request(agent: Agent, history: list[Message], stream: bool) -> CompletionRequest:
    """Request for ``history`` with the agent's system prompt in front.

    The system message is added on every call, even when ``history`` already
    starts with one; callers keep system messages out of stored history.
    """
    messages = [Message.system(agent.system_prompt), *history]
    tools = None
    if agent.tool_registry is not None:
        tools = agent.tool_registry.get_tool_definitions()
    return CompletionRequest(
        model=agent.model,
        messages=messages,
        tools=tools,
        temperature=agent.temperature,
        top_p=agent.top_p,
        stream=stream,
    )


async def prompt(agent: Agent, history: list[Message], *,
                 backend: Optional[InferenceBackend] = None) -> tuple[str, Optional[list[ToolCall]]]:
    """Single non-streaming completion.

    Returns:
        (assistant text, tool calls or None)
    """
    backend = backend or _default_backend(agent)
    message = await backend.send_once(build_request(agent, history, stream=False))
    return message.text, message.tool_calls


async def prompt_stream(agent: Agent, history: list[Message], *,
                        backend: Optional[InferenceBackend] = None) -> AsyncIterator[StreamChunk]:
    """Single streaming completion; returns the live fragment stream."""
    backend = backend or _default_backend(agent)
    return await backend.send_stream(build_request(agent, history, stream=True))


def _parse_arguments(call: ToolCall) -> Any:
    try:
        return json.loads(call.function.arguments)
    except json.JSONDecodeError as e:
        raise ToolArgumentsError(call.function.name, call.function.arguments, str(e)) from e


async def run_tool_loop(agent: Agent, history: list[Message], *,
                        backend: Optional[InferenceBackend] = None,
                        observer: Optional[ToolObserver] = None,
                        max_iterations: int = MAX_TOOL_ROUNDS) -> ToolLoopResult:
    """Resolve tool calls until the model produces a final answer.

    Raises:
        ConfigurationError: the agent has no tool registry.
        ToolNotFoundError / ToolArgumentsError: a call names an unknown tool
            or carries malformed JSON arguments; the whole run aborts.
        IterationLimitError: ``max_iterations`` rounds without a final answer.
    """
    registry = agent.tool_registry
    if registry is None:
        raise ConfigurationError("No tool registry")
    backend = backend or _default_backend(agent)
    observer = observer or LoggingToolObserver()
    history = list(history)

    for round_num in range(1, max_iterations + 1):
        text, tool_calls = await prompt(agent, history, backend=backend)

        if tool_calls is None:
            logger.info("Final answer after %d round(s)", round_num)
            return ToolLoopResult(Termination.NO_TOOL_CALLS, text, history, round_num)

        logger.info("Round %d: %d tool call(s)", round_num, len(tool_calls))
        # The model's own turn goes first so the tool results have context.
        history.append(Message.assistant(text, tool_calls=tool_calls))

        should_loop = False
        for call in tool_calls:
            name = call.function.name
            callback = registry.check_tool_callback(name)
            args = _parse_arguments(call)

            observer.on_tool_call(call, args)
            result = await registry.execute(name, args)
            observer.on_tool_result(call, result, callback)

            if not callback:
                logger.info("Tool %s returns directly; ending run", name)
                return ToolLoopResult(Termination.SHORT_CIRCUIT, result, history, round_num)

            history.append(Message.tool(result, tool_call_id=call.id, name=name))
            should_loop = True

        if not should_loop:
            # Tool calls were present but none asked for a callback.
            return ToolLoopResult(Termination.BATCH_DRAINED, text, history, round_num)

    logger.warning("Tool loop hit the %d round limit", max_iterations)
    raise IterationLimitError(max_iterations)


async def prompt_with_tools(agent: Agent, history: list[Message], *,
                            backend: Optional[InferenceBackend] = None,
                            observer: Optional[ToolObserver] = None,
                            max_iterations: int = MAX_TOOL_ROUNDS) -> str:
    """Run the tool loop and return only the final text."""
    result = await run_tool_loop(agent, history, backend=backend,
                                 observer=observer, max_iterations=max_iterations)
    return result.text


async def prompt_with_tools_stream(agent: Agent, history: list[Message], *,
                                   backend: Optional[InferenceBackend] = None,
                                   observer: Optional[ToolObserver] = None,
                                   max_iterations: int = MAX_TOOL_ROUNDS) -> AsyncIterator[StreamChunk]:
    """Run the tool loop silently, then stream the final answer.

    When the model stops calling tools, the final answer is requested again
    as a stream (a second network call). Tool results that end the run, and
    the drained-batch fallback, are wrapped as one-item streams.
    """
    backend = backend or _default_backend(agent)
    result = await run_tool_loop(agent, history, backend=backend,
                                 observer=observer, max_iterations=max_iterations)
    if result.termination is Termination.NO_TOOL_CALLS:
        return await prompt_stream(agent, result.history, backend=backend)
    return single_chunk(result.text)
