"""
Shared fixtures for the agentforge test suite.
"""

import json

import pytest

from agentforge.agents import AgentBuilder
from agentforge.inference.base import InferenceBackend
from agentforge.inference.streaming import StreamChunk
from agentforge.models import FunctionCall, Message, ToolCall
from agentforge.tools import FunctionTool, ToolRegistry


class ScriptedBackend(InferenceBackend):
    """In-memory backend that replays canned assistant messages.

    Every request is recorded so tests can inspect exactly what the loop sent.
    """

    def __init__(self, replies=None, stream_fragments=None):
        super().__init__("http://scripted.test/v1")
        self.replies = list(replies or [])
        self.stream_fragments = list(stream_fragments or [])
        self.requests = []
        self.stream_requests = []

    async def send_once(self, request):
        self.requests.append(request)
        if not self.replies:
            raise AssertionError("ScriptedBackend ran out of replies")
        return self.replies.pop(0)

    async def send_stream(self, request):
        self.stream_requests.append(request)
        fragments = list(self.stream_fragments)

        async def _gen():
            for text in fragments:
                yield StreamChunk(content=text)
        return _gen()


def make_tool_call(name: str, arguments, call_id: str = "call_1") -> ToolCall:
    if not isinstance(arguments, str):
        arguments = json.dumps(arguments)
    return ToolCall(id=call_id, function=FunctionCall(name=name, arguments=arguments))


def tool_reply(*calls: ToolCall, text: str = "") -> Message:
    return Message.assistant(text, tool_calls=list(calls))


@pytest.fixture
def scripted_backend():
    """Factory for ScriptedBackend instances."""
    return ScriptedBackend


@pytest.fixture
def tool_call():
    """Factory for ToolCall objects; dict arguments are JSON-encoded."""
    return make_tool_call


@pytest.fixture
def tool_reply_message():
    """Factory for assistant messages carrying tool calls."""
    return tool_reply


@pytest.fixture
def echo_calls():
    """Records every invocation of the echo tool."""
    return []


@pytest.fixture
def registry(echo_calls):
    """Registry with 'echo' (callback) and 'finish' (no callback)."""

    def echo(msg: str) -> str:
        """Echo the message back."""
        echo_calls.append(msg)
        return msg

    def finish(answer: str) -> str:
        """Return the final answer directly to the user."""
        return f"FINAL: {answer}"

    reg = ToolRegistry()
    reg.register(FunctionTool(echo))
    reg.register(FunctionTool(finish, callback=False))
    return reg


@pytest.fixture
def agent(registry):
    return (AgentBuilder()
            .model("test-model")
            .url("http://scripted.test/v1")
            .system_prompt("You are a test agent.")
            .tool_registry(registry)
            .build())


@pytest.fixture
def bare_agent():
    """Agent without a tool registry."""
    return AgentBuilder().model("test-model").system_prompt("You are a test agent.").build()
