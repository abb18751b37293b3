"""
Tests for the tool-calling orchestration loop.

All model traffic goes through ScriptedBackend (see conftest.py), which
replays canned assistant messages and records every request.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from agentforge.core import (
    Termination,
    ToolObserver,
    build_request,
    prompt,
    prompt_stream,
    prompt_with_tools,
    prompt_with_tools_stream,
    run_tool_loop,
)
from agentforge.core.agent_core import _default_backend
from agentforge.exceptions import (
    ConfigurationError,
    IterationLimitError,
    ToolArgumentsError,
    ToolNotFoundError,
)
from agentforge.inference import OpenAICompatBackend, collect_stream
from agentforge.models import Message, Role


def _dump(messages):
    return [m.model_dump(mode="json", exclude_none=True) for m in messages]


class TestPrompt:
    """Single completions."""

    def test_system_message_prepended(self, agent, scripted_backend):
        backend = scripted_backend([Message.assistant("hello")])
        text, calls = asyncio.run(prompt(agent, [Message.user("hi")], backend=backend))

        assert text == "hello"
        assert calls is None
        sent = backend.requests[0]
        assert sent.model == "test-model"
        assert sent.messages[0].role == Role.SYSTEM
        assert sent.messages[0].content == "You are a test agent."
        assert sent.messages[1].content == "hi"

    def test_system_message_duplicated_when_history_has_one(self, agent):
        """A system message already in history is not deduplicated."""
        history = [Message.system("earlier"), Message.user("hi")]
        request = build_request(agent, history, stream=False)

        roles = [m.role for m in request.messages]
        assert roles == [Role.SYSTEM, Role.SYSTEM, Role.USER]

    def test_request_carries_sampling_and_tools(self, agent):
        request = build_request(agent, [Message.user("hi")], stream=False)

        assert request.temperature == 0.7
        assert request.top_p == 0.9
        assert request.stream is False
        assert sorted(t.function.name for t in request.tools) == ["echo", "finish"]

    def test_no_registry_means_no_tools(self, bare_agent):
        request = build_request(bare_agent, [Message.user("hi")], stream=True)

        assert request.tools is None
        assert "tools" not in request.to_payload()

    def test_prompt_stream(self, agent, scripted_backend):
        backend = scripted_backend(stream_fragments=["Hel", "lo"])

        async def run():
            stream = await prompt_stream(agent, [Message.user("hi")], backend=backend)
            return await collect_stream(stream)

        assert asyncio.run(run()) == "Hello"
        assert backend.stream_requests[0].stream is True
        assert backend.requests == []

    def test_default_backend_uses_agent_settings(self, agent):
        backend = _default_backend(agent)

        assert isinstance(backend, OpenAICompatBackend)
        assert backend.completions_url == "http://scripted.test/v1/chat/completions"


class TestToolLoop:
    """prompt_with_tools and run_tool_loop."""

    def test_no_tool_calls_returns_text(self, agent, scripted_backend):
        """A plain answer ends the loop after exactly one query."""
        backend = scripted_backend([Message.assistant("42")])

        text = asyncio.run(prompt_with_tools(agent, [Message.user("q")], backend=backend))

        assert text == "42"
        assert len(backend.requests) == 1

    def test_echo_then_answer(self, agent, scripted_backend, tool_call, tool_reply_message,
                              echo_calls):
        """Tool results are fed back with the assistant turn that asked for them."""
        call = tool_call("echo", {"msg": "hi"}, call_id="call_7")
        backend = scripted_backend([tool_reply_message(call), Message.assistant("done")])

        result = asyncio.run(run_tool_loop(agent, [Message.user("hi")], backend=backend))

        assert result.termination is Termination.NO_TOOL_CALLS
        assert result.text == "done"
        assert result.rounds == 2
        assert echo_calls == ["hi"]

        second = _dump(backend.requests[1].messages)
        assert [m["role"] for m in second] == ["system", "user", "assistant", "tool"]
        assert second[2]["tool_calls"][0]["id"] == "call_7"
        assert second[3] == {
            "role": "tool",
            "content": "hi",
            "tool_call_id": "call_7",
            "name": "echo",
        }

    def test_short_circuit_tool_returns_result(self, agent, scripted_backend, tool_call,
                                               tool_reply_message, echo_calls):
        """A callback-disabled tool ends the run; later calls in the batch are skipped."""
        backend = scripted_backend([
            tool_reply_message(
                tool_call("finish", {"answer": "yes"}, call_id="a"),
                tool_call("echo", {"msg": "never"}, call_id="b"),
            ),
        ])

        result = asyncio.run(run_tool_loop(agent, [Message.user("q")], backend=backend))

        assert result.termination is Termination.SHORT_CIRCUIT
        assert result.text == "FINAL: yes"
        assert len(backend.requests) == 1
        assert echo_calls == []

    def test_calls_in_batch_run_in_order(self, agent, scripted_backend, tool_call,
                                         tool_reply_message, echo_calls):
        backend = scripted_backend([
            tool_reply_message(
                tool_call("echo", {"msg": "one"}, call_id="a"),
                tool_call("echo", {"msg": "two"}, call_id="b"),
                tool_call("finish", {"answer": "three"}, call_id="c"),
            ),
        ])

        text = asyncio.run(prompt_with_tools(agent, [Message.user("q")], backend=backend))

        assert text == "FINAL: three"
        assert echo_calls == ["one", "two"]

    def test_iteration_limit(self, agent, scripted_backend, tool_call, tool_reply_message):
        """Fifteen rounds of callbacks without an answer is an error, with no 16th query."""
        replies = [tool_reply_message(tool_call("echo", {"msg": str(i)})) for i in range(20)]
        backend = scripted_backend(replies)

        with pytest.raises(IterationLimitError) as exc:
            asyncio.run(prompt_with_tools(agent, [Message.user("q")], backend=backend))

        assert exc.value.max_iterations == 15
        assert len(backend.requests) == 15

    def test_custom_iteration_limit(self, agent, scripted_backend, tool_call, tool_reply_message):
        replies = [tool_reply_message(tool_call("echo", {"msg": "x"})) for _ in range(5)]
        backend = scripted_backend(replies)

        with pytest.raises(IterationLimitError):
            asyncio.run(run_tool_loop(agent, [Message.user("q")], backend=backend,
                                      max_iterations=3))
        assert len(backend.requests) == 3

    def test_unknown_tool_aborts(self, agent, scripted_backend, tool_call, tool_reply_message,
                                 echo_calls):
        """Earlier calls in the batch run; the unknown one ends the run before any result for it."""
        observer = MagicMock(spec=ToolObserver)
        unknown = tool_call("nonexistent", {}, call_id="b")
        backend = scripted_backend([
            tool_reply_message(tool_call("echo", {"msg": "first"}, call_id="a"), unknown),
            Message.assistant("never requested"),
        ])

        with pytest.raises(ToolNotFoundError) as exc:
            asyncio.run(prompt_with_tools(agent, [Message.user("q")], backend=backend,
                                          observer=observer))

        assert exc.value.tool_name == "nonexistent"
        assert echo_calls == ["first"]
        assert len(backend.requests) == 1
        assert len(backend.replies) == 1
        assert observer.on_tool_call.call_count == 1
        assert observer.on_tool_result.call_count == 1
        assert observer.on_tool_result.call_args.args[0].function.name == "echo"

    def test_malformed_arguments_abort(self, agent, scripted_backend, tool_call,
                                       tool_reply_message, echo_calls):
        backend = scripted_backend([tool_reply_message(tool_call("echo", "{not json"))])

        with pytest.raises(ToolArgumentsError) as exc:
            asyncio.run(prompt_with_tools(agent, [Message.user("q")], backend=backend))

        assert exc.value.tool_name == "echo"
        assert exc.value.arguments == "{not json"
        assert echo_calls == []

    def test_empty_tool_call_list_returns_text(self, agent, scripted_backend):
        """An explicit empty tool call list ends the run with the round's text."""
        backend = scripted_backend([Message.assistant("partial", tool_calls=[])])

        result = asyncio.run(run_tool_loop(agent, [Message.user("q")], backend=backend))

        assert result.termination is Termination.BATCH_DRAINED
        assert result.text == "partial"
        assert len(backend.requests) == 1

    def test_missing_registry(self, bare_agent, scripted_backend):
        backend = scripted_backend([Message.assistant("unused")])

        with pytest.raises(ConfigurationError, match="No tool registry"):
            asyncio.run(prompt_with_tools(bare_agent, [Message.user("q")], backend=backend))
        assert backend.requests == []

    def test_caller_history_untouched(self, agent, scripted_backend, tool_call,
                                      tool_reply_message):
        history = [Message.user("hi")]
        backend = scripted_backend([
            tool_reply_message(tool_call("echo", {"msg": "hi"})),
            Message.assistant("done"),
        ])

        result = asyncio.run(run_tool_loop(agent, history, backend=backend))

        assert len(history) == 1
        assert len(result.history) == 3
        assert all(m.role != Role.SYSTEM for m in result.history)

    def test_observer_sees_every_call(self, agent, scripted_backend, tool_call,
                                     tool_reply_message):
        observer = MagicMock(spec=ToolObserver)
        call = tool_call("echo", {"msg": "hi"})
        backend = scripted_backend([tool_reply_message(call), Message.assistant("done")])

        asyncio.run(run_tool_loop(agent, [Message.user("q")], backend=backend,
                                  observer=observer))

        observer.on_tool_call.assert_called_once_with(call, {"msg": "hi"})
        observer.on_tool_result.assert_called_once_with(call, "hi", True)


class TestToolLoopStream:
    """prompt_with_tools_stream."""

    def test_final_answer_is_streamed_again(self, agent, scripted_backend, tool_call,
                                            tool_reply_message):
        """After the loop, the answer is re-requested as a stream with the tool history."""
        backend = scripted_backend(
            [tool_reply_message(tool_call("echo", {"msg": "hi"})), Message.assistant("done")],
            stream_fragments=["do", "ne"],
        )

        async def run():
            stream = await prompt_with_tools_stream(agent, [Message.user("q")], backend=backend)
            return await collect_stream(stream)

        assert asyncio.run(run()) == "done"
        assert len(backend.requests) == 2
        assert len(backend.stream_requests) == 1
        streamed = backend.stream_requests[0]
        assert streamed.stream is True
        assert [m.role for m in streamed.messages] == [
            Role.SYSTEM, Role.USER, Role.ASSISTANT, Role.TOOL,
        ]

    def test_short_circuit_is_single_chunk(self, agent, scripted_backend, tool_call,
                                           tool_reply_message):
        backend = scripted_backend([tool_reply_message(tool_call("finish", {"answer": "ok"}))])

        async def run():
            stream = await prompt_with_tools_stream(agent, [Message.user("q")], backend=backend)
            return [chunk async for chunk in stream]

        chunks = asyncio.run(run())

        assert [c.unwrap() for c in chunks] == ["FINAL: ok"]
        assert backend.stream_requests == []

    def test_drained_batch_is_single_chunk(self, agent, scripted_backend):
        backend = scripted_backend([Message.assistant("partial", tool_calls=[])])

        async def run():
            stream = await prompt_with_tools_stream(agent, [Message.user("q")], backend=backend)
            return await collect_stream(stream)

        assert asyncio.run(run()) == "partial"
        assert backend.stream_requests == []
