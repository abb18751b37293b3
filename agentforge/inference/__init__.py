"""
Chat-completion transport for the orchestration loop.

Quick start:
    from agentforge.inference import OpenAICompatBackend
    backend = OpenAICompatBackend("http://localhost:1234/v1", "local")
    message = await backend.send_once(request)
"""

from agentforge.inference.base import InferenceBackend
from agentforge.inference.openai_compat import OpenAICompatBackend, ResponseStream
from agentforge.inference.sse import DONE_SENTINEL, decode_stream, iter_sse_data
from agentforge.inference.streaming import StreamChunk, collect_stream, single_chunk

__all__ = [
    "InferenceBackend",
    "OpenAICompatBackend",
    "ResponseStream",
    "StreamChunk",
    "collect_stream",
    "single_chunk",
    "decode_stream",
    "iter_sse_data",
    "DONE_SENTINEL",
]
