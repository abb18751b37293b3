"""
Abstract base class for completion backends.

The orchestration loop talks only to this interface, so tests and alternative
transports can stand in for the HTTP adapter.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator

from agentforge.config import DEFAULT_TIMEOUT
from agentforge.inference.streaming import StreamChunk
from agentforge.models import CompletionRequest, Message


class InferenceBackend(ABC):
    """Chat-completion transport: one buffered call, one streamed call."""

    def __init__(self, base_url: str, default_timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.default_timeout = default_timeout

    @abstractmethod
    async def send_once(self, request: CompletionRequest) -> Message:
        """Non-streaming completion.

        Returns:
            The message of the first choice.

        Raises:
            TransportError: network failure or non-success status.
            ProtocolError: malformed body or empty choices.
        """
        ...

    @abstractmethod
    async def send_stream(self, request: CompletionRequest) -> AsyncIterator[StreamChunk]:
        """Streaming completion.

        Transport errors are raised here, before any fragment is produced.
        The returned iterator is lazy and single-pass; undecodable frames
        appear in it as failure items rather than ending it.
        """
        ...
