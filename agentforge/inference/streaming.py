"""
Stream items produced by streaming completions, plus small helpers to build
and drain them.
"""

from dataclasses import dataclass
from typing import AsyncIterator, Optional


@dataclass
class StreamChunk:
    """One item of a completion stream: a text fragment or a failure.

    A failure item stands at the position of the frame that could not be
    decoded; fragments before and after it are unaffected.
    """
    content: str = ""
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        """Return the fragment text, or raise the failure."""
        if self.error is not None:
            raise self.error
        return self.content


async def single_chunk(text: str) -> AsyncIterator[StreamChunk]:
    """A stream that yields one already-known text and ends."""
    yield StreamChunk(content=text)


async def collect_stream(stream: AsyncIterator[StreamChunk]) -> str:
    """Drain a stream into one string, raising the first failure item."""
    parts = []
    try:
        async for chunk in stream:
            parts.append(chunk.unwrap())
    finally:
        aclose = getattr(stream, "aclose", None)
        if aclose is not None:
            await aclose()
    return "".join(parts)
