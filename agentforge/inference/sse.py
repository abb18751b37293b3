"""
Server-Sent Events decoding for streamed chat completions.

Frames are separated by blank lines; each frame's ``data:`` lines form its
payload. A payload of ``[DONE]`` ends the stream.
"""

import logging
from typing import AsyncIterator, Optional

from pydantic import ValidationError

from agentforge.exceptions import ProtocolError
from agentforge.inference.streaming import StreamChunk
from agentforge.models import CompletionStreamResponse

logger = logging.getLogger(__name__)

DONE_SENTINEL = "[DONE]"


async def iter_sse_data(lines: AsyncIterator[str]) -> AsyncIterator[str]:
    """Group raw SSE lines into frame payloads.

    Only the ``data`` field is kept; comments and other fields (event, id,
    retry) are ignored. A trailing frame without a blank line is flushed when
    the input ends.
    """
    data_lines: list[str] = []
    async for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            if data_lines:
                yield "\n".join(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "data":
            data_lines.append(value)
    if data_lines:
        yield "\n".join(data_lines)


def parse_stream_payload(data: str) -> Optional[StreamChunk]:
    """Turn one frame payload into a chunk, or None if it carries no text."""
    try:
        parsed = CompletionStreamResponse.model_validate_json(data)
    except ValidationError as e:
        logger.warning("Undecodable stream frame: %.200s", data)
        return StreamChunk(error=ProtocolError(f"Failed to parse stream frame: {e}"))

    if not parsed.choices:
        return None
    content = parsed.choices[0].delta.content
    if not content:
        return None
    return StreamChunk(content=content)


async def decode_stream(lines: AsyncIterator[str]) -> AsyncIterator[StreamChunk]:
    """Decode SSE lines into text fragments, stopping at the [DONE] sentinel."""
    async for data in iter_sse_data(lines):
        if data.strip() == DONE_SENTINEL:
            return
        chunk = parse_stream_payload(data)
        if chunk is not None:
            yield chunk
