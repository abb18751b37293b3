"""
OpenAI-compatible inference backend adapter.

Covers any server that implements POST /chat/completions with bearer-token
auth: LM Studio, vLLM, llama.cpp server, OpenRouter, OpenAI itself.
"""

import asyncio
import logging
import weakref
from typing import Optional

import httpx
from pydantic import ValidationError

from agentforge.config import DEFAULT_API_KEY, DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from agentforge.exceptions import ProtocolError, TransportError
from agentforge.inference.base import InferenceBackend
from agentforge.inference.sse import decode_stream
from agentforge.inference.streaming import StreamChunk
from agentforge.models import CompletionRequest, CompletionResponse, Message

logger = logging.getLogger(__name__)

# Close tasks for abandoned streams; held so they are not collected mid-flight.
_pending_closes: set[asyncio.Task] = set()


async def _close_response(resp: httpx.Response,
                          client: Optional[httpx.AsyncClient]) -> None:
    try:
        await resp.aclose()
    finally:
        if client is not None:
            await client.aclose()


def _close_abandoned(resp: httpx.Response, client: Optional[httpx.AsyncClient]) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        logger.warning("Stream dropped outside an event loop; connection left open")
        return
    logger.debug("Closing stream dropped before it was exhausted")
    task = loop.create_task(_close_response(resp, client))
    _pending_closes.add(task)
    task.add_done_callback(_pending_closes.discard)


class ResponseStream:
    """Async iterator of StreamChunk over one streaming HTTP response.

    Owns the response, and the client when the backend opened it. Both are
    closed when the stream is exhausted, fails, or is closed with ``aclose()``
    (also usable as ``async with``). A stream dropped unread is closed on the
    running event loop once it is garbage collected.
    """

    def __init__(self, resp: httpx.Response, owned_client: Optional[httpx.AsyncClient] = None):
        self._resp = resp
        self._owned_client = owned_client
        self._chunks = decode_stream(resp.aiter_lines())
        self._closed = False
        self._finalizer = weakref.finalize(self, _close_abandoned, resp, owned_client)
        self._finalizer.atexit = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> "ResponseStream":
        return self

    async def __anext__(self) -> StreamChunk:
        if self._closed:
            raise StopAsyncIteration
        try:
            return await self._chunks.__anext__()
        except StopAsyncIteration:
            await self.aclose()
            raise
        except (httpx.RequestError, httpx.StreamError) as e:
            await self.aclose()
            raise TransportError(f"Stream error: {e}") from e

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._finalizer.detach()
        try:
            await self._chunks.aclose()
        finally:
            await _close_response(self._resp, self._owned_client)

    async def __aenter__(self) -> "ResponseStream":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()


class OpenAICompatBackend(InferenceBackend):
    """Backend adapter for OpenAI-compatible inference servers.

    Pass ``client`` to reuse a long-lived ``httpx.AsyncClient`` (its lifetime
    stays with the caller). Without one, a client is opened per request and
    closed when the response, or the stream, is finished.
    """

    def __init__(self, base_url: str = DEFAULT_BASE_URL,
                 api_key: str = DEFAULT_API_KEY,
                 default_timeout: float = DEFAULT_TIMEOUT,
                 client: Optional[httpx.AsyncClient] = None):
        super().__init__(base_url, default_timeout)
        self.api_key = api_key
        self._client = client

    @property
    def completions_url(self) -> str:
        return f"{self.base_url}/chat/completions"

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key}"}

    def _open_client(self) -> httpx.AsyncClient:
        return self._client or httpx.AsyncClient(timeout=self.default_timeout)

    @staticmethod
    def _status_error(resp: httpx.Response) -> TransportError:
        body = resp.text[:500]
        return TransportError(
            f"request returned error status {resp.status_code}",
            status_code=resp.status_code, body=body,
        )

    # ── Chat Completion ──

    async def send_once(self, request: CompletionRequest) -> Message:
        """Non-streaming chat completion via /chat/completions."""
        payload = request.model_copy(update={"stream": False}).to_payload()
        logger.debug("POST %s model=%s messages=%d",
                     self.completions_url, request.model, len(request.messages))

        client = self._open_client()
        try:
            resp = await client.post(self.completions_url, json=payload,
                                     headers=self._headers())
        except httpx.RequestError as e:
            raise TransportError(f"failed to send request: {e}") from e
        finally:
            if client is not self._client:
                await client.aclose()

        if resp.is_error:
            raise self._status_error(resp)

        try:
            completion = CompletionResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise ProtocolError(f"failed to deserialize completion response: {e}") from e

        if not completion.choices:
            raise ProtocolError("No choices in response")
        return completion.choices[0].message

    async def send_stream(self, request: CompletionRequest) -> "ResponseStream":
        """Streaming chat completion via /chat/completions with SSE."""
        payload = request.model_copy(update={"stream": True}).to_payload()
        logger.debug("POST %s (stream) model=%s messages=%d",
                     self.completions_url, request.model, len(request.messages))

        client = self._open_client()
        owned = client is not self._client
        try:
            http_request = client.build_request(
                "POST", self.completions_url, json=payload, headers=self._headers(),
            )
            resp = await client.send(http_request, stream=True)
        except httpx.RequestError as e:
            if owned:
                await client.aclose()
            raise TransportError(f"failed to send request: {e}") from e

        if resp.is_error:
            try:
                await resp.aread()
                raise self._status_error(resp)
            finally:
                await resp.aclose()
                if owned:
                    await client.aclose()

        return ResponseStream(resp, client if owned else None)
