"""
Interception pipeline

Runs every intercepted request through the matching engine and emits the
life-cycle events at fixed points::

    request:start -> request:match | request:unhandled
                  -> response:mocked | response:bypass
                  -> request:end

``request:end`` is emitted from a ``finally`` block, so it fires last for
every request that emitted ``request:start``, including failed ones.
"""

import inspect
import logging
from typing import Callable, Optional, Tuple, Union

import httpx

from mocknet.config import UnhandledRequestStrategy
from mocknet.core.events import (
    REQUEST_END,
    REQUEST_MATCH,
    REQUEST_START,
    REQUEST_UNHANDLED,
    RESPONSE_BYPASS,
    RESPONSE_MOCKED,
    LifeCycleEmitter,
    LifeCycleEventsObserver,
)
from mocknet.core.exceptions import UnhandledRequestError
from mocknet.models.records import RequestRecord, ResponseRecord
from mocknet.services.matching import HandlersController, find_match

logger = logging.getLogger(__name__)

UnhandledRequestCallback = Callable[[RequestRecord], None]
OnUnhandledRequest = Union[UnhandledRequestStrategy, UnhandledRequestCallback]


async def materialize(response: httpx.Response) -> Tuple[httpx.Response, bytes]:
    """Buffer *response* fully.

    Returns a response safe to hand to the client together with the decoded
    body, so the client and life-cycle listeners read the same bytes
    independently.
    """
    if not response.is_stream_consumed:
        try:
            raw = b"".join([chunk async for chunk in response.aiter_raw()])
        finally:
            await response.aclose()
        response = httpx.Response(
            response.status_code,
            headers=response.headers,
            content=raw,
            extensions=response.extensions,
        )
    return response, response.content


class InterceptionPipeline:
    """Resolves intercepted requests and owns the life-cycle emitter."""

    def __init__(
        self,
        controller: HandlersController,
        passthrough_transport: httpx.AsyncBaseTransport,
        *,
        on_unhandled_request: OnUnhandledRequest = "warn",
        emitter: Optional[LifeCycleEmitter] = None,
    ) -> None:
        self.controller = controller
        self.passthrough_transport = passthrough_transport
        self.on_unhandled_request = on_unhandled_request
        self._emitter = emitter or LifeCycleEmitter()

    @property
    def events(self) -> LifeCycleEventsObserver:
        return self._emitter.observer

    async def drain(self) -> None:
        """Wait for async life-cycle listeners scheduled so far."""
        await self._emitter.drain()

    async def handle(self, request: httpx.Request) -> httpx.Response:
        record = await RequestRecord.from_httpx(request)
        await self._emitter.emit(REQUEST_START, record)
        try:
            match = await find_match(self.controller.current(), record)
            if match is None:
                await self._emitter.emit(REQUEST_UNHANDLED, record)
                await self._handle_unhandled(record)
                return await self._bypass(request, record)

            await self._emitter.emit(REQUEST_MATCH, record)
            if match.error is not None:
                raise match.error
            if match.is_passthrough:
                return await self._bypass(request, record)
            return await self._respond(match.response, record)
        finally:
            await self._emitter.emit(REQUEST_END, record)

    async def _handle_unhandled(self, record: RequestRecord) -> None:
        strategy = self.on_unhandled_request
        if callable(strategy):
            result = strategy(record)
            if inspect.isawaitable(result):
                await result
            return
        if strategy == "bypass":
            return
        if strategy == "warn":
            logger.warning(
                "Intercepted a request without a matching request handler: %s %s",
                record.method,
                record.url,
            )
            return
        logger.error(
            "Intercepted a request without a matching request handler: %s %s",
            record.method,
            record.url,
        )
        raise UnhandledRequestError(record)

    async def _respond(self, response: httpx.Response, record: RequestRecord) -> httpx.Response:
        response, body = await materialize(response)
        await self._emitter.emit(
            RESPONSE_MOCKED, ResponseRecord.from_httpx(response, body, record.id), record.id
        )
        return response

    async def _bypass(self, request: httpx.Request, record: RequestRecord) -> httpx.Response:
        response = await self.passthrough_transport.handle_async_request(request)
        response, body = await materialize(response)
        await self._emitter.emit(
            RESPONSE_BYPASS, ResponseRecord.from_httpx(response, body, record.id), record.id
        )
        return response


class MockTransport(httpx.AsyncBaseTransport):
    """httpx transport that routes requests through an :class:`InterceptionPipeline`.

    While inactive, requests go straight to the passthrough transport and no
    life-cycle events are emitted.
    """

    def __init__(self, pipeline: InterceptionPipeline) -> None:
        self.pipeline = pipeline
        self.active = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not self.active:
            return await self.pipeline.passthrough_transport.handle_async_request(request)
        return await self.pipeline.handle(request)

    async def aclose(self) -> None:
        # The passthrough transport belongs to the server and outlives clients
        return None
