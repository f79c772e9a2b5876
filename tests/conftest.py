"""Shared test fixtures.

Passthrough traffic goes to a small FastAPI app through
``httpx.ASGITransport`` so bypassed requests hit a real upstream without
opening sockets.
"""

import asyncio
import logging

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import StreamingResponse

from mocknet.config import Settings, get_settings
from mocknet.core.events import LifeCycleEmitter
from mocknet.services.handlers import http
from mocknet.services.responses import HttpResponse
from mocknet.services.server import setup_server
from mocknet.testing.recorder import LifeCycleRecorder


def build_upstream() -> FastAPI:
    upstream = FastAPI()

    @upstream.get("/upstream")
    async def read_upstream():
        return {"source": "upstream"}

    @upstream.post("/y")
    async def create_y(request: Request):
        body = await request.body()
        return {"source": "upstream", "echo": body.decode()}

    @upstream.get("/stream")
    async def stream():
        async def chunks():
            for part in (b"alpha-", b"beta-", b"gamma"):
                await asyncio.sleep(0)
                yield part

        return StreamingResponse(chunks(), media_type="text/plain")

    return upstream


@pytest.fixture
def settings():
    return Settings(_env_file=None, on_unhandled_request="bypass")


@pytest.fixture
def upstream_transport():
    return httpx.ASGITransport(app=build_upstream())


@pytest.fixture
def emitter():
    return LifeCycleEmitter()


@pytest.fixture
def recorder():
    return LifeCycleRecorder()


@pytest.fixture
def handlers():
    async def get_x(request, params):
        await asyncio.sleep(0)
        return HttpResponse.json({"source": "mock", "path": "/x"})

    def get_user(request, params):
        return HttpResponse.json({"id": params["id"]})

    return [
        http.get("/x", get_x),
        http.get("https://api.example.com/users/:id", get_user),
    ]


@pytest.fixture
def server(handlers, settings, upstream_transport):
    server = setup_server(*handlers, settings=settings, passthrough_transport=upstream_transport)
    server.listen()
    yield server
    server.close()


@pytest.fixture(autouse=True)
def reset_package_logger():
    """``listen()`` may install handlers on the ``mocknet`` logger; drop them after each test."""
    yield
    package_logger = logging.getLogger("mocknet")
    for handler in package_logger.handlers[:]:
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    get_settings.cache_clear()
