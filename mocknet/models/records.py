"""
Read-only snapshots of intercepted traffic.

Life-cycle listeners receive these records instead of live ``httpx`` objects,
so nothing they do can reach back into the request being dispatched.
"""

import json
import uuid
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, AsyncIterator, Mapping, Optional, Tuple

import httpx

RawHeaders = Tuple[Tuple[str, str], ...]


def _freeze_headers(headers: httpx.Headers) -> RawHeaders:
    return tuple((name, value) for name, value in headers.multi_items())


def _header_view(raw_headers: RawHeaders) -> Mapping[str, str]:
    merged: dict = {}
    for name, value in raw_headers:
        key = name.lower()
        merged[key] = f"{merged[key]}, {value}" if key in merged else value
    return MappingProxyType(merged)


def _decode(body: bytes, raw_headers: RawHeaders) -> str:
    charset = httpx.Headers(list(raw_headers)).get("content-type", "")
    encoding = "utf-8"
    for part in charset.split(";")[1:]:
        key, _, value = part.strip().partition("=")
        if key.lower() == "charset" and value:
            encoding = value.strip("\"'")
    try:
        return body.decode(encoding, errors="replace")
    except LookupError:
        return body.decode("utf-8", errors="replace")


@dataclass(frozen=True)
class RequestRecord:
    """Snapshot of an intercepted request"""
    id: str
    method: str
    url: str
    raw_headers: RawHeaders = ()
    body: bytes = b""

    @classmethod
    async def from_httpx(cls, request: httpx.Request) -> "RequestRecord":
        """Mint a new request id and capture *request* (reading its body)."""
        body = await request.aread()
        return cls(
            id=uuid.uuid4().hex,
            method=request.method.upper(),
            url=str(request.url),
            raw_headers=_freeze_headers(request.headers),
            body=body,
        )

    @property
    def headers(self) -> Mapping[str, str]:
        return _header_view(self.raw_headers)

    @property
    def path(self) -> str:
        return httpx.URL(self.url).path

    def text(self) -> str:
        return _decode(self.body, self.raw_headers)

    def json(self) -> Any:
        return json.loads(self.body)


@dataclass(frozen=True)
class ResponseRecord:
    """Snapshot of a response about to be handed back to the client.

    The body is fully buffered when the record is built, so listeners and
    the client each read their own copy of the same bytes.
    """
    request_id: str
    status: int
    reason: str = ""
    raw_headers: RawHeaders = ()
    body: bytes = b""

    @classmethod
    def from_httpx(
        cls, response: httpx.Response, body: bytes, request_id: str
    ) -> "ResponseRecord":
        return cls(
            request_id=request_id,
            status=response.status_code,
            reason=response.reason_phrase,
            raw_headers=_freeze_headers(response.headers),
            body=body,
        )

    @property
    def headers(self) -> Mapping[str, str]:
        return _header_view(self.raw_headers)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

    def text(self) -> str:
        return _decode(self.body, self.raw_headers)

    def json(self) -> Any:
        return json.loads(self.body)

    async def aiter_bytes(self, chunk_size: Optional[int] = None) -> AsyncIterator[bytes]:
        """Stream the buffered body; can be iterated any number of times."""
        if not self.body:
            return
        size = chunk_size or len(self.body)
        for start in range(0, len(self.body), size):
            yield self.body[start:start + size]
