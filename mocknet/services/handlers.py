"""
Request handlers

A handler pairs an HTTP method and a path pattern with a resolver that
decides what to answer. Resolvers receive a read-only ``RequestRecord`` and
the captured path params, and return an ``httpx.Response`` (mock it),
``passthrough()`` (send it to the network) or ``None`` (let the next handler
try).
"""

import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Optional, Pattern, Union

import httpx

from mocknet.models.records import RequestRecord

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"(:[A-Za-z_][A-Za-z0-9_]*|\*)")


class Passthrough:
    """Resolver verdict: perform the request as-is against the network."""

    def __repr__(self) -> str:
        return "passthrough()"


PASSTHROUGH = Passthrough()

Verdict = Union[httpx.Response, Passthrough, None]
Resolver = Callable[[RequestRecord, Dict[str, str]], Union[Verdict, Awaitable[Verdict]]]


def passthrough() -> Passthrough:
    return PASSTHROUGH


def compile_path(path: str) -> Pattern[str]:
    """``/users/:id/*`` -> regex with named groups; trailing slash optional."""
    if path == "*":
        return re.compile(r".*")
    parts = []
    for chunk in _TOKEN.split(path):
        if not chunk:
            continue
        if chunk == "*":
            parts.append(".*")
        elif chunk.startswith(":") and _TOKEN.fullmatch(chunk):
            parts.append(f"(?P<{chunk[1:]}>[^/]+)")
        else:
            parts.append(re.escape(chunk))
    pattern = "".join(parts)
    if pattern.endswith("/"):
        pattern = pattern[:-1]
    return re.compile(pattern + "/?")


def _match_target(url: str, absolute: bool) -> str:
    parsed = httpx.URL(url)
    if not absolute:
        return parsed.path
    port = f":{parsed.port}" if parsed.port else ""
    return f"{parsed.scheme}://{parsed.host}{port}{parsed.path}"


@dataclass
class RequestHandler:
    """Method + path pattern + resolver."""
    method: str
    path: str
    resolver: Resolver
    once: bool = False
    is_used: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self._absolute = "://" in self.path
        self._pattern = compile_path(self.path)

    @property
    def info(self) -> str:
        return f"{self.method} {self.path}"

    def parse(self, request: RequestRecord) -> Optional[Dict[str, str]]:
        """Path params when *request* matches this handler, else ``None``."""
        if self.method != "ALL" and self.method != request.method:
            return None
        found = self._pattern.fullmatch(_match_target(request.url, self._absolute))
        if found is None:
            return None
        return found.groupdict()

    async def run(self, request: RequestRecord, params: Dict[str, str]) -> Verdict:
        """Call the resolver.

        A resolver that raises ``httpx.TransportError`` simulates a network
        failure and the error propagates. Any other exception becomes a
        ``500`` response describing it.
        """
        try:
            result: Any = self.resolver(request, params)
            if inspect.isawaitable(result):
                result = await result
            if result is not None and not isinstance(result, (httpx.Response, Passthrough)):
                raise TypeError(
                    f"Resolver for '{self.info}' returned {type(result).__name__}; "
                    "expected httpx.Response, passthrough() or None"
                )
        except httpx.TransportError:
            raise
        except Exception as exc:
            logger.error("Resolver for '%s' raised on %s %s", self.info, request.method, request.url, exc_info=True)
            return httpx.Response(500, json={"name": type(exc).__name__, "message": str(exc)})
        return result


class _HttpNamespace:
    """``http.get("/users/:id", resolver)`` style handler constructors."""

    def _build(self, method: str, path: str, resolver: Resolver, once: bool) -> RequestHandler:
        return RequestHandler(method, path, resolver, once=once)

    def all(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("ALL", path, resolver, once)

    def get(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("GET", path, resolver, once)

    def post(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("POST", path, resolver, once)

    def put(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("PUT", path, resolver, once)

    def patch(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("PATCH", path, resolver, once)

    def delete(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("DELETE", path, resolver, once)

    def head(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("HEAD", path, resolver, once)

    def options(self, path: str, resolver: Resolver, once: bool = False) -> RequestHandler:
        return self._build("OPTIONS", path, resolver, once)


# Module-level singleton
http = _HttpNamespace()
