"""Handler storage and the request matching engine."""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

import httpx

from mocknet.models.records import RequestRecord
from mocknet.services.handlers import Passthrough, RequestHandler


@dataclass
class MatchResult:
    """Verdict of the first handler that answered a request.

    ``error`` holds a transport error raised by the resolver to simulate a
    network failure.
    """
    handler: RequestHandler
    response: Optional[httpx.Response] = None
    error: Optional[httpx.TransportError] = None

    @property
    def is_passthrough(self) -> bool:
        return self.response is None and self.error is None


class HandlersController:
    """Initial handlers plus runtime overrides added with ``use``.

    Runtime handlers are consulted first, newest first.
    """

    def __init__(self, initial: Iterable[RequestHandler] = ()) -> None:
        self._initial: List[RequestHandler] = list(initial)
        self._runtime: List[RequestHandler] = []

    def current(self) -> List[RequestHandler]:
        return [*self._runtime, *self._initial]

    def prepend(self, handlers: Sequence[RequestHandler]) -> None:
        self._runtime[:0] = list(handlers)

    def reset(self, next_handlers: Optional[Sequence[RequestHandler]] = None) -> None:
        self._runtime.clear()
        if next_handlers:
            self._initial = list(next_handlers)

    def restore(self) -> None:
        for handler in self.current():
            handler.is_used = False


async def find_match(
    handlers: Sequence[RequestHandler], request: RequestRecord
) -> Optional[MatchResult]:
    """Return the first handler verdict for *request*, or ``None`` when unhandled."""
    for handler in handlers:
        if handler.once and handler.is_used:
            continue
        params = handler.parse(request)
        if params is None:
            continue
        # Claimed before the resolver runs so concurrent requests skip a once handler
        claimed = handler.once
        if claimed:
            handler.is_used = True
        try:
            verdict = await handler.run(request, params)
        except httpx.TransportError as exc:
            if claimed:
                handler.is_used = False
            return MatchResult(handler, error=exc)
        if verdict is None:
            if claimed:
                handler.is_used = False
            continue
        if isinstance(verdict, Passthrough):
            return MatchResult(handler)
        return MatchResult(handler, verdict)
    return None
