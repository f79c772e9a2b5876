"""Factories for mocked responses returned by request handlers."""

from typing import Any, Mapping, Optional

import httpx


class HttpResponse:
    """Shortcuts that build ``httpx.Response`` objects for resolvers."""

    @staticmethod
    def json(
        data: Any,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return httpx.Response(status, json=data, headers=headers)

    @staticmethod
    def text(
        body: str,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return httpx.Response(status, text=body, headers=headers)

    @staticmethod
    def html(
        body: str,
        status: int = 200,
        headers: Optional[Mapping[str, str]] = None,
    ) -> httpx.Response:
        return httpx.Response(status, html=body, headers=headers)

    @staticmethod
    def empty(status: int = 204, headers: Optional[Mapping[str, str]] = None) -> httpx.Response:
        return httpx.Response(status, headers=headers)
