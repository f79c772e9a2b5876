"""Tests for RequestRecord / ResponseRecord snapshots."""

import dataclasses

import httpx
import pytest

from mocknet.models.records import RequestRecord, ResponseRecord


class TestRequestRecord:
    @pytest.mark.asyncio
    async def test_from_httpx_captures_request(self):
        request = httpx.Request(
            "post",
            "https://api.example.com/users?page=2",
            json={"name": "kim"},
            headers={"X-Trace": "1"},
        )
        record = await RequestRecord.from_httpx(request)

        assert record.method == "POST"
        assert record.url == "https://api.example.com/users?page=2"
        assert record.path == "/users"
        assert record.headers["x-trace"] == "1"
        assert record.json() == {"name": "kim"}
        assert len(record.id) == 32

    @pytest.mark.asyncio
    async def test_ids_are_unique(self):
        request = httpx.Request("GET", "http://test/x")
        ids = {(await RequestRecord.from_httpx(request)).id for _ in range(50)}
        assert len(ids) == 50

    def test_frozen(self):
        record = RequestRecord(id="a", method="GET", url="http://test/x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            record.method = "POST"

    def test_headers_view_is_read_only(self):
        record = RequestRecord(
            id="a",
            method="GET",
            url="http://test/x",
            raw_headers=(("Accept", "text/html"), ("accept", "application/json")),
        )
        assert record.headers["accept"] == "text/html, application/json"
        with pytest.raises(TypeError):
            record.headers["accept"] = "*/*"

    def test_text_uses_charset(self):
        record = RequestRecord(
            id="a",
            method="POST",
            url="http://test/x",
            raw_headers=(("content-type", "text/plain; charset=latin-1"),),
            body="café".encode("latin-1"),
        )
        assert record.text() == "café"

    def test_text_unknown_charset_falls_back_to_utf8(self):
        record = RequestRecord(
            id="a",
            method="POST",
            url="http://test/x",
            raw_headers=(("content-type", "text/plain; charset=x-unknown-charset"),),
            body="café".encode("utf-8"),
        )
        assert record.text() == "café"


class TestResponseRecord:
    def test_from_httpx(self):
        response = httpx.Response(201, json={"ok": True})
        record = ResponseRecord.from_httpx(response, response.content, "req-1")

        assert record.request_id == "req-1"
        assert record.status == 201
        assert record.reason == "Created"
        assert record.ok
        assert record.headers["content-type"] == "application/json"
        assert record.json() == {"ok": True}

    @pytest.mark.asyncio
    async def test_body_stream_rereadable(self):
        record = ResponseRecord(request_id="r", status=200, body=b"abcdefg")

        first = [chunk async for chunk in record.aiter_bytes(chunk_size=3)]
        second = [chunk async for chunk in record.aiter_bytes()]

        assert first == [b"abc", b"def", b"g"]
        assert second == [b"abcdefg"]

    @pytest.mark.asyncio
    async def test_empty_body_stream(self):
        record = ResponseRecord(request_id="r", status=204)
        assert [chunk async for chunk in record.aiter_bytes()] == []
