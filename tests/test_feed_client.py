"""Tests for CADFeedClient against an in-process httpx transport."""

import httpx
import pytest

from conftest import make_record, run
from feed.client import CADFeedClient, FeedError

URL = "https://cad.example.test/resource/feed.json"


def client_for(handler, limit=50) -> CADFeedClient:
    return CADFeedClient(url=URL, limit=limit, timeout=2.0, transport=httpx.MockTransport(handler))


class TestCADFeedClient:
    def test_query_params(self):
        assert CADFeedClient(limit=25).query_params() == {"$order": "call_time DESC", "$limit": "25"}

    def test_fetch_returns_records_and_sends_params(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["order"] = request.url.params["$order"]
            seen["limit"] = request.url.params["$limit"]
            return httpx.Response(200, json=[make_record("A"), make_record("B")])

        records = run(client_for(handler).fetch())
        assert [r["incident_number"] for r in records] == ["A", "B"]
        assert seen == {"order": "call_time DESC", "limit": "50"}

    def test_empty_list_ok(self):
        assert run(client_for(lambda request: httpx.Response(200, json=[])).fetch()) == []

    def test_http_error_status(self):
        with pytest.raises(FeedError, match="HTTP 503"):
            run(client_for(lambda request: httpx.Response(503, text="unavailable")).fetch())

    def test_invalid_json(self):
        with pytest.raises(FeedError, match="invalid JSON"):
            run(client_for(lambda request: httpx.Response(200, text="<html>")).fetch())

    def test_non_list_body(self):
        with pytest.raises(FeedError, match="expected list"):
            run(client_for(lambda request: httpx.Response(200, json={"error": "nope"})).fetch())

    def test_transport_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FeedError, match="ConnectError"):
            run(client_for(handler).fetch())

    def test_read_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        with pytest.raises(FeedError):
            run(client_for(handler).fetch())
