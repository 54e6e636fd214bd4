"""
HTTP surface tests for treasury_yield/main.py.

The startup hook is not run; each test installs its own finder through
``app.dependency_overrides``.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi.testclient import TestClient

from treasury_yield.main import app, get_finder
from treasury_yield.services.finder import OpportunityFinder


@pytest.fixture
def client_for(settings):
    def _client(http):
        finder = OpportunityFinder(http, settings=settings)
        app.dependency_overrides[get_finder] = lambda: finder
        return TestClient(app)

    yield _client
    app.dependency_overrides.clear()


def test_health(client_for, catalog_http):
    r = client_for(catalog_http).get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_opportunities(client_for, catalog_http):
    r = client_for(catalog_http).get("/api/opportunities")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert body["bestByAPY"]["project"] == "unknownprotocol"


def test_query_with_camel_case_filters(client_for, catalog_http):
    r = client_for(catalog_http).post("/api/opportunities/query", json={"filters": {"minApy": 9999}})
    assert r.status_code == 200
    body = r.json()
    assert body["resolution"] == "no_match"
    assert "minApy=9999" in body["message"]


def test_query_text(client_for, catalog_http):
    r = client_for(catalog_http).post("/api/opportunities/query", json={"text": "Tell me about Echelon"})
    assert r.status_code == 200
    assert r.json()["opportunities"][0]["project"] == "echelon-market"


def test_invalid_limit_rejected(client_for, catalog_http):
    r = client_for(catalog_http).post("/api/opportunities/query", json={"filters": {"limit": 0}})
    assert r.status_code == 422


def test_protocol_pools(client_for, catalog_http):
    r = client_for(catalog_http).get("/api/opportunities/protocols/thala", params={"limit": 1})
    assert r.status_code == 200
    body = r.json()
    assert body["totalPoolsFound"] == 1
    assert body["bestPools"][0]["symbol"] == "THAPT"


def test_upstream_failure_is_502(client_for, make_http):
    http = make_http(lambda request: httpx.Response(500))
    r = client_for(http).get("/api/opportunities")
    assert r.status_code == 502
    assert r.json()["code"] == "NETWORK_ERROR"


def test_upstream_timeout_is_504(client_for, make_http):
    def handler(request):
        raise httpx.ConnectTimeout("no route", request=request)

    r = client_for(make_http(handler)).get("/api/opportunities")
    assert r.status_code == 504
    assert r.json()["code"] == "TIMEOUT"
