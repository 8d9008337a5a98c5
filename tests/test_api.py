from __future__ import annotations

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from conftest import FakeResponse, FakeSession, apod_payload, image_search_payload, neo_feed_payload, neo_record
from skygate.api.app import create_app
from skygate.config import Settings
from skygate.gateway.dispatcher import build_dispatcher
from skygate.ingest.nasa_api import NASAAdapters


@pytest.fixture
def client(adapters: NASAAdapters) -> TestClient:
    return TestClient(create_app(Settings(), dispatcher=build_dispatcher(adapters)))


@pytest.mark.unit
def test_query_partial_failure_still_200(client: TestClient, fake_session: FakeSession) -> None:
    fake_session.routes["/planetary/apod"] = FakeResponse(200, apod_payload())
    fake_session.routes["/search"] = FakeResponse(503, None)
    fake_session.routes["/feed"] = FakeResponse(
        200, neo_feed_payload({"2024-03-02": [neo_record("2")], "2024-03-01": [neo_record("1")]})
    )

    response = client.post("/query", json={"fields": ["apod", "images", "neo"]})

    assert response.status_code == 200
    body = response.json()
    assert list(body["data"]) == ["apod", "images", "neo"]
    assert body["data"]["images"] is None
    assert [bucket["date"] for bucket in body["data"]["neo"]["buckets"]] == ["2024-03-01", "2024-03-02"]
    assert body["data"]["neo"]["buckets"][0]["objects"][0]["approach"]["relativeVelocityKmh"] == "45000.1"
    assert len(body["errors"]) == 1
    assert body["errors"][0]["path"] == "images"
    assert body["errors"][0]["extensions"]["kind"] == "UpstreamUnavailable"


@pytest.mark.unit
def test_query_with_variables(client: TestClient, fake_session: FakeSession) -> None:
    fake_session.routes["/search"] = FakeResponse(200, image_search_payload([], total_hits=0))

    response = client.post(
        "/query",
        json={"fields": [{"name": "images", "args": {"query": "$q"}}], "variables": {"q": "apollo 11"}},
    )

    assert response.status_code == 200
    assert response.json() == {"data": {"images": {"items": [], "totalHits": 0}}}
    assert fake_session.calls[0][1].startswith("q=apollo%2011")


@pytest.mark.unit
@pytest.mark.parametrize(
    "kwargs",
    [
        {"content": b"{not json", "headers": {"content-type": "application/json"}},
        {"json": {"fields": ["pluto"]}},
        {"json": ["apod"]},
    ],
)
def test_bad_documents_are_400(client: TestClient, fake_session: FakeSession, kwargs) -> None:
    response = client.post("/query", **kwargs)

    assert response.status_code == 400
    body = response.json()
    assert body["data"] is None
    assert body["errors"][0]["message"]
    assert fake_session.calls == []


@pytest.mark.unit
def test_health(client: TestClient) -> None:
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert datetime.fromisoformat(body["timestamp"]).tzinfo is not None
