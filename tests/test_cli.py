from __future__ import annotations

import json

import pytest
from typer.testing import CliRunner

from conftest import FakeResponse, FakeSession, apod_payload, neo_feed_payload, neo_record
from skygate import cli
from skygate.ingest.nasa_api import NASAAdapters

runner = CliRunner()


@pytest.fixture(autouse=True)
def _patched_adapters(monkeypatch: pytest.MonkeyPatch, adapters: NASAAdapters) -> None:
    monkeypatch.setattr(cli.NASAAdapters, "from_settings", classmethod(lambda cls, settings, session=None: adapters))


@pytest.mark.unit
def test_apod_prints_raw_payload(fake_session: FakeSession) -> None:
    fake_session.routes["/planetary/apod"] = FakeResponse(200, apod_payload())

    result = runner.invoke(cli.app, ["apod", "--date", "2024-03-01"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["media_type"] == "image"
    assert fake_session.calls[0][1].endswith("date=2024-03-01")


@pytest.mark.unit
def test_neo_rejects_long_window(fake_session: FakeSession) -> None:
    result = runner.invoke(cli.app, ["neo", "--start-date", "2024-03-01", "--end-date", "2024-04-01"])

    assert result.exit_code == 1
    assert fake_session.calls == []


@pytest.mark.unit
def test_query_writes_gateway_response(fake_session: FakeSession, tmp_path) -> None:
    fake_session.routes["/planetary/apod"] = FakeResponse(200, apod_payload())
    fake_session.routes["/feed"] = FakeResponse(500, None)
    output = tmp_path / "out" / "response.json"

    result = runner.invoke(cli.app, ["query", "apod", "neo", "--output", str(output)])

    assert result.exit_code == 0, result.output
    body = json.loads(output.read_text(encoding="utf-8"))
    assert body["data"]["apod"]["title"] == "The Horsehead Nebula"
    assert body["data"]["neo"] is None
    assert body["errors"][0]["path"] == "neo"


@pytest.mark.unit
def test_query_from_document(fake_session: FakeSession, tmp_path) -> None:
    fake_session.routes["/feed"] = FakeResponse(200, neo_feed_payload({"2024-03-01": [neo_record("1")]}))
    document = tmp_path / "query.json"
    document.write_text(
        json.dumps({"fields": [{"name": "neo", "args": {"startDate": "$d"}}], "variables": {"d": "2024-03-01"}}),
        encoding="utf-8",
    )

    result = runner.invoke(cli.app, ["query", "--document", str(document)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output)["data"]["neo"]["elementCount"] == 1


@pytest.mark.unit
def test_query_unknown_field_exits_2() -> None:
    result = runner.invoke(cli.app, ["query", "jupiter"])

    assert result.exit_code == 2
