from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional, Tuple

import pytest

from skygate.ingest.nasa_api import NASAAdapters


class FakeResponse:
    def __init__(self, status_code: int = 200, payload: Any = None, text: Optional[str] = None) -> None:
        self.status_code = status_code
        self._payload = payload
        self._text = text

    def json(self) -> Any:
        if self._text is not None:
            raise ValueError("Expecting value")
        return self._payload


class FakeSession:
    """Routes GET calls by URL suffix to canned responses or exceptions."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes: Dict[str, Any] = dict(routes or {})
        self.calls: List[Tuple[str, str]] = []

    def get(self, url: str, params: Any = None, timeout: Any = None) -> FakeResponse:
        self.calls.append((url, params))
        for suffix, outcome in self.routes.items():
            if url.endswith(suffix):
                if isinstance(outcome, Exception):
                    raise outcome
                return outcome
        raise AssertionError(f"unexpected request to {url}")


def apod_payload(**overrides: Any) -> Dict[str, Any]:
    payload = {
        "title": "The Horsehead Nebula",
        "explanation": "A dark nebula in Orion.",
        "url": "https://apod.nasa.gov/apod/image/horsehead.jpg",
        "hdurl": "https://apod.nasa.gov/apod/image/horsehead_hd.jpg",
        "date": "2024-03-01",
        "media_type": "image",
        "copyright": "Jane Doe",
        "service_version": "v1",
    }
    payload.update(overrides)
    return payload


def image_item(nasa_id: str, links: Optional[List[Dict[str, Any]]] = None, **data: Any) -> Dict[str, Any]:
    record = {
        "nasa_id": nasa_id,
        "title": f"Title {nasa_id}",
        "description": f"Description {nasa_id}",
        "date_created": "2012-11-02T00:00:00Z",
        "center": "JPL",
        "keywords": ["galaxy", "hubble"],
        "media_type": "image",
    }
    record.update(data)
    return {
        "href": f"https://images-assets.nasa.gov/image/{nasa_id}/collection.json",
        "data": [record],
        "links": links if links is not None else [{"href": f"https://images.nasa.gov/{nasa_id}~thumb.jpg", "rel": "preview"}],
    }


def image_search_payload(items: List[Dict[str, Any]], total_hits: Optional[int] = 42) -> Dict[str, Any]:
    collection: Dict[str, Any] = {"version": "1.0", "items": items}
    if total_hits is not None:
        collection["metadata"] = {"total_hits": total_hits}
    return {"collection": collection}


def neo_record(neo_id: str, approach_dates: Tuple[str, ...] = ("2024-03-01",), **overrides: Any) -> Dict[str, Any]:
    record = {
        "id": neo_id,
        "neo_reference_id": neo_id,
        "name": f"({neo_id})",
        "nasa_jpl_url": f"https://ssd.jpl.nasa.gov/tools/sbdb_lookup.html#/?sstr={neo_id}",
        "absolute_magnitude_h": 22.1,
        "estimated_diameter": {
            "kilometers": {"estimated_diameter_min": 0.1, "estimated_diameter_max": 0.2},
            "meters": {"estimated_diameter_min": 100.5, "estimated_diameter_max": 224.7},
        },
        "is_potentially_hazardous_asteroid": False,
        "close_approach_data": [
            {
                "close_approach_date": day,
                "close_approach_date_full": f"{day} 04:12",
                "epoch_date_close_approach": 1709266320000,
                "relative_velocity": {
                    "kilometers_per_second": "12.5",
                    "kilometers_per_hour": "45000.1",
                    "miles_per_hour": "27961.3",
                },
                "miss_distance": {"astronomical": "0.3", "lunar": "116.7", "kilometers": "44879310.2"},
                "orbiting_body": "Earth",
            }
            for day in approach_dates
        ],
        "is_sentry_object": False,
    }
    record.update(overrides)
    return record


def neo_feed_payload(grouped: Dict[str, List[Dict[str, Any]]], element_count: Optional[int] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"links": {}, "near_earth_objects": grouped}
    payload["element_count"] = (
        element_count if element_count is not None else sum(len(objects) for objects in grouped.values())
    )
    return payload


FIXED_TODAY = dt.date(2024, 3, 1)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def adapters(fake_session: FakeSession) -> NASAAdapters:
    return NASAAdapters(api_key="TEST_KEY", session=fake_session, clock=lambda: FIXED_TODAY)
