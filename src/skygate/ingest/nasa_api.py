"""Adapters for the NASA providers the gateway aggregates.

Each adapter builds one upstream request, performs it through a shared
``requests`` session, decodes the JSON body and classifies failures into the
gateway error taxonomy. The API key is passed in explicitly; adapters never
consult configuration at call time.
"""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import quote, urlencode

import requests

from skygate.config import Settings
from skygate.errors import InvalidParameters, MalformedUpstreamPayload, UpstreamRejected, UpstreamUnavailable
from skygate.ingest.models import ApodParams, ImageSearchParams, NeoFeedParams

logger = logging.getLogger(__name__)

BASE_URL = "https://api.nasa.gov"
IMAGE_LIBRARY_URL = "https://images-api.nasa.gov"
MAX_FEED_SPAN_DAYS = 7


def utc_today() -> dt.date:
    return dt.datetime.now(dt.timezone.utc).date()


class NASAHTTPClient:
    """Thin transport wrapper that decodes JSON and classifies failures."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 30) -> None:
        self.session = session or requests.Session()
        self.timeout = timeout

    def get_json(self, provider: str, url: str, query: str) -> Dict[str, Any]:
        logger.debug("GET %s (%s)", url, provider)
        try:
            response = self.session.get(url, params=query, timeout=self.timeout)
        except requests.Timeout as exc:
            logger.warning("%s timed out: %s", provider, exc)
            raise UpstreamUnavailable(f"{provider} timed out") from exc
        except requests.RequestException as exc:
            logger.warning("%s request failed: %s", provider, exc)
            raise UpstreamUnavailable(f"{provider} unreachable: {exc.__class__.__name__}") from exc

        status = response.status_code
        if 400 <= status < 500:
            logger.warning("%s rejected request with status %d", provider, status)
            raise UpstreamRejected(f"{provider} error {status}", status_code=status)
        if status >= 300 or status < 200:
            logger.warning("%s failed with status %d", provider, status)
            raise UpstreamUnavailable(f"{provider} error {status}")

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedUpstreamPayload(f"{provider} returned a body that is not JSON") from exc
        if not isinstance(payload, dict):
            raise MalformedUpstreamPayload(f"{provider} returned {type(payload).__name__}, expected an object")
        return payload


def encode_query(params: Dict[str, Any]) -> str:
    """Percent-encode query parameters, spaces as %20."""
    return urlencode([(key, value) for key, value in params.items() if value is not None], quote_via=quote)


class ApodAdapter:
    """Astronomy Picture of the Day. Today's record unless a date is given."""

    provider = "NASA APOD API"

    def __init__(self, api_key: str, client: NASAHTTPClient, base_url: str = BASE_URL) -> None:
        self.api_key = api_key
        self.client = client
        self.base_url = base_url.rstrip("/")

    def build_query(self, params: ApodParams) -> str:
        return encode_query(
            {
                "api_key": self.api_key,
                "date": params.date.isoformat() if params.date else None,
            }
        )

    def fetch(self, params: ApodParams) -> Dict[str, Any]:
        return self.client.get_json(self.provider, f"{self.base_url}/planetary/apod", self.build_query(params))


class ImageSearchAdapter:
    """NASA Image and Video Library keyword search. Needs no API key."""

    provider = "NASA Images API"

    def __init__(self, client: NASAHTTPClient, base_url: str = IMAGE_LIBRARY_URL) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")

    def build_query(self, params: ImageSearchParams) -> str:
        return encode_query({"q": params.query, "media_type": params.media_type, "page": params.page})

    def fetch(self, params: ImageSearchParams) -> Dict[str, Any]:
        return self.client.get_json(self.provider, f"{self.base_url}/search", self.build_query(params))


def resolve_feed_window(params: NeoFeedParams, today: dt.date) -> Tuple[dt.date, dt.date]:
    """Apply the feed defaults and enforce the provider's 7-day span limit.

    A missing start date is today (UTC); a missing end date is start + 7 days.
    Windows that run backwards or span more than 7 days are rejected here
    rather than sent upstream.
    """
    start = params.start_date or today
    end = params.end_date or start + dt.timedelta(days=MAX_FEED_SPAN_DAYS)
    if end < start:
        raise InvalidParameters(f"endDate {end.isoformat()} is before startDate {start.isoformat()}")
    if (end - start).days > MAX_FEED_SPAN_DAYS:
        raise InvalidParameters(
            f"date range {start.isoformat()}..{end.isoformat()} exceeds {MAX_FEED_SPAN_DAYS} days"
        )
    return start, end


class NeoFeedAdapter:
    """Near-Earth object feed grouped by close-approach date."""

    provider = "NASA NEO API"

    def __init__(
        self,
        api_key: str,
        client: NASAHTTPClient,
        base_url: str = BASE_URL,
        clock: Callable[[], dt.date] = utc_today,
    ) -> None:
        self.api_key = api_key
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.clock = clock

    def build_query(self, params: NeoFeedParams) -> str:
        start, end = resolve_feed_window(params, self.clock())
        return encode_query(
            {"start_date": start.isoformat(), "end_date": end.isoformat(), "api_key": self.api_key}
        )

    def fetch(self, params: NeoFeedParams) -> Dict[str, Any]:
        return self.client.get_json(self.provider, f"{self.base_url}/neo/rest/v1/feed", self.build_query(params))


class NASAAdapters:
    """The three adapters wired to one session and one API key."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
        base_url: str = BASE_URL,
        images_url: str = IMAGE_LIBRARY_URL,
        clock: Callable[[], dt.date] = utc_today,
    ) -> None:
        client = NASAHTTPClient(session=session, timeout=timeout)
        self.apod = ApodAdapter(api_key, client, base_url=base_url)
        self.images = ImageSearchAdapter(client, base_url=images_url)
        self.neo = NeoFeedAdapter(api_key, client, base_url=base_url, clock=clock)

    @classmethod
    def from_settings(cls, settings: Settings, session: Optional[requests.Session] = None) -> "NASAAdapters":
        return cls(
            api_key=settings.nasa_api_key,
            session=session,
            timeout=settings.request_timeout,
            base_url=settings.nasa_base_url,
            images_url=settings.nasa_images_url,
        )
