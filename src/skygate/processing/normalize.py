"""Map each provider's raw JSON shape onto the canonical entities."""
from __future__ import annotations

import datetime as dt
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from pydantic import ValidationError

from skygate.errors import MalformedUpstreamPayload
from skygate.ingest.models import (
    AstronomyPicture,
    CloseApproach,
    DayBucket,
    ImageAsset,
    ImageSearchResult,
    NEOFeed,
    NearEarthObject,
)
from skygate.processing.feed import flatten_feed

logger = logging.getLogger(__name__)

MEDIA_TYPES = ("image", "video")


def _lookup(raw: Mapping[str, Any], *keys: str) -> Any:
    """First non-null value among ``keys`` (raw name first, canonical alias second)."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def _require(raw: Mapping[str, Any], what: str, *keys: str) -> Any:
    value = _lookup(raw, *keys)
    if value is None or value == "":
        raise MalformedUpstreamPayload(f"{what} is missing required field '{keys[0]}'")
    return value


def _mapping(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise MalformedUpstreamPayload(f"{what} must be an object, got {type(value).__name__}")
    return value


def _sequence(value: Any, what: str) -> Sequence[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise MalformedUpstreamPayload(f"{what} must be an array, got {type(value).__name__}")
    return value


def _parse_date(value: Any, what: str) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str) and len(value) >= 10:
        try:
            return dt.date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise MalformedUpstreamPayload(f"{what} has an invalid date: {value!r}")


def _optional_date(value: Any, what: str) -> Optional[dt.date]:
    return None if value in (None, "") else _parse_date(value, what)


def _optional_float(value: Any, what: str) -> Optional[float]:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise MalformedUpstreamPayload(f"{what} is not numeric: {value!r}") from exc


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _build(model, what: str, **values: Any):
    try:
        return model(**values)
    except ValidationError as exc:
        raise MalformedUpstreamPayload(f"{what} could not be normalized: {exc.errors()[0]['msg']}") from exc


def normalize_apod(raw: Mapping[str, Any]) -> AstronomyPicture:
    """Daily picture record. Also accepts an already-canonical record."""
    raw = _mapping(raw, "APOD payload")
    media_type = _require(raw, "APOD payload", "media_type", "mediaType")
    if media_type not in MEDIA_TYPES:
        raise MalformedUpstreamPayload(f"APOD payload has unrecognized media_type {media_type!r}")

    return _build(
        AstronomyPicture,
        "APOD payload",
        title=_require(raw, "APOD payload", "title"),
        explanation=_lookup(raw, "explanation") or "",
        url=_require(raw, "APOD payload", "url"),
        hdurl=_lookup(raw, "hdurl"),
        date=_parse_date(_require(raw, "APOD payload", "date"), "APOD payload"),
        media_type=media_type,
        copyright=_optional_str(_lookup(raw, "copyright")),
    )


def _select_thumbnail(links: Sequence[Any]) -> Optional[str]:
    """Link tagged ``preview`` first, then the first link."""
    hrefs = [link for link in links if isinstance(link, Mapping) and link.get("href")]
    for link in hrefs:
        if link.get("rel") == "preview":
            return link["href"]
    return hrefs[0]["href"] if hrefs else None


def _normalize_image_item(item: Mapping[str, Any], default_media_type: str) -> Optional[ImageAsset]:
    item = _mapping(item, "image search item")
    thumbnail = _select_thumbnail(_sequence(item.get("links"), "image search item links"))
    if thumbnail is None:
        return None

    records = _sequence(item.get("data"), "image search item data")
    if not records:
        raise MalformedUpstreamPayload("image search item has no data record")
    record = _mapping(records[0], "image search data record")

    keywords = _sequence(record.get("keywords"), "image search keywords")
    return _build(
        ImageAsset,
        "image search item",
        id=str(_require(record, "image search data record", "nasa_id")),
        title=_optional_str(record.get("title")),
        description=_optional_str(record.get("description")),
        date_created=_optional_date(record.get("date_created"), "image search data record"),
        center=_optional_str(record.get("center")),
        keywords=[str(keyword) for keyword in keywords],
        thumbnail_url=thumbnail,
        media_type=str(record.get("media_type") or default_media_type),
        details_href=_optional_str(item.get("href")),
    )


def normalize_image_search(raw: Mapping[str, Any], default_media_type: str = "image") -> ImageSearchResult:
    """Keyword search collection. Items without any link are dropped."""
    raw = _mapping(raw, "image search payload")
    collection = _mapping(_require(raw, "image search payload", "collection"), "image search collection")
    metadata = collection.get("metadata") or {}
    total_hits = _mapping(metadata, "image search metadata").get("total_hits") or 0

    items: List[ImageAsset] = []
    skipped = 0
    for item in _sequence(collection.get("items"), "image search items"):
        asset = _normalize_image_item(item, default_media_type)
        if asset is None:
            skipped += 1
            continue
        items.append(asset)
    if skipped:
        logger.debug("Dropped %d image search items without links", skipped)

    try:
        total_hits = int(total_hits)
    except (TypeError, ValueError) as exc:
        raise MalformedUpstreamPayload(f"total_hits is not an integer: {total_hits!r}") from exc
    return _build(ImageSearchResult, "image search payload", items=items, total_hits=total_hits)


def _unit(raw: Mapping[str, Any], key: str, unit: str) -> Mapping[str, Any]:
    """Nested unit substructure such as ``estimated_diameter.meters``."""
    group = raw.get(key)
    if not isinstance(group, Mapping):
        return {}
    values = group.get(unit)
    return values if isinstance(values, Mapping) else {}


def _normalize_close_approach(raw: Any) -> CloseApproach:
    raw = _mapping(raw, "close approach record")
    velocity = raw.get("relative_velocity") if isinstance(raw.get("relative_velocity"), Mapping) else {}
    distance = raw.get("miss_distance") if isinstance(raw.get("miss_distance"), Mapping) else {}
    return _build(
        CloseApproach,
        "close approach record",
        date=_parse_date(_require(raw, "close approach record", "close_approach_date"), "close approach record"),
        date_full=_optional_str(raw.get("close_approach_date_full")),
        miss_distance_km=_optional_str(distance.get("kilometers")),
        relative_velocity_kmh=_optional_str(velocity.get("kilometers_per_hour")),
        relative_velocity_kps=_optional_str(velocity.get("kilometers_per_second")),
        orbiting_body=_optional_str(raw.get("orbiting_body")),
    )


def normalize_near_earth_object(raw: Mapping[str, Any]) -> NearEarthObject:
    raw = _mapping(raw, "near-Earth object")
    identifier = str(_require(raw, "near-Earth object", "id"))
    what = f"near-Earth object {identifier}"
    approaches = [
        _normalize_close_approach(record)
        for record in _sequence(raw.get("close_approach_data"), f"{what} close_approach_data")
    ]
    if not approaches:
        raise MalformedUpstreamPayload(f"{what} has no close approach data")

    diameter = _unit(raw, "estimated_diameter", "meters")
    return _build(
        NearEarthObject,
        what,
        id=identifier,
        neo_reference_id=_optional_str(raw.get("neo_reference_id")),
        name=str(_require(raw, what, "name")),
        absolute_magnitude_h=_optional_float(raw.get("absolute_magnitude_h"), f"{what} absolute_magnitude_h"),
        is_potentially_hazardous=bool(raw.get("is_potentially_hazardous_asteroid", False)),
        is_sentry_object=bool(raw.get("is_sentry_object", False)),
        estimated_diameter_min_m=_optional_float(diameter.get("estimated_diameter_min"), f"{what} diameter"),
        estimated_diameter_max_m=_optional_float(diameter.get("estimated_diameter_max"), f"{what} diameter"),
        jpl_url=_optional_str(raw.get("nasa_jpl_url")),
        approach=approaches[0],
        approaches=approaches,
    )


def normalize_neo_feed(raw: Mapping[str, Any]) -> NEOFeed:
    """Date-keyed feed into ascending day buckets with a computed element count."""
    raw = _mapping(raw, "NEO feed payload")
    grouped = _mapping(_require(raw, "NEO feed payload", "near_earth_objects"), "near_earth_objects")

    normalized: Dict[dt.date, List[NearEarthObject]] = {}
    for key, records in grouped.items():
        day = _parse_date(key, "near_earth_objects key")
        objects = [normalize_near_earth_object(record) for record in _sequence(records, f"objects for {key}")]
        normalized.setdefault(day, []).extend(objects)

    buckets: List[DayBucket] = flatten_feed(normalized)
    element_count = sum(len(bucket.objects) for bucket in buckets)

    reported = raw.get("element_count")
    if reported is not None and reported != element_count:
        logger.warning(
            "NEO feed element_count mismatch: upstream reported %s, counted %d; using counted value",
            reported,
            element_count,
        )
    return _build(NEOFeed, "NEO feed payload", element_count=element_count, buckets=buckets)
