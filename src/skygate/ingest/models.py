"""Canonical entities and typed per-field parameters."""
from __future__ import annotations

import datetime as dt
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CanonicalModel(BaseModel):
    """Immutable entity serialized with camelCase keys."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AstronomyPicture(CanonicalModel):
    title: str
    explanation: str
    url: str
    hdurl: Optional[str] = None
    date: dt.date
    media_type: Literal["image", "video"]
    copyright: Optional[str] = None


class ImageAsset(CanonicalModel):
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    date_created: Optional[dt.date] = None
    center: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    thumbnail_url: str = Field(..., min_length=1)
    media_type: str
    details_href: Optional[str] = None


class ImageSearchResult(CanonicalModel):
    items: List[ImageAsset] = Field(default_factory=list)
    total_hits: int = Field(default=0, ge=0)


class CloseApproach(CanonicalModel):
    date: dt.date
    date_full: Optional[str] = None
    miss_distance_km: Optional[str] = None
    relative_velocity_kmh: Optional[str] = None
    relative_velocity_kps: Optional[str] = None
    orbiting_body: Optional[str] = None


class NearEarthObject(CanonicalModel):
    id: str
    neo_reference_id: Optional[str] = None
    name: str
    absolute_magnitude_h: Optional[float] = None
    is_potentially_hazardous: bool = False
    is_sentry_object: bool = False
    estimated_diameter_min_m: Optional[float] = None
    estimated_diameter_max_m: Optional[float] = None
    jpl_url: Optional[str] = None
    approach: CloseApproach
    approaches: List[CloseApproach] = Field(default_factory=list)


class DayBucket(CanonicalModel):
    date: dt.date
    objects: List[NearEarthObject] = Field(default_factory=list)


class NEOFeed(CanonicalModel):
    element_count: int = Field(..., ge=0)
    buckets: List[DayBucket] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_invariants(self) -> "NEOFeed":
        dates = [bucket.date for bucket in self.buckets]
        if any(later <= earlier for earlier, later in zip(dates, dates[1:])):
            raise ValueError("buckets must be strictly ascending by date")
        if self.element_count != sum(len(bucket.objects) for bucket in self.buckets):
            raise ValueError("element_count must equal the number of objects across buckets")
        return self


class FieldParams(BaseModel):
    """Arguments accepted by one top-level field."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel, extra="forbid")


class ApodParams(FieldParams):
    date: Optional[dt.date] = None


class ImageSearchParams(FieldParams):
    query: str = Field(default="galaxy", min_length=1)
    media_type: str = "image"
    page: int = Field(default=1, ge=1)


class NeoFeedParams(FieldParams):
    start_date: Optional[dt.date] = None
    end_date: Optional[dt.date] = None
