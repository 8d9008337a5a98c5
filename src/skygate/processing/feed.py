"""Flatten a date-keyed grouping into an ordered sequence of day buckets."""
from __future__ import annotations

import datetime as dt
from typing import Iterable, List, Mapping

from skygate.ingest.models import DayBucket, NearEarthObject


def flatten_feed(grouped: Mapping[dt.date, Iterable[NearEarthObject]]) -> List[DayBucket]:
    """Return one bucket per date, ascending by calendar date.

    Keys are dates, so duplicates cannot occur; object order within a day is
    preserved as given.
    """
    return [DayBucket(date=day, objects=list(grouped[day])) for day in sorted(grouped)]
