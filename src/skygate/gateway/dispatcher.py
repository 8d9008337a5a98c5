"""Resolve a batch of top-level fields concurrently into one partial result."""
from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Type

from pydantic import ValidationError

from skygate.errors import FieldResolutionError, GatewayError, InvalidParameters, QueryDocumentError
from skygate.gateway.collector import ErrorCollector, FieldError
from skygate.ingest.models import ApodParams, CanonicalModel, FieldParams, ImageSearchParams, NeoFeedParams
from skygate.ingest.nasa_api import NASAAdapters
from skygate.processing.normalize import normalize_apod, normalize_image_search, normalize_neo_feed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldRequest:
    name: str
    args: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldOutcome:
    """Either a value or the error that replaced it."""

    field: str
    value: Optional[CanonicalModel] = None
    error: Optional[FieldResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class FieldResolver:
    """One (adapter, normalizer) pair behind a field name."""

    name: str
    params_model: Type[FieldParams]
    fetch: Callable[[Any], Mapping[str, Any]]
    normalize: Callable[[Any, Any], CanonicalModel]

    def parse_params(self, args: Mapping[str, Any]) -> FieldParams:
        try:
            return self.params_model.model_validate(dict(args))
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or self.name}: {error['msg']}"
                for error in exc.errors()
            )
            raise InvalidParameters(f"invalid arguments for '{self.name}': {details}") from exc

    def resolve(self, args: Mapping[str, Any]) -> FieldOutcome:
        try:
            params = self.parse_params(args)
            raw = self.fetch(params)
            value = self.normalize(raw, params)
        except GatewayError as exc:
            return FieldOutcome(self.name, error=FieldResolutionError(self.name, exc))
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected failure resolving '%s'", self.name)
            cause = GatewayError(f"internal error resolving '{self.name}': {exc.__class__.__name__}")
            return FieldOutcome(self.name, error=FieldResolutionError(self.name, cause))
        return FieldOutcome(self.name, value=value)


@dataclass
class GatewayResult:
    values: Dict[str, Optional[CanonicalModel]] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)

    def to_response(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "data": {name: value.to_json_dict() if value is not None else None for name, value in self.values.items()}
        }
        if self.errors:
            body["errors"] = [error.to_json_dict() for error in self.errors]
        return body


class QueryDispatcher:
    """Runs every requested field in its own worker and assembles the result."""

    def __init__(self, resolvers: Sequence[FieldResolver], max_workers: int = 4) -> None:
        self.resolvers: Dict[str, FieldResolver] = {resolver.name: resolver for resolver in resolvers}
        self.max_workers = max_workers

    @property
    def field_names(self) -> List[str]:
        return list(self.resolvers)

    def check(self, requests: Sequence[FieldRequest]) -> None:
        seen = set()
        for request in requests:
            if request.name not in self.resolvers:
                raise QueryDocumentError(
                    f"unknown field '{request.name}'; expected one of {', '.join(self.field_names)}",
                    field=request.name,
                )
            if request.name in seen:
                raise QueryDocumentError(f"field '{request.name}' requested more than once", field=request.name)
            seen.add(request.name)

    def execute(self, requests: Sequence[FieldRequest]) -> GatewayResult:
        self.check(requests)
        result = GatewayResult()
        if not requests:
            return result

        workers = min(self.max_workers, len(requests))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="skygate-field") as executor:
            futures = [executor.submit(self.resolvers[request.name].resolve, request.args) for request in requests]
            outcomes = [future.result() for future in futures]

        collector = ErrorCollector()
        for outcome in outcomes:
            result.values[outcome.field] = outcome.value
            if not outcome.ok:
                entry = collector.add(outcome.error)
                logger.warning("Field '%s' failed (%s): %s", entry.field, entry.kind.value, entry.message)
        result.errors = collector.errors
        return result


def build_default_resolvers(adapters: NASAAdapters) -> List[FieldResolver]:
    return [
        FieldResolver(
            name="apod",
            params_model=ApodParams,
            fetch=adapters.apod.fetch,
            normalize=lambda raw, params: normalize_apod(raw),
        ),
        FieldResolver(
            name="images",
            params_model=ImageSearchParams,
            fetch=adapters.images.fetch,
            normalize=lambda raw, params: normalize_image_search(raw, default_media_type=params.media_type),
        ),
        FieldResolver(
            name="neo",
            params_model=NeoFeedParams,
            fetch=adapters.neo.fetch,
            normalize=lambda raw, params: normalize_neo_feed(raw),
        ),
    ]


def build_dispatcher(adapters: NASAAdapters, max_workers: int = 4) -> QueryDispatcher:
    return QueryDispatcher(build_default_resolvers(adapters), max_workers=max_workers)
