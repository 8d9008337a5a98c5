"""Per-field failure accumulation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterator, List

from skygate.errors import ErrorKind, FieldResolutionError


@dataclass(frozen=True)
class FieldError:
    field: str
    kind: ErrorKind
    message: str

    @classmethod
    def from_resolution_error(cls, error: FieldResolutionError) -> "FieldError":
        return cls(field=error.field, kind=error.kind, message=error.message)

    def to_json_dict(self) -> Dict[str, object]:
        return {"message": self.message, "path": self.field, "extensions": {"kind": self.kind.value}}


class ErrorCollector:
    """Append-only list of field errors; never interrupts dispatch."""

    def __init__(self) -> None:
        self._errors: List[FieldError] = []

    def add(self, error: FieldResolutionError) -> FieldError:
        entry = FieldError.from_resolution_error(error)
        self._errors.append(entry)
        return entry

    @property
    def errors(self) -> List[FieldError]:
        return list(self._errors)

    def __iter__(self) -> Iterator[FieldError]:
        return iter(list(self._errors))

    def __len__(self) -> int:
        return len(self._errors)
