"""Parse structured query documents into field requests.

A document lists the wanted top-level fields in order, optionally with
arguments, and may carry a variable map referenced as ``"$name"``::

    {
        "fields": ["apod", {"name": "images", "args": {"query": "$term"}}],
        "variables": {"term": "nebula"}
    }
"""
from __future__ import annotations

from typing import Annotated, Any, Dict, List, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from skygate.errors import QueryDocumentError
from skygate.gateway.dispatcher import FieldRequest


class FieldSelection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    args: Dict[str, Any] = Field(default_factory=dict)


class QueryDocument(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fields: List[Union[Annotated[str, Field(min_length=1)], FieldSelection]] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)


def _substitute(value: Any, variables: Mapping[str, Any], field_name: str) -> Any:
    if isinstance(value, str) and value.startswith("$") and len(value) > 1:
        name = value[1:]
        if name not in variables:
            raise QueryDocumentError(f"variable '${name}' used by '{field_name}' is not defined", field=field_name)
        return variables[name]
    return value


def parse_document(document: Any) -> List[FieldRequest]:
    if not isinstance(document, Mapping):
        raise QueryDocumentError("query document must be a JSON object")
    try:
        parsed = QueryDocument.model_validate(document)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise QueryDocumentError(f"invalid query document at '{location}': {first['msg']}") from exc

    requests: List[FieldRequest] = []
    for entry in parsed.fields:
        selection = FieldSelection(name=entry) if isinstance(entry, str) else entry
        args = {key: _substitute(value, parsed.variables, selection.name) for key, value in selection.args.items()}
        requests.append(FieldRequest(name=selection.name, args=args))
    return requests
