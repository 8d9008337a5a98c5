"""CLI utilities for querying NASA providers through the gateway."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn
from pydantic import ValidationError

from skygate.api.app import create_app
from skygate.config import get_settings
from skygate.errors import GatewayError, InvalidParameters
from skygate.gateway.dispatcher import build_dispatcher
from skygate.gateway.query import parse_document
from skygate.ingest.models import ApodParams, ImageSearchParams, NeoFeedParams
from skygate.ingest.nasa_api import NASAAdapters

app = typer.Typer(help="Query NASA APIs using the configured API key")


def configure_logging(verbose: bool = False, level: Optional[str] = None) -> None:
    if verbose:
        level = "DEBUG"
    logging.basicConfig(
        level=(level or get_settings().log_level).upper(),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _write_output(data: dict, output: Path | None) -> None:
    payload = json.dumps(data, indent=2)
    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(payload, encoding="utf-8")
        typer.secho(f"Response written to {output}", fg=typer.colors.GREEN)
    else:
        typer.echo(payload)


def _adapters() -> NASAAdapters:
    return NASAAdapters.from_settings(get_settings())


def _params(model, **values):
    try:
        return model(**values)
    except ValidationError as exc:
        raise InvalidParameters(f"invalid arguments: {exc.errors()[0]['msg']}") from exc


def _fail(error: GatewayError) -> None:
    typer.secho(f"{error.kind.value}: {error.message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    configure_logging(verbose)


@app.command()
def apod(date: str = typer.Option(None, help="Target date YYYY-MM-DD"), output: Path | None = None) -> None:
    """Fetch Astronomy Picture of the Day metadata."""
    try:
        data = _adapters().apod.fetch(_params(ApodParams, date=date))
    except GatewayError as exc:
        _fail(exc)
    _write_output(data, output)


@app.command()
def search_images(
    query: str = typer.Argument(..., help="Search phrase"),
    media_type: str = typer.Option("image", help="Media type filter"),
    page: int = typer.Option(1, min=1, help="Results page to fetch"),
    output: Path | None = typer.Option(None, help="Optional path to dump JSON response"),
) -> None:
    """Search NASA Image and Video Library."""
    try:
        data = _adapters().images.fetch(_params(ImageSearchParams, query=query, media_type=media_type, page=page))
    except GatewayError as exc:
        _fail(exc)
    _write_output(data, output)


@app.command()
def neo(
    start_date: str = typer.Option(None, help="First day YYYY-MM-DD (default: today, UTC)"),
    end_date: str = typer.Option(None, help="Last day YYYY-MM-DD (default: start + 7 days)"),
    output: Path | None = typer.Option(None, help="Optional path to dump JSON response"),
) -> None:
    """Fetch the raw near-Earth object feed."""
    try:
        data = _adapters().neo.fetch(_params(NeoFeedParams, start_date=start_date, end_date=end_date))
    except GatewayError as exc:
        _fail(exc)
    _write_output(data, output)


@app.command()
def query(
    fields: List[str] = typer.Argument(None, help="Fields to resolve, e.g. apod images neo"),
    document: Path | None = typer.Option(None, help="JSON query document (overrides FIELDS)"),
    output: Path | None = typer.Option(None, help="Optional path to dump JSON response"),
) -> None:
    """Resolve fields through the gateway and print the combined response."""
    settings = get_settings()
    dispatcher = build_dispatcher(NASAAdapters.from_settings(settings), max_workers=settings.max_workers)
    try:
        raw_document = json.loads(document.read_text(encoding="utf-8")) if document else {"fields": fields or []}
        result = dispatcher.execute(parse_document(raw_document))
    except ValueError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=2)
    _write_output(result.to_response(), output)


@app.command()
def serve(
    host: str = typer.Option(None, help="Bind address (default from settings)"),
    port: int = typer.Option(None, help="Port (default from settings)"),
) -> None:
    """Run the HTTP gateway."""
    settings = get_settings()
    uvicorn.run(create_app(settings), host=host or settings.host, port=port or settings.port)


if __name__ == "__main__":  # pragma: no cover
    app()
