"""HTTP surface: one query endpoint plus a health probe."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from skygate.config import Settings, get_settings
from skygate.errors import QueryDocumentError
from skygate.gateway.dispatcher import QueryDispatcher, build_dispatcher
from skygate.gateway.query import parse_document
from skygate.ingest.nasa_api import NASAAdapters

logger = logging.getLogger(__name__)


def _document_error(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"data": None, "errors": [{"message": message}]})


def create_app(settings: Optional[Settings] = None, dispatcher: Optional[QueryDispatcher] = None) -> FastAPI:
    settings = settings or get_settings()
    if dispatcher is None:
        dispatcher = build_dispatcher(NASAAdapters.from_settings(settings), max_workers=settings.max_workers)

    app = FastAPI(title="skygate", description="Aggregated NASA data gateway")
    app.state.dispatcher = dispatcher
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("%s %s - %d (%.0fms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    @app.post("/query")
    async def run_query(request: Request) -> JSONResponse:
        try:
            document = await request.json()
        except ValueError:
            return _document_error("request body must be valid JSON")
        try:
            requests = parse_document(document)
            result = await run_in_threadpool(app.state.dispatcher.execute, requests)
        except QueryDocumentError as exc:
            logger.info("Rejected query document: %s", exc.message)
            return _document_error(exc.message)
        return JSONResponse(status_code=200, content=result.to_response())

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}

    return app
