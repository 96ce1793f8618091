"""FastAPI application exposing the shared-instant world clock board."""

from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager
from typing import List

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.anchor import AnchorSynchronizer, SyncState, UnknownLocationError
from core.board import render_board
from core.catalog import CatalogError, location_from_record, resolve_default_locations
from core.labels import DisplayFormat, time_options
from models import (
    BoardResponse,
    ErrorResponse,
    HealthResponse,
    LocationRecord,
    LocationView,
    MoveRequest,
    OrderUpdate,
    TimeEdit,
    TimeOption,
)

logging.basicConfig(level=logging.INFO, format="%(message)s")
LOGGER = logging.getLogger("timesync-api")

APP_DESCRIPTION = "Compare wall-clock time across locations anchored to one shared instant"

DEFAULT_CORS_ORIGINS = "http://localhost:5173"


def _cors_origins() -> List[str]:
    raw = os.environ.get("TIMESYNC_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    try:
        locations = resolve_default_locations()
    except CatalogError as exc:
        LOGGER.error(json.dumps({"event": "catalog_load_failed", "error": str(exc)}))
        raise
    app.state.synchronizer = AnchorSynchronizer(locations)
    state = app.state.synchronizer.initialize()
    LOGGER.info(
        json.dumps(
            {
                "event": "startup",
                "locations": [location.id for location in state.locations],
                "instant": state.instant.isoformat(),
            }
        )
    )
    yield


app = FastAPI(
    title="Timesync API",
    description=APP_DESCRIPTION,
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _synchronizer(request: Request) -> AnchorSynchronizer:
    return request.app.state.synchronizer


def _board(state: SyncState, display_format: DisplayFormat = DisplayFormat.h24) -> BoardResponse:
    return BoardResponse(
        instant=state.instant,
        anchor_minutes=state.anchor_minutes,
        format=display_format,
        home_id=state.home.id if state.home else None,
        locations=[LocationView(**row) for row in render_board(state, display_format)],
        time_options=[
            TimeOption(value=value, label=label) for value, label in time_options(display_format)
        ],
    )


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    payload = ErrorResponse(code=code, error=message)
    LOGGER.error(json.dumps({"event": "error", "code": code, "message": message}))
    return JSONResponse(status_code=status_code, content=payload.model_dump())


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = ", ".join(error["msg"] for error in exc.errors())
    return _error_response(422, "validation_error", messages)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail
    if isinstance(detail, dict):
        message = detail.get("error") or detail.get("message") or str(detail)
    elif isinstance(detail, list):
        message = ", ".join(str(item) for item in detail)
    else:
        message = str(detail)
    return _error_response(exc.status_code, f"http_{exc.status_code}", message)


@app.exception_handler(UnknownLocationError)
async def unknown_location_handler(request: Request, exc: UnknownLocationError) -> JSONResponse:
    return _error_response(404, "unknown_location", f"Unknown location: {exc.args[0]}")


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    LOGGER.exception("Unhandled exception", exc_info=exc)
    return _error_response(500, "internal_error", "Unhandled server error")


@app.get("/health", response_model=HealthResponse)
def health(request: Request) -> HealthResponse:
    state = _synchronizer(request).state
    return HealthResponse(ok=True, locations=len(state.locations), instant=state.instant)


@app.get("/board", response_model=BoardResponse, responses=ERROR_RESPONSES)
def board(request: Request, format: DisplayFormat = DisplayFormat.h24) -> BoardResponse:
    return _board(_synchronizer(request).state, format)


@app.post("/locations", response_model=BoardResponse, responses=ERROR_RESPONSES)
def add_location(record: LocationRecord, request: Request) -> BoardResponse:
    try:
        location = location_from_record(record.model_dump())
        state = _synchronizer(request).add_location(location)
    except (CatalogError, ValueError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _board(state)


@app.delete("/locations/{location_id}", response_model=BoardResponse, responses=ERROR_RESPONSES)
def remove_location(location_id: str, request: Request) -> BoardResponse:
    return _board(_synchronizer(request).remove_location(location_id))


@app.put("/time", response_model=BoardResponse, responses=ERROR_RESPONSES)
def edit_home_time(edit: TimeEdit, request: Request) -> BoardResponse:
    return _board(_synchronizer(request).edit_authoritative_time(edit.minutes))


@app.put("/locations/{location_id}/time", response_model=BoardResponse, responses=ERROR_RESPONSES)
def edit_location_time(location_id: str, edit: TimeEdit, request: Request) -> BoardResponse:
    return _board(_synchronizer(request).edit_row_time(location_id, edit.minutes))


@app.post("/locations/{location_id}/promote", response_model=BoardResponse, responses=ERROR_RESPONSES)
def promote_location(location_id: str, request: Request) -> BoardResponse:
    synchronizer = _synchronizer(request)
    if synchronizer.find(location_id) is None:
        raise UnknownLocationError(location_id)
    return _board(synchronizer.promote(location_id))


@app.put("/order", response_model=BoardResponse, responses=ERROR_RESPONSES)
def reorder(update: OrderUpdate, request: Request) -> BoardResponse:
    try:
        state = _synchronizer(request).reorder(update.ids)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _board(state)


@app.post("/order/move", response_model=BoardResponse, responses=ERROR_RESPONSES)
def move(request_body: MoveRequest, request: Request) -> BoardResponse:
    try:
        state = _synchronizer(request).move(request_body.old_index, request_body.new_index)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return _board(state)


@app.post("/reset", response_model=BoardResponse, responses=ERROR_RESPONSES)
def reset(request: Request) -> BoardResponse:
    return _board(_synchronizer(request).initialize())
