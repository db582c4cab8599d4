from __future__ import annotations

"""
Admin API surface for the hobbit quiz event table.

Design intent:
- Keep handlers thin: authenticate, call the gateway, map outcomes to status codes.
- Never leak store or driver detail to callers; log it server-side instead.
- Queue change notifications as background work that runs after the response.
"""

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import uvicorn
from fastapi import APIRouter, BackgroundTasks, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.auth.credentials import (
    ADMIN_TOKEN_HEADER,
    AdminNotConfiguredError,
    UnauthorizedError,
    check_admin_credentials,
)
from backend.events.gateway import (
    EventGateway,
    EventNotFoundError,
    NoFieldsToUpdateError,
    create_event_engine,
)
from backend.internal_core.config import (
    ALLOWED_HEADERS,
    ALLOWED_METHODS,
    ALLOWED_ORIGINS,
    AdminConfig,
    load_config,
)
from backend.internal_core.contracts import ErrorBody, EventPatch, EventRecord, HealthResponse
from backend.notify.webhooks import WebhookNotifier

logger = logging.getLogger(__name__)

ADMIN_PREFIX = "/api/admin"


def _get_config(request: Request) -> AdminConfig:
    return request.app.state.config


def _get_gateway(request: Request) -> EventGateway:
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError("Event store is not initialized; check DATABASE_URL")
    return gateway


def _get_notifier(request: Request) -> WebhookNotifier:
    return request.app.state.notifier


async def require_admin(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    x_admin_token: Optional[str] = Header(default=None, alias=ADMIN_TOKEN_HEADER),
) -> None:
    try:
        check_admin_credentials(_get_config(request), authorization, x_admin_token)
    except AdminNotConfiguredError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    except UnauthorizedError as exc:
        raise HTTPException(status_code=401, detail=str(exc)) from exc


async def _read_patch_body(request: Request) -> EventPatch:
    media_type = request.headers.get("content-type", "").split(";", 1)[0].strip().lower()
    if media_type != "application/json":
        # Only JSON bodies are parsed; anything else carries no fields.
        return EventPatch()
    raw = await request.body()
    if not raw.strip():
        return EventPatch()
    try:
        data: Any = json.loads(raw)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Invalid request") from exc
    if not isinstance(data, dict):
        raise HTTPException(status_code=400, detail="Invalid request")
    try:
        return EventPatch.model_validate(data)
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail="Invalid request") from exc


_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    status: {"model": ErrorBody} for status in (400, 401, 404, 500)
}

admin_router = APIRouter(
    prefix=ADMIN_PREFIX,
    dependencies=[Depends(require_admin)],
    responses=_ERROR_RESPONSES,
)


@admin_router.get("/events", response_model=list[EventRecord])
async def list_events(
    request: Request,
    player_id: Optional[str] = Query(default=None, alias="playerId"),
) -> list[EventRecord]:
    try:
        return await _get_gateway(request).list_events(player_id)
    except Exception as exc:
        logger.exception("Error fetching events")
        raise HTTPException(status_code=500, detail="Failed to fetch events") from exc


@admin_router.patch("/events/{event_id}", response_model=EventRecord)
async def update_event(
    event_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
) -> EventRecord:
    patch = await _read_patch_body(request)
    # Body is validated before any store access, so an empty patch on an
    # unknown id is still a 400.
    if patch.is_empty():
        raise HTTPException(status_code=400, detail="No fields to update")

    try:
        updated = await _get_gateway(request).update_event(event_id, patch)
    except NoFieldsToUpdateError as exc:
        raise HTTPException(status_code=400, detail="No fields to update") from exc
    except EventNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc
    except Exception as exc:
        logger.exception("Error updating event id=%s", event_id)
        raise HTTPException(status_code=500, detail="Failed to update event") from exc

    background_tasks.add_task(_get_notifier(request).notify_updated, updated)
    return updated


@admin_router.delete("/events/{event_id}", status_code=204)
async def delete_event(
    event_id: int,
    request: Request,
    background_tasks: BackgroundTasks,
) -> Response:
    try:
        deleted_id = await _get_gateway(request).delete_event(event_id)
    except EventNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Event not found") from exc
    except Exception as exc:
        logger.exception("Error deleting event id=%s", event_id)
        raise HTTPException(status_code=500, detail="Failed to delete event") from exc

    background_tasks.add_task(_get_notifier(request).notify_deleted, deleted_id)
    return Response(status_code=204)


async def health() -> HealthResponse:
    return HealthResponse()


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


@asynccontextmanager
async def _lifespan(app: FastAPI) -> AsyncIterator[None]:
    config: AdminConfig = app.state.config
    owned: Optional[EventGateway] = None

    if app.state.gateway is None:
        if config.database_url:
            try:
                owned = EventGateway(create_event_engine(config.database_url))
            except Exception:
                logger.exception("Database engine could not be created")
            app.state.gateway = owned
        else:
            logger.error("DATABASE_URL is not configured; admin routes will fail")

    if app.state.gateway is not None:
        try:
            await app.state.gateway.ping()
            logger.info("Database connected successfully")
        except Exception:
            logger.exception("Database connection error")

    try:
        yield
    finally:
        if owned is not None:
            await owned.dispose()


def create_app(
    config: Optional[AdminConfig] = None,
    *,
    gateway: Optional[EventGateway] = None,
    notifier: Optional[WebhookNotifier] = None,
) -> FastAPI:
    resolved = config if config is not None else load_config()

    app = FastAPI(title="hobbit quiz admin service", lifespan=_lifespan)
    app.state.config = resolved
    app.state.gateway = gateway
    app.state.notifier = notifier if notifier is not None else WebhookNotifier.from_config(resolved)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(ALLOWED_ORIGINS),
        allow_credentials=False,
        allow_methods=list(ALLOWED_METHODS),
        allow_headers=list(ALLOWED_HEADERS),
    )
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    app.add_api_route("/api/health", health, methods=["GET"], response_model=HealthResponse)
    app.include_router(admin_router)
    return app


def run() -> None:
    config = load_config()
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server running on http://localhost:%s", config.port)
    logger.info("Admin routes available at %s/*", ADMIN_PREFIX)
    uvicorn.run(create_app(config), host="0.0.0.0", port=config.port, log_level="info")


app = create_app()
