from __future__ import annotations

import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

import httpx
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import Settings, load_settings, missing_settings
from .errors import ConfigurationError, InvalidRequestError, MethodNotAllowedError, RelayError
from .handlers import RequestContext, check_status, submit_job
from .object_store import build_object_store
from .runway import RunwayClient
from .task_store import build_task_store

logger = logging.getLogger("video-relay")

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, X-Runway-Version",
}

ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]


def _log_startup_config(settings: Settings) -> None:
    def _presence(value: Any) -> str:
        return "set" if value else "missing"

    logger.info(
        "Startup config presence: RUNWAYML_API_KEY=%s PUBLIC_BASE_URL=%s S3_BUCKET=%s REDIS_URL=%s "
        "RUNWAY_API_BASE=%s",
        _presence(settings.runway_api_key),
        _presence(settings.public_base_url),
        _presence(settings.s3_bucket),
        _presence(settings.redis_url),
        settings.runway_api_base,
    )


def _json(request: Request, payload: dict[str, Any], status_code: int = 200) -> JSONResponse:
    settings: Settings = request.app.state.settings
    return JSONResponse(
        payload,
        status_code=status_code,
        headers={"Access-Control-Allow-Origin": settings.cors_allow_origin},
    )


def _error(request: Request, exc: RelayError) -> JSONResponse:
    return _json(request, {"success": False, "error": exc.message}, status_code=exc.status_code)


def _build_context(request: Request, background: BackgroundTasks) -> RequestContext:
    state = request.app.state
    missing = missing_settings(state.settings, state.objects, state.tasks)
    if missing:
        raise ConfigurationError(
            "Missing required configuration: "
            + ", ".join(missing)
            + ". Set the Runway API key, the public bucket URL, the S3 bucket and the Redis URL."
        )
    return RequestContext(
        settings=state.settings,
        objects=state.objects,
        tasks=state.tasks,
        runway=RunwayClient(
            state.http,
            api_key=state.settings.runway_api_key,
            base_url=state.settings.runway_api_base,
            api_version=state.settings.runway_api_version,
        ),
        background=background,
    )


async def _read_json(request: Request) -> Any:
    body = await request.body()
    try:
        return json.loads(body)
    except ValueError as e:
        raise InvalidRequestError("Invalid status check request.") from e


async def _dispatch(request: Request, background: BackgroundTasks) -> dict[str, Any]:
    if request.method != "POST":
        raise MethodNotAllowedError()

    ctx = _build_context(request, background)
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type:
        async with request.form() as form:
            return await submit_job(ctx, form)
    if "application/json" in content_type:
        return await check_status(ctx, await _read_json(request))
    raise InvalidRequestError("Invalid request content-type.")


def create_app(
    settings: Optional[Settings] = None,
    *,
    object_store: Any = None,
    task_store: Any = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay application.

    Collaborators passed in replace the ones built from settings; tests use
    this to inject in-memory stores and a mocked Runway transport.
    """

    @asynccontextmanager
    async def _lifespan(app: FastAPI):
        resolved = settings if settings is not None else load_settings()
        _log_startup_config(resolved)
        app.state.settings = resolved
        app.state.objects = object_store if object_store is not None else build_object_store(resolved)
        app.state.tasks = task_store if task_store is not None else build_task_store(resolved)
        app.state.http = httpx.AsyncClient(timeout=resolved.timeout, transport=transport)
        try:
            yield
        finally:
            await app.state.http.aclose()

    app = FastAPI(title="Video Relay", version="1.0", lifespan=_lifespan)

    @app.get("/health")
    async def health() -> PlainTextResponse:
        return PlainTextResponse("OK")

    @app.api_route("/ai", methods=ALL_METHODS)
    async def relay(request: Request, background: BackgroundTasks) -> Response:
        if request.method == "OPTIONS":
            headers = {"Access-Control-Allow-Origin": request.app.state.settings.cors_allow_origin}
            headers.update(PREFLIGHT_HEADERS)
            return Response(status_code=200, headers=headers)

        try:
            return _json(request, await _dispatch(request, background))
        except RelayError as exc:
            logger.error(f"{exc.kind} error on {request.method} {request.url.path}: {exc.message}")
            return _error(request, exc)
        except Exception as exc:
            logger.exception("Unhandled error while relaying request")
            return _error(request, RelayError(str(exc) or exc.__class__.__name__))

    return app


app = create_app()
