# Copyright (c) 2024 OpenMined
# SPDX-License-Identifier: Apache-2.0
"""HTTP routes for the anchor registry.

Routes translate requests into :class:`AnchorKeyCache` calls and cache
errors into status codes.  String results are returned as ``text/plain``;
lists, booleans and numbers as JSON.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from anchor_registry.cache import AnchorKeyCache
from anchor_registry.exceptions import (
    AllocationConflictError,
    AnchorNotFoundError,
    AnchorSpaceExhaustedError,
    InvalidAnchorKeyError,
    StoreUnavailableError,
)

from .factory import create_cache
from .schema import Settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/anchors")


def _cache(request: Request) -> AnchorKeyCache:
    return request.app.state.cache


def _require_key(value: str | None) -> str:
    if value is None or not value.strip():
        raise InvalidAnchorKeyError("anchorKey must not be blank")
    return value


# Fixed paths must be registered before "/{anchor_number}".


@router.get("/last", response_class=PlainTextResponse)
async def get_last(request: Request) -> str:
    anchor_key = await _cache(request).get_last_anchor_key()
    return anchor_key or ""


@router.get("/all")
async def get_all(request: Request) -> list[str]:
    return await _cache(request).get_all_anchor_keys()


@router.get("/all_as_string", response_class=PlainTextResponse)
async def get_all_as_string(request: Request) -> str:
    return await _cache(request).get_all_anchor_keys_as_string()


@router.get("/delete_all")
async def delete_all(request: Request) -> bool:
    return await _cache(request).delete_all_anchor_keys()


@router.get("/delete")
async def delete(request: Request, anchor_key: str = Query("", alias="anchorKey")) -> bool:
    return await _cache(request).delete_anchor_key(anchor_key)


@router.get("/{anchor_number}", response_class=PlainTextResponse)
async def get_by_number(request: Request, anchor_number: int) -> str:
    return await _cache(request).get_anchor_key(anchor_number)


@router.post("")
async def post_body(request: Request) -> int:
    anchor_key = _require_key((await request.body()).decode("utf-8", errors="replace"))
    return await _cache(request).allocate(anchor_key)


@router.post("/key")
async def post_key(
    request: Request,
    anchor_key: str | None = Query(None, alias="anchorKey"),
) -> int:
    return await _cache(request).allocate(_require_key(anchor_key))


@router.post("/registered_key")
async def post_registered_key(
    request: Request,
    anchor_key: str | None = Query(None, alias="anchorKey"),
    object_name: str | None = Query(None, alias="objectName"),
) -> int:
    return await _cache(request).allocate(_require_key(anchor_key), object_name)


def _install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(AnchorNotFoundError)
    async def not_found(request: Request, exc: AnchorNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"error": str(exc)})

    @app.exception_handler(InvalidAnchorKeyError)
    async def invalid_key(request: Request, exc: InvalidAnchorKeyError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(AllocationConflictError)
    @app.exception_handler(AnchorSpaceExhaustedError)
    async def conflict(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"error": str(exc), "error_type": type(exc).__name__},
        )

    @app.exception_handler(StoreUnavailableError)
    async def unavailable(request: Request, exc: StoreUnavailableError) -> JSONResponse:
        logger.error("Store unavailable on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"error": str(exc)})

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content={"error": "internal_error", "error_type": type(exc).__name__},
        )


def create_app(
    cache: AnchorKeyCache | None = None,
    settings: Settings | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        cache: Cache to serve.  When omitted one is built from *settings*
               (or from the environment) at startup and closed at shutdown.
        settings: Service configuration, used only when *cache* is omitted.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if cache is not None:
            yield
            return
        owned = create_cache(settings or Settings.from_env())
        app.state.cache = owned
        try:
            await owned.ensure_initialized()
            yield
        finally:
            await owned.close()

    app = FastAPI(title="Anchor Registry", version="1.0.0", lifespan=lifespan)
    if cache is not None:
        app.state.cache = cache

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(router)
    _install_error_handlers(app)
    return app
