import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from poketeams.api import (
    admin_router,
    cards_router,
    health_router,
    mystery_box_router,
    teams_router,
    users_router,
)
from poketeams.api.deps import get_allocator, get_catalog_client, get_rarity_cache
from poketeams.config import settings
from poketeams.db.database import close_db, init_db
from poketeams.models.failure import (
    ErrorResponse,
    FailureKind,
    FieldError,
    KnownError,
    ValidationErrorResponse,
)

logger = logging.getLogger(__name__)

# Request sections that carry no meaning for the client-facing field name
_LOCATION_PREFIXES = {"body", "query", "path", "header", "cookie"}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    await init_db()
    yield
    if get_catalog_client.cache_info().currsize:
        await get_catalog_client().close()
    get_allocator.cache_clear()
    get_rarity_cache.cache_clear()
    get_catalog_client.cache_clear()
    await close_db()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("poketeams"),
    lifespan=lifespan,
)

app.include_router(health_router)
app.include_router(users_router)
app.include_router(cards_router)
app.include_router(mystery_box_router)
app.include_router(teams_router)
app.include_router(admin_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    if exc.detail:
        logger.info("%s: %s (%s)", exc.internal_code, exc.message, exc.detail)
    body = exc.to_response().model_dump()
    field = getattr(exc, "field", None)
    if field:
        body["field"] = field
    return JSONResponse(status_code=exc.status_code, content=body)


def _field_name(loc: tuple[int | str, ...]) -> str:
    parts = [str(p) for p in loc]
    if parts and parts[0] in _LOCATION_PREFIXES:
        parts = parts[1:]
    return ".".join(parts)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [
        FieldError(field=_field_name(tuple(err.get("loc", ()))), message=err.get("msg", ""))
        for err in exc.errors()
    ]
    logger.info("Request validation failed: %s", [e.field for e in errors])
    body = ValidationErrorResponse(errors=errors)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body.model_dump())


@app.exception_handler(Exception)
async def unknown_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    body = ErrorResponse(
        message="Internal server error",
        internal_code=FailureKind.INTERNAL_ERROR.name,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body.model_dump()
    )


def run() -> None:
    """Run the server with uvicorn."""
    logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
    uvicorn.run("poketeams.main:app", host="0.0.0.0", port=8000)
