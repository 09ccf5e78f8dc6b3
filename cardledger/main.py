import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from importlib.metadata import version as pkg_version

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cardledger.api import cards_router, health_router, inventory_router
from cardledger.config import settings
from cardledger.db.database import close_db, init_db
from cardledger.models.failure import ApiResponse, KnownError
from cardledger.services.card_identifier import build_identifier
from cardledger.sources.registry import build_http_client, build_resolver

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Create tables, then hold one HTTP client and resolver for the app's lifetime."""
    await init_db()

    async with build_http_client(settings) as http_client:
        app.state.resolver = build_resolver(settings, http_client)
        app.state.identifier = build_identifier(settings)
        try:
            yield
        finally:
            if app.state.identifier is not None:
                await app.state.identifier.close()
            await close_db()


app = FastAPI(
    title=settings.app_name,
    version=pkg_version("cardledger"),
    lifespan=lifespan,
)


@app.exception_handler(KnownError)
async def known_error_handler(_request: Request, exc: KnownError) -> JSONResponse:
    """Render known failures as their envelope with the error's status code."""
    logger.info(
        "KNOWN_FAILURE",
        extra={"kind": exc.kind.value, "status_code": exc.status_code, "detail": exc.detail},
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_response().model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def unknown_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("UNKNOWN_FAILURE", extra={"error_type": type(exc).__name__})
    return JSONResponse(
        status_code=500,
        content=ApiResponse.unknown_failure(detail=type(exc).__name__).model_dump(mode="json"),
    )


app.include_router(cards_router)
app.include_router(health_router)
app.include_router(inventory_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Tighten in production
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)
