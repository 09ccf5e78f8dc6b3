"""
Health check endpoints.

Liveness, plus a readiness check that looks at the database and reports
which catalog sources have credentials.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import BaseModel, Field
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from cardledger.db.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    catalogs: dict[str, bool] | None = Field(
        default=None,
        description="Catalog source -> whether it is configured",
    )


def _catalog_status(request: Request) -> dict[str, bool] | None:
    resolver = getattr(request.app.state, "resolver", None)
    if resolver is None:
        return None
    return {
        source.source_tag.value: bool(getattr(source, "configured", True))
        for source in resolver.sources
    }


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    request: Request,
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness check.

    Returns 503 if the inventory database is unreachable. Catalog sources
    are reported but never fail readiness, since resolution degrades to
    the remaining sources.
    """
    catalogs = _catalog_status(request)
    try:
        await session.execute(text("SELECT 1"))
    except (SQLAlchemyError, OSError) as e:
        logger.warning("READINESS_DB_UNAVAILABLE", extra={"error": str(e)})
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected", catalogs=catalogs)
    return HealthResponse(status="ready", database="connected", catalogs=catalogs)
