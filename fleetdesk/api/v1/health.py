"""Health check endpoint with credential store connectivity check."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from fleetdesk.core.config import APP_VERSION, Settings, get_settings
from fleetdesk.core.database import check_db_connected, get_db
from fleetdesk.schemas.health import HealthResponse

router = APIRouter()


@router.get("/", response_model=HealthResponse)
async def get_health(
    db: Annotated[AsyncSession, Depends(get_db)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> HealthResponse:
    """Always 200 while the process is up; `database` says whether the store answered."""
    reachable = await check_db_connected(db)
    return HealthResponse(
        version=APP_VERSION,
        environment=settings.APP_ENV,
        database="connected" if reachable else "disconnected",
    )
