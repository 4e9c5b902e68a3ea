"""Health check: datastore reachability and image store configuration."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from smartlink.core.config import get_settings
from smartlink.core.database import check_db_connected, get_db
from smartlink.schemas.health import HealthResponse
from smartlink.services.image_store import is_configured

router = APIRouter()


@router.get("", response_model=HealthResponse)
def get_health(db: Annotated[Session, Depends(get_db)]) -> HealthResponse:
    settings = get_settings()
    return HealthResponse(
        environment=settings.APP_ENV,
        database="connected" if check_db_connected(db) else "disconnected",
        image_store="configured" if is_configured(settings) else "unconfigured",
    )
