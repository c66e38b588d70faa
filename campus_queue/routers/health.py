import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campus_queue.core.cache import cache_manager
from campus_queue.core.change_feed import change_feed
from campus_queue.core.dependencies import get_db
from campus_queue.schemas import SystemHealth

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health", response_model=list[SystemHealth])
def health_check(db: Session = Depends(get_db)) -> list[SystemHealth]:
    components: list[SystemHealth] = []
    try:
        db.execute(text("SELECT 1"))
        components.append(SystemHealth(component="database", status="ok"))
    except SQLAlchemyError as exc:
        logger.exception("Database health check failed")
        components.append(SystemHealth(component="database", status="error", detail=str(exc)))

    components.append(SystemHealth(component="cache", status="ok", detail=cache_manager.get_store().kind))
    components.append(
        SystemHealth(component="change_feed", status="ok", detail=f"{change_feed.subscriber_count()} subscribers")
    )
    return components
