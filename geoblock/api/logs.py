"""
Audit log endpoints — blocked attempt history and manual retention purge.
"""
import logging

from fastapi import APIRouter, Depends, Query

from geoblock.api.deps import PaginationParams, get_blocking_service, get_pagination
from geoblock.schemas.api_responses import (
    AttemptLogResponse,
    PaginatedResponse,
    PurgeAttemptsResponse,
)
from geoblock.services.blocking import BlockingService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["logs"])


@router.get(
    "/api/logs/blocked-attempts",
    response_model=PaginatedResponse[AttemptLogResponse],
)
async def get_blocked_attempts(
    pagination: PaginationParams = Depends(get_pagination),
    service: BlockingService = Depends(get_blocking_service),
):
    """Paginated attempt log, newest first."""
    page = service.list_attempts(pagination.search_term, pagination.page, pagination.page_size)
    return PaginatedResponse[AttemptLogResponse](
        items=[AttemptLogResponse(**a.model_dump()) for a in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
    )


@router.delete("/api/logs/blocked-attempts", response_model=PurgeAttemptsResponse)
async def purge_blocked_attempts(
    older_than_days: int = Query(..., alias="olderThanDays"),
    service: BlockingService = Depends(get_blocking_service),
):
    """Delete attempt log entries older than olderThanDays (0-3650)."""
    removed = service.purge_attempts(older_than_days)
    logger.info("Purged %d attempt log entries older than %d days", removed, older_than_days)
    return PurgeAttemptsResponse(removed=removed)
