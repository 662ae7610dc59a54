"""
Country block endpoints — block, unblock, list, temporal block, validate.
"""
import logging

from fastapi import APIRouter, Depends, Response

from geoblock.api.deps import (
    PaginationParams,
    get_blocking_service,
    get_pagination,
    get_request_context,
)
from geoblock.models.blocked_country import BlockedCountry
from geoblock.schemas.api_responses import (
    BlockCountryRequest,
    BlockedCountryResponse,
    CountryValidationResponse,
    PaginatedResponse,
    TemporalBlockRequest,
)
from geoblock.services.blocking import BlockingService, RequestContext

logger = logging.getLogger(__name__)
router = APIRouter(tags=["countries"])


def _to_response(country: BlockedCountry) -> BlockedCountryResponse:
    return BlockedCountryResponse(
        country_code=country.country_code,
        country_name=country.country_name,
        blocked_at=country.blocked_at,
        is_temporary=country.is_temporary,
        expires_at=country.expires_at,
    )


@router.post("/api/countries/block", response_model=BlockedCountryResponse)
async def block_country(
    payload: BlockCountryRequest,
    service: BlockingService = Depends(get_blocking_service),
    context: RequestContext = Depends(get_request_context),
):
    """Block a country. Temporary when isTemporary is set (durationMinutes required)."""
    country = await service.block_country(
        payload.country_code,
        context,
        is_temporary=payload.is_temporary,
        duration_minutes=payload.duration_minutes,
    )
    return _to_response(country)


@router.delete("/api/countries/block/{country_code}", status_code=204)
async def unblock_country(
    country_code: str,
    service: BlockingService = Depends(get_blocking_service),
    context: RequestContext = Depends(get_request_context),
):
    service.unblock_country(country_code, context)
    return Response(status_code=204)


@router.get(
    "/api/countries/blocked",
    response_model=PaginatedResponse[BlockedCountryResponse],
)
async def get_blocked_countries(
    pagination: PaginationParams = Depends(get_pagination),
    service: BlockingService = Depends(get_blocking_service),
):
    """Paginated blocked countries, filtered by code or name when searchTerm is given."""
    page = service.list_blocked(pagination.search_term, pagination.page, pagination.page_size)
    return PaginatedResponse[BlockedCountryResponse](
        items=[_to_response(c) for c in page.items],
        total_count=page.total_count,
        page_number=page.page_number,
        page_size=page.page_size,
    )


@router.post("/api/countries/temporal-block", response_model=BlockedCountryResponse)
async def temporarily_block_country(
    payload: TemporalBlockRequest,
    service: BlockingService = Depends(get_blocking_service),
    context: RequestContext = Depends(get_request_context),
):
    country = await service.temporarily_block_country(
        payload.country_code, payload.duration_minutes, context,
    )
    return _to_response(country)


@router.get("/api/countries/validate/{country_code}", response_model=CountryValidationResponse)
async def validate_country(
    country_code: str,
    service: BlockingService = Depends(get_blocking_service),
):
    """Check a code against ISO 3166 and REST Countries."""
    info = await service.validate_country(country_code)
    return CountryValidationResponse(**info.model_dump())
