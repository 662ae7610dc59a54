"""
IP endpoints — country lookup and block check.
Both default to the caller's address when no IP is given in the path.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request

from geoblock.api.deps import get_blocking_service, get_request_context
from geoblock.schemas.api_responses import CheckBlockResponse, IpLookupResponse
from geoblock.services.blocking import BlockingService, RequestContext
from geoblock.utils.ip import get_client_ip, is_public_ip

logger = logging.getLogger(__name__)
router = APIRouter(tags=["ip"])


async def _resolve_target_ip(
    request: Request,
    ip_address: Optional[str],
    service: BlockingService,
) -> str:
    """
    Explicit IP wins. Otherwise use the caller's address when it is public,
    and the service's own public IP when the caller is on a private network.
    """
    if ip_address:
        return ip_address
    peer = request.client.host if request.client else None
    client_ip = get_client_ip(request.headers, peer)
    if is_public_ip(client_ip):
        return client_ip
    logger.debug("Caller IP %s is not public, resolving service public IP", client_ip)
    return await service.resolve_public_ip()


@router.get("/api/ip/country-lookup", response_model=IpLookupResponse)
@router.get("/api/ip/country-lookup/{ip_address}", response_model=IpLookupResponse)
async def lookup_ip(
    request: Request,
    ip_address: Optional[str] = None,
    service: BlockingService = Depends(get_blocking_service),
):
    target = await _resolve_target_ip(request, ip_address, service)
    location = await service.lookup_ip(target)
    return IpLookupResponse(**location.model_dump())


@router.get("/api/ip/check-block", response_model=CheckBlockResponse)
@router.get("/api/ip/check-block/{ip_address}", response_model=CheckBlockResponse)
async def check_block(
    request: Request,
    ip_address: Optional[str] = None,
    service: BlockingService = Depends(get_blocking_service),
    context: RequestContext = Depends(get_request_context),
):
    """Resolve the IP's country and report whether it is blocked. Always audited."""
    target = await _resolve_target_ip(request, ip_address, service)
    result = await service.check_block(target, context)
    return CheckBlockResponse(**result.model_dump())
