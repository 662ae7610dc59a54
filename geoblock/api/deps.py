"""
FastAPI dependencies — hand the app-owned service and request details to routes.
"""
from typing import Optional

from fastapi import Query, Request
from pydantic import BaseModel

from geoblock.services.blocking import BlockingService, RequestContext
from geoblock.services.pagination import normalize_page, normalize_page_size
from geoblock.utils.ip import get_client_ip


class PaginationParams(BaseModel):
    page: int
    page_size: int
    search_term: Optional[str] = None


def get_blocking_service(request: Request) -> BlockingService:
    return request.app.state.blocking_service


def get_request_context(request: Request) -> RequestContext:
    peer = request.client.host if request.client else None
    return RequestContext(
        ip_address=get_client_ip(request.headers, peer) or "",
        user_agent=request.headers.get("user-agent", ""),
        request_path=request.url.path,
    )


def get_pagination(
    request: Request,
    page: Optional[int] = Query(default=None),
    page_size: Optional[int] = Query(default=None, alias="pageSize"),
    search_term: Optional[str] = Query(default=None, alias="searchTerm"),
) -> PaginationParams:
    """Out-of-range values are clamped rather than rejected."""
    settings = request.app.state.settings
    return PaginationParams(
        page=normalize_page(page),
        page_size=normalize_page_size(
            page_size,
            default=settings.default_page_size,
            maximum=settings.max_page_size,
        ),
        search_term=search_term or None,
    )
