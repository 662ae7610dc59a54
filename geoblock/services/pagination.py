"""
Pagination over in-memory snapshots.

Both stores page the same way: copy the values under their lock, then filter,
count and slice the copy here without holding any lock.
"""
from typing import Callable, Generic, Iterable, Optional, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class Page(BaseModel, Generic[T]):
    items: list[T]
    total_count: int
    page_number: int
    page_size: int


def normalize_page(page: Optional[int]) -> int:
    """Missing or sub-1 page numbers become page 1."""
    if page is None or page < 1:
        return DEFAULT_PAGE
    return page


def normalize_page_size(
    page_size: Optional[int],
    default: int = DEFAULT_PAGE_SIZE,
    maximum: int = MAX_PAGE_SIZE,
) -> int:
    """Clamp page size to [1, maximum]; None means the default."""
    if page_size is None:
        return default
    return max(1, min(page_size, maximum))


def matches_search(search_term: Optional[str], *fields: Optional[str]) -> bool:
    """Case-insensitive substring match against any of the given fields."""
    if not search_term or not search_term.strip():
        return True
    needle = search_term.strip().lower()
    return any(needle in (value or "").lower() for value in fields)


def paginate(
    snapshot: Iterable[T],
    page: Optional[int] = None,
    page_size: Optional[int] = None,
    search_term: Optional[str] = None,
    search_fields: Callable[[T], Sequence[Optional[str]]] = lambda item: (),
    sort_key: Optional[Callable[[T], object]] = None,
    descending: bool = False,
    max_page_size: int = MAX_PAGE_SIZE,
) -> Page[T]:
    """
    Filter, optionally sort, then slice a snapshot.

    Returns a Page whose total_count is the number of matches before slicing.
    A page past the end yields no items but still reports the full total.
    """
    page = normalize_page(page)
    page_size = normalize_page_size(page_size, maximum=max_page_size)

    matched = [item for item in snapshot if matches_search(search_term, *search_fields(item))]
    if sort_key is not None:
        matched.sort(key=sort_key, reverse=descending)

    start = (page - 1) * page_size
    return Page(
        items=matched[start:start + page_size],
        total_count=len(matched),
        page_number=page,
        page_size=page_size,
    )
