# app/api/deps.py
from fastapi import Query

from app.schemas.pagination import DEFAULT_PAGE_SIZE, PaginationParams


async def get_pagination(
    page: int = Query(1, description="1-indexed page; values below 1 are treated as 1"),
    page_size: int = Query(DEFAULT_PAGE_SIZE, description="Items per page; capped at 100"),
) -> PaginationParams:
    """
    Pagination parameters from the query string.

    Out-of-range values are clamped rather than rejected.
    """
    return PaginationParams(page=page, page_size=page_size)
