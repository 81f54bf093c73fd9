# app/schemas/pagination.py
import math
from typing import Generic, List, TypeVar
from pydantic import BaseModel, computed_field

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_page(page: int, page_size: int) -> tuple[int, int]:
    """Clamp paging input: page is 1-indexed, page_size lands in 1..100."""
    if page is None or page < 1:
        page = 1
    if page_size is None or page_size < 1:
        page_size = DEFAULT_PAGE_SIZE
    return page, min(page_size, MAX_PAGE_SIZE)


class PaginationParams(BaseModel):
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    def model_post_init(self, context) -> None:
        self.page, self.page_size = normalize_page(self.page, self.page_size)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class Page(BaseModel, Generic[T]):
    data: List[T]
    current_page: int
    page_size: int
    total_count: int

    @computed_field
    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.page_size else 0

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages
