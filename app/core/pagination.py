"""Query parameters and page metadata for the template listing."""


from fastapi import Query
from pydantic import BaseModel


class PaginationParams:
    """FastAPI dependency for `GET /templates?page=1&limit=20&sort=created_at&order=desc`.

    `sort` names a table column (snake_case). Anything else is rejected by the
    repository with INVALID_INPUT.
    """

    def __init__(
        self,
        page: int = Query(default=1, ge=1, description="Page number, starting at 1"),
        limit: int = Query(default=20, ge=1, le=200, description="Templates per page"),
        sort: str = Query(default="created_at", max_length=64, description="Column to sort templates by"),
        order: str = Query(default="desc", pattern="^(asc|desc)$", description="asc or desc"),
    ):
        self.page = page
        self.limit = limit
        self.sort = sort
        self.order = order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class PageMeta(BaseModel):
    """`meta` block of a list envelope; `pages` is 0 when nothing matched."""

    total: int
    page: int
    limit: int
    pages: int
