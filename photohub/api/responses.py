"""Success envelope ``{success, data, message, pagination}`` and list paging."""

import math
from typing import Annotated, Generic, TypeVar

from fastapi import Depends, Query

from photohub.models.base import ApiSchema

T = TypeVar("T")


class Pagination(ApiSchema):
    page: int
    limit: int
    total: int
    total_pages: int


class Envelope(ApiSchema, Generic[T]):
    success: bool = True
    data: T | None = None
    message: str | None = None
    pagination: Pagination | None = None


def ok(data=None, message: str | None = None, pagination: Pagination | None = None) -> Envelope:
    return Envelope(data=data, message=message, pagination=pagination)


class PageParams:
    def __init__(
        self,
        page: int = Query(1, ge=1),
        limit: int = Query(10, ge=1, le=100),
        search: str | None = Query(None, max_length=100),
    ) -> None:
        self.page = page
        self.limit = limit
        self.search = search

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def pagination(self, total: int) -> Pagination:
        return Pagination(
            page=self.page,
            limit=self.limit,
            total=total,
            total_pages=math.ceil(total / self.limit),
        )


Page = Annotated[PageParams, Depends()]
