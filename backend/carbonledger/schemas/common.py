import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class Pagination(BaseModel):
    page: int
    limit: int
    pages: int


class Page(BaseModel, Generic[T]):
    """Paginated list envelope shared by the list endpoints."""

    success: bool = True
    count: int
    total: int
    pagination: Pagination
    data: List[T]

    @classmethod
    def build(cls, items: list, total: int, page: int, limit: int):
        return cls(
            count=len(items),
            total=total,
            pagination=Pagination(page=page, limit=limit, pages=math.ceil(total / limit) if limit else 0),
            data=items,
        )


class Message(BaseModel):
    success: bool = True
    message: str
