from typing import Generic, TypeVar

from pydantic import BaseModel

ItemT = TypeVar("ItemT")


class Envelope(BaseModel):
    success: bool = True
    message: str | None = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class PageOut(Envelope, Generic[ItemT]):
    items: list[ItemT]
    pagination: Pagination
