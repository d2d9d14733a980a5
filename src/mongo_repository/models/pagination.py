from typing import Generic, List, TypeVar

from pydantic import BaseModel, Field

ItemT = TypeVar("ItemT")


class PageInfo(BaseModel):
    page_number: int = Field(..., ge=1)
    page_size: int = Field(..., ge=1)
    total_count: int = Field(..., ge=0)
    sort_by: str
    desc: bool = False


class PaginatedResult(BaseModel, Generic[ItemT]):
    """One page of items plus the metadata needed to request the next one."""

    items: List[ItemT] = Field(default_factory=list)
    page_info: PageInfo
