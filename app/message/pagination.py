# =============================================================================
# File: app/message/pagination.py
# Description: Paginated message result shared by listing, search and cache
# =============================================================================

from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.message.entity import Message

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10


def coerce_page_limit(page: int, limit: int) -> Tuple[int, int]:
    """page < 1 becomes 1, limit < 1 becomes the default page size."""
    return (page if page >= 1 else DEFAULT_PAGE,
            limit if limit >= 1 else DEFAULT_LIMIT)


def total_pages(total_items: int, limit: int) -> int:
    if total_items <= 0 or limit <= 0:
        return 0
    return math.ceil(total_items / limit)


class PaginationMeta(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    page: int
    limit: int
    total_items: int
    total_pages: int


class PaginatedMessages(BaseModel):
    """
    One page of messages: {data: [...], pagination: {page, limit, totalItems, totalPages}}.

    The camelCase dict form is what gets cached, so a cache hit and a
    fresh read are indistinguishable to callers.
    """
    data: List[Message] = Field(default_factory=list)
    pagination: PaginationMeta

    @classmethod
    def build(cls, messages: List[Message], page: int, limit: int, total_items: int) -> PaginatedMessages:
        return cls(
            data=messages,
            pagination=PaginationMeta(
                page=page,
                limit=limit,
                total_items=total_items,
                total_pages=total_pages(total_items, limit),
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> PaginatedMessages:
        return cls(
            data=[Message.from_dict(item) for item in data.get("data", [])],
            pagination=PaginationMeta.model_validate(data["pagination"]),
        )
