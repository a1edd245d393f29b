"""
Paginated queries over a data-access handle.

Usage:
    result = await model_paginate(
        handles[ModelName.CATEGORY],
        PaginationOptions(page=2, page_size=1, where=build_search_filter(params)),
    )
    result.items  # documents on the requested page
    result.meta   # page, pageSize, total, totalPages
"""

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, Sequence

from .errors import BadRequest

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class PaginatableHandle(Protocol):
    async def find(
        self,
        where: Optional[dict[str, Any]] = None,
        *,
        offset: int = 0,
        limit: Optional[int] = None,
        populates: Sequence[str] = (),
    ) -> list[dict[str, Any]]: ...

    async def count(self, where: Optional[dict[str, Any]] = None) -> int: ...


@dataclass
class PaginationOptions:
    page: int = DEFAULT_PAGE
    page_size: int = DEFAULT_PAGE_SIZE
    where: dict[str, Any] = field(default_factory=dict)
    populates: list[str] = field(default_factory=list)


@dataclass
class PaginationMeta:
    page: int
    page_size: int
    total: int
    total_pages: int

    def to_dict(self) -> dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass
class PaginatedResult:
    items: list[dict[str, Any]]
    meta: PaginationMeta

    def to_dict(self) -> dict[str, Any]:
        return {"items": self.items, "meta": self.meta.to_dict()}


async def model_paginate(handle: PaginatableHandle, options: PaginationOptions) -> PaginatedResult:
    """
    Fetch one page of documents matching `options.where`.

    `total` counts every matching document regardless of paging and
    `totalPages = ceil(total / pageSize)`. A page past the end yields no items
    but the same meta.

    Raises:
        BadRequest: page or page_size below 1, or page_size above MAX_PAGE_SIZE
    """
    if options.page_size < 1:
        raise BadRequest("Invalid pagination", "pageSize must be a positive integer")
    if options.page_size > MAX_PAGE_SIZE:
        raise BadRequest("Invalid pagination", f"pageSize must be at most {MAX_PAGE_SIZE}")
    if options.page < 1:
        raise BadRequest("Invalid pagination", "page must be a positive integer")

    total = await handle.count(options.where)
    offset = (options.page - 1) * options.page_size
    if offset >= total:
        # Past the last page; the offset may not even fit a database integer
        items = []
    else:
        items = await handle.find(
            options.where,
            offset=offset,
            limit=options.page_size,
            populates=options.populates,
        )
    return PaginatedResult(
        items=items,
        meta=PaginationMeta(
            page=options.page,
            page_size=options.page_size,
            total=total,
            total_pages=math.ceil(total / options.page_size),
        ),
    )


def _int_param(raw: Optional[str], default: int) -> int:
    # Absent, non-numeric and zero all fall back to the default
    try:
        value = int(raw) if raw is not None else 0
    except ValueError:
        return default
    return value or default


def parse_pagination_params(params: Mapping[str, str]) -> tuple[int, int]:
    """Read (page, pageSize) from query parameters."""
    return (
        _int_param(params.get("page"), DEFAULT_PAGE),
        _int_param(params.get("pageSize"), DEFAULT_PAGE_SIZE),
    )


def build_search_filter(params: Mapping[str, str], field_name: str = "name") -> dict[str, Any]:
    """
    Case-insensitive substring filter from `query` or `q`.

    The filter is always applied; with no search text the empty pattern
    matches every document.
    """
    text = params.get("query") or params.get("q") or ""
    return {field_name: {"$contains": text, "$options": "i"}}


def parse_populates(params: Mapping[str, str]) -> list[str]:
    raw = params.get("populate")
    return [name.strip() for name in raw.split(",") if name.strip()] if raw else []
