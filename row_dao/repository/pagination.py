"""Paginated fetching.

fetch_page runs a count over a caller-built query shape, then the same
shape windowed by offset/limit, and fills a caller-supplied PageResult.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

import sqlalchemy as sa
from sqlalchemy.sql.selectable import Select

from row_dao.core.context import ExecutionContext
from row_dao.core.exceptions import InvalidArgumentError, MappingError
from row_dao.mapping.protocol import Mapper, ResultMapper

T = TypeVar("T")

QueryShape = Callable[[ExecutionContext], Select[Any]]


@dataclass
class PageResult(Generic[T]):
    """A page request and, after fetching, its result.

    ``start`` and ``page_size`` are supplied by the caller; ``total``,
    ``data`` and ``failures`` are filled in by the fetch.
    """

    start: int = 0
    page_size: int = 20
    total: int = 0
    data: list[T] = field(default_factory=list)
    failures: list[MappingError] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.start < 0:
            raise InvalidArgumentError(f"Page start must be >= 0, got {self.start}")
        if self.page_size <= 0:
            raise InvalidArgumentError(f"Page size must be > 0, got {self.page_size}")

    @classmethod
    def of_page(cls, page_number: int, page_size: int = 20) -> PageResult[T]:
        """Build a request for a 1-based page number."""
        if page_number < 1:
            raise InvalidArgumentError(f"Page number must be >= 1, got {page_number}")
        return cls(start=(page_number - 1) * page_size, page_size=page_size)

    @property
    def page_number(self) -> int:
        return self.start // self.page_size + 1

    @property
    def page_count(self) -> int:
        return math.ceil(self.total / self.page_size)

    @property
    def has_next(self) -> bool:
        return self.start + self.page_size < self.total


def count_query(query: Select[Any]) -> Select[Any]:
    """COUNT(*) over a query shape, ignoring its ordering and window."""
    inner = query.order_by(None).limit(None).offset(None).subquery()
    return sa.select(sa.func.count()).select_from(inner)


def fetch_page(
    context: ExecutionContext,
    page: PageResult[T],
    query_shape: QueryShape,
    mapper: Mapper[T] | ResultMapper[T],
) -> PageResult[T]:
    """Fill ``page`` with the total and the requested window of ``query_shape``.

    The shape callback is invoked once; the same query drives both the count
    and the window. Mappers offering ``map_results`` report unmappable rows
    in ``page.failures`` rather than raising.
    """
    query = query_shape(context)
    page.total = int(context.fetch_scalar(count_query(query)) or 0)

    rows = context.fetch_all(query.offset(page.start).limit(page.page_size))

    if isinstance(mapper, ResultMapper):
        results = mapper.map_results(rows)
        page.data = [r.entity for r in results if r.entity is not None]
        page.failures = [e for r in results for e in r.errors]
    else:
        page.data = mapper.map_many(rows)
        page.failures = []
    return page
