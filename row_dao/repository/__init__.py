"""Repository layer - generic DAO, write dispatch and pagination."""

from __future__ import annotations

from row_dao.repository.base import GenericDao
from row_dao.repository.pagination import PageResult, count_query, fetch_page
from row_dao.repository.records import BatchExecutor, Record, build_record

__all__ = [
    "GenericDao",
    "PageResult",
    "fetch_page",
    "count_query",
    "Record",
    "build_record",
    "BatchExecutor",
]
