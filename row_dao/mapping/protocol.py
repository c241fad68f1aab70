"""Mapper protocols.

The DAO calls map_one for single-row lookups and map_many for listings.
Page windows prefer map_results when a mapper offers it, so rows that
cannot be mapped are reported instead of aborting the page.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from row_dao.mapping.reflective import MappingResult

T = TypeVar("T")
T_co = TypeVar("T_co", covariant=True)


class Mapper(Protocol[T_co]):
    """Row dict to entity mapper."""

    def map_one(self, row: dict[str, Any]) -> T_co:
        """Map a single row dict to a target object."""
        ...

    def map_many(self, rows: list[dict[str, Any]]) -> list[T_co]:
        """Map multiple row dicts to a list of target objects."""
        ...


@runtime_checkable
class ResultMapper(Protocol[T]):
    """Mapper reporting per-row success or failure."""

    def map_results(self, rows: list[dict[str, Any]]) -> list[MappingResult[T]]:
        """Map every row, keeping failures alongside successes."""
        ...
