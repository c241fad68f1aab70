"""Mapping layer - transform row dicts into entities."""

from __future__ import annotations

from row_dao.mapping.model import ModelMapper
from row_dao.mapping.protocol import Mapper, ResultMapper
from row_dao.mapping.reflective import MappingResult, ReflectiveMapper, mutator_name, mutators_for

__all__ = [
    "Mapper",
    "ResultMapper",
    "ModelMapper",
    "ReflectiveMapper",
    "MappingResult",
    "mutator_name",
    "mutators_for",
]
