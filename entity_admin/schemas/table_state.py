"""
Table state and list result schemas.
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field

FilterScalar = Union[str, int, float, bool]
FilterValue = Union[FilterScalar, List[FilterScalar]]


def compute_total_pages(total: int, limit: int) -> int:
    """Number of pages for ``total`` rows at ``limit`` rows per page, never below 1."""
    if limit <= 0:
        raise ValueError("limit must be positive")
    return max(1, math.ceil(max(total, 0) / limit))


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class SortSpec(BaseModel):
    """A single active sort."""
    model_config = ConfigDict(frozen=True)

    field: str = Field(min_length=1)
    direction: SortDirection = SortDirection.ASC


class PaginationState(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=25, gt=0)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(default=1, ge=1)


class TableState(BaseModel):
    """Client-held view state for one entity's list view."""
    pagination: PaginationState = Field(default_factory=PaginationState)
    sorting: List[SortSpec] = Field(default_factory=list)
    filters: Dict[str, FilterValue] = Field(default_factory=dict)
    search: str = ""
    selected_ids: Set[str] = Field(default_factory=set)


class ListParams(BaseModel):
    """Query parameters for a list request."""
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=25, gt=0)
    search: Optional[str] = None
    sorting: List[SortSpec] = Field(default_factory=list)
    filters: Dict[str, Any] = Field(default_factory=dict)


class ListResult(BaseModel):
    """Uniform list response: ``{data, total, totalPages}``.

    ``error`` is set when a failed list request was degraded to an empty result.
    """
    model_config = ConfigDict(populate_by_name=True)

    data: List[Dict[str, Any]] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(default=1, ge=1, alias="totalPages")
    error: Optional[str] = None

    @classmethod
    def empty(cls, error: Optional[str] = None) -> "ListResult":
        return cls(data=[], total=0, total_pages=1, error=error)
