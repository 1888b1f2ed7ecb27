"""
Query Options Schema

Structured filter / sort / paging input for Repository.find_many().

    QueryOptions(
        where={"status": "active"},    # AND of equality comparisons
        order_by={"name": "desc"},     # iteration order is ORDER BY order
        limit=20,                      # > 0
        offset=40,                     # >= 0
        select=["id", "name"],         # optional column projection
    )

Field names in ``where``, ``order_by`` and ``select`` are emitted into SQL as
written. They must come from a closed set of known columns, never from user
input. Only values are bound as parameters.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class SortDirection(str, Enum):
    """ORDER BY direction."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def _missing_(cls, value: object) -> Optional["SortDirection"]:
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in ("asc", "ascending"):
                return cls.ASC
            if lowered in ("desc", "descending"):
                return cls.DESC
        return None

    @property
    def sql(self) -> str:
        return self.value.upper()


class QueryOptions(BaseModel):
    """Query descriptor accepted by Repository.find_many()."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    where: dict[str, Any] = Field(default_factory=dict)
    order_by: dict[str, SortDirection] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("order_by", "orderBy"),
    )
    limit: Optional[int] = Field(default=None, gt=0)
    offset: Optional[int] = Field(default=None, ge=0)
    select: Optional[list[str]] = None

    @field_validator("order_by", mode="before")
    @classmethod
    def _normalize_directions(cls, value: Any) -> Any:
        if isinstance(value, dict):
            return {field: SortDirection(direction) for field, direction in value.items()}
        return value

    @field_validator("select")
    @classmethod
    def _select_not_empty(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        if value is not None and not value:
            raise ValueError("select must name at least one column")
        return value
