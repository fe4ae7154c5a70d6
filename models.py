"""
Pydantic Models

Declarative sort requests and measured results for the sort adapter.
"""

from operator import attrgetter, itemgetter
from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from enum import Enum


class SortDirection(str, Enum):
    """Direction of a single sort key"""
    ASC = "asc"
    DESC = "desc"


class KeyAccess(str, Enum):
    """How a key field is read from an element"""
    ITEM = "item"
    ATTRIBUTE = "attribute"


class SortKeySpec(BaseModel):
    """One sort key, named by field"""
    field: str = Field(
        ...,
        description="Mapping key or attribute name to sort on",
        min_length=1
    )
    direction: SortDirection = Field(
        default=SortDirection.ASC,
        description="Sort direction for this key"
    )
    access: KeyAccess = Field(
        default=KeyAccess.ITEM,
        description="Read the field with item access (dicts) or attribute access (objects)"
    )

    @property
    def ascending(self) -> bool:
        return self.direction == SortDirection.ASC

    def key_fn(self):
        """Build the key extractor for this field"""
        if self.access == KeyAccess.ATTRIBUTE:
            return attrgetter(self.field)
        return itemgetter(self.field)


class SortRequest(BaseModel):
    """A batch of items plus the keys to order them by, in priority order"""
    items: List[Any] = Field(
        default_factory=list,
        description="Elements to sort"
    )
    keys: List[SortKeySpec] = Field(
        ...,
        description="Primary key first, then tie-break keys",
        min_length=1
    )

    @field_validator('keys')
    @classmethod
    def validate_unique_fields(cls, v):
        """A field listed twice can never break a tie"""
        seen = set()
        for spec in v:
            if spec.field in seen:
                raise ValueError(f"Duplicate sort field: {spec.field}")
            seen.add(spec.field)
        return v


class PerformanceInfo(BaseModel):
    """Timing and memory figures for one sort run"""
    operation: str
    execution_time_ms: float = Field(..., ge=0)
    memory_usage_mb: float = Field(..., ge=0)
    rss_delta_mb: Optional[float] = None
    input_size: int = Field(..., ge=0)
    output_size: int = Field(..., ge=0)
    key_calls: int = Field(default=0, ge=0)


class SortResult(BaseModel):
    """Sorted items with the measurements taken while sorting them"""
    items: List[Any]
    performance: PerformanceInfo
