"""
Pydantic schemas for cube metadata, queries and result pages
"""

from pydantic import BaseModel, Field, validator
from typing import Optional, List, Dict, Any
import enum


# ============================================================================
# ENUMS
# ============================================================================

class ExportMode(str, enum.Enum):
    """How a cube is exported"""
    INCREMENTAL = "incremental"
    FULL_SNAPSHOT = "full_snapshot"


class ExportState(str, enum.Enum):
    """Cube exporter lifecycle"""
    START = "start"
    MODE_SELECTED = "mode_selected"
    PAGING = "paging"
    PAGE_WRITTEN = "page_written"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


# ============================================================================
# Catalog Schemas
# ============================================================================

class CubeMetadata(BaseModel):
    """
    One reportable dataset from the catalog.

    The catalog describes members as objects (``{"name": "Orders.id", ...}``);
    only the names are kept, in catalog order.
    """
    name: str = Field(..., min_length=1)
    dimensions: List[str] = Field(default_factory=list)
    measures: List[str] = Field(default_factory=list)

    @validator("dimensions", "measures", pre=True)
    def member_names(cls, v):
        """Flatten member descriptors to their names"""
        if v is None:
            return []
        names = []
        for m in v:
            if isinstance(m, dict):
                if "name" not in m:
                    raise ValueError(f"member descriptor without a name: {m}")
                m = m["name"]
            names.append(m)
        return names

    @property
    def updated_at_member(self) -> str:
        return f"{self.name}.updatedAt"


# ============================================================================
# Query Schemas
# ============================================================================

class QueryFilter(BaseModel):
    """A single query filter"""
    member: str
    operator: str
    values: List[str] = Field(default_factory=list)


class QuerySpec(BaseModel):
    """Shape and window of one load request"""
    measures: List[str] = Field(default_factory=list)
    dimensions: List[str] = Field(default_factory=list)
    filters: List[QueryFilter] = Field(default_factory=list)
    order: Dict[str, str] = Field(default_factory=dict)
    limit: int = Field(..., gt=0)
    offset: int = Field(0, ge=0)

    def to_payload(self) -> Dict[str, Any]:
        """Request body for the load endpoint"""
        return {
            "query": {
                "measures": list(self.measures),
                "dimensions": list(self.dimensions),
                "filters": [f.model_dump() for f in self.filters],
                "limit": self.limit,
                "offset": self.offset,
                "order": dict(self.order),
            }
        }


class Page(BaseModel):
    """One batch of rows returned by a load request"""
    rows: List[Dict[str, Any]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


class Checkpoint(BaseModel):
    """Incremental progress marker for one cube"""
    cube: str
    timestamp: str
    stored: bool = False
    path: Optional[str] = None
