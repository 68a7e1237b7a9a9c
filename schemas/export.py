"""
Pydantic schemas for export results
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
import enum

from schemas.cube import ExportMode


class ExportStatus(str, enum.Enum):
    """Outcome of one cube export"""
    SUCCESS = "success"
    FAILED = "failed"


class ExportResult(BaseModel):
    """Statistics for one cube export"""
    cube: str
    mode: ExportMode
    status: ExportStatus = ExportStatus.SUCCESS
    pages_fetched: int = 0
    rows_exported: int = 0
    files_written: List[str] = Field(default_factory=list)
    checkpoint_before: Optional[str] = None
    checkpoint_after: Optional[str] = None
    error: Optional[Dict[str, Any]] = None

    class Config:
        use_enum_values = True


class RunSummary(BaseModel):
    """Statistics for one run over the catalog"""
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None
    results: List[ExportResult] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[ExportResult]:
        return [r for r in self.results if r.status == ExportStatus.SUCCESS]

    @property
    def failed(self) -> List[ExportResult]:
        return [r for r in self.results if r.status == ExportStatus.FAILED]

    @property
    def total_rows(self) -> int:
        return sum(r.rows_exported for r in self.results)
