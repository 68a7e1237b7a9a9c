"""
Pydantic schemas for data validation and serialization.

This package defines the models that flow through the export pipeline:

Schemas:
    cube: Catalog metadata, export modes, query specs and result pages
    export: Per-cube export results and run summaries

Usage:
    from schemas.cube import CubeMetadata, ExportMode, QuerySpec, Page
    from schemas.export import ExportResult, RunSummary

Example:
    # Catalog entries keep member names only
    cube = CubeMetadata(
        name="Orders",
        dimensions=[{"name": "Orders.id"}, {"name": "Orders.updatedAt"}],
        measures=[{"name": "Orders.count"}]
    )

    assert cube.dimensions == ["Orders.id", "Orders.updatedAt"]
"""

__all__ = [
    "CubeMetadata",
    "ExportMode",
    "ExportState",
    "QueryFilter",
    "QuerySpec",
    "Page",
    "Checkpoint",
    "ExportStatus",
    "ExportResult",
    "RunSummary",
]
