"""
Cube export pipeline components.

Modules:
    auth: Token acquisition from account credentials
    client: Reporting API client with "Continue wait" retry policy
    metadata: Cube catalog retrieval
    checkpoint: File-based checkpoints for incremental cubes
    query: Load query construction per page
    writer: Sequentially numbered JSON page files
    exporter: Per-cube export state machine
    runner: Run-level driver over the whole catalog
    scheduler: APScheduler integration for periodic exports

Architecture:
    For every cube in the catalog the exporter picks a mode:

    1. Incremental - transactional cubes; rows with ``updatedAt`` after the
       checkpoint, appended after existing files, checkpoint advanced at the end
    2. Full snapshot - every other cube; all rows, numbered from 1 each run

    Pages are fetched until one comes back shorter than the page size.

Usage:
    from core.context import ExecutionContext
    from ingestion.client import APIClient
    from ingestion.runner import ExportRunner

Example:
    async with APIClient(context) as client:
        runner = ExportRunner(
            client=client,
            output_root="Output",
            default_timestamp="2025-02-26T16:25:00",
            page_size=10000,
            transactional_cubes=["Orders"]
        )
        summary = await runner.run()

    print(f"Exported {summary.total_rows} rows")

Error Handling:
    All components raise exceptions from core.exceptions. Authentication
    failures stop the run; any other failure stops only the current cube.
"""

__all__ = [
    "TokenProvider",
    "APIClient",
    "RetryPolicy",
    "MetadataFetcher",
    "CheckpointStore",
    "QueryBuilder",
    "PageWriter",
    "CubeExporter",
    "ExportRunner",
    "ExportScheduler",
]
