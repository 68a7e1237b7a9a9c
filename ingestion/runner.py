# ============================================================================
# File: ingestion/runner.py
# Description: Run-level driver exporting every selected cube in the catalog
# ============================================================================
"""
Export Runner - fetches the catalog once and exports cubes one at a time.

Failure policy:
- AuthenticationError aborts the whole run (no further call can succeed)
- Any other export error fails only the current cube; the run moves on
- Each failed cube keeps its previous checkpoint and already written files
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging

from core.exceptions import AuthenticationError, ExportException
from ingestion.checkpoint import CheckpointStore
from ingestion.client import APIClient
from ingestion.exporter import CubeExporter
from ingestion.metadata import MetadataFetcher
from schemas.cube import CubeMetadata
from schemas.export import ExportResult, ExportStatus, RunSummary

logger = logging.getLogger(__name__)


def select_cubes(
    cubes: List[CubeMetadata],
    include: Optional[Iterable[str]] = None,
    exclude: Optional[Iterable[str]] = None
) -> List[CubeMetadata]:
    """Apply the include list (when non-empty), then the exclude list"""
    include = set(include or [])
    exclude = set(exclude or [])

    if include:
        missing = include - {c.name for c in cubes}
        for name in sorted(missing):
            logger.warning(f"Included cube {name} is not in the catalog")
        cubes = [c for c in cubes if c.name in include]

    return [c for c in cubes if c.name not in exclude]


class ExportRunner:
    """
    Export Orchestrator

    Responsibilities:
    - Fetch the cube catalog once per run
    - Apply include/exclude selection
    - Export cubes sequentially
    - Record per-cube results in a RunSummary
    """

    def __init__(
        self,
        client: APIClient,
        output_root: Union[str, Path],
        default_timestamp: str,
        page_size: int,
        transactional_cubes: Iterable[str],
        include: Optional[Iterable[str]] = None,
        exclude: Optional[Iterable[str]] = None
    ):
        self.client = client
        self.output_root = Path(output_root)
        self.include = list(include or [])
        self.exclude = list(exclude or [])
        self.metadata = MetadataFetcher(client)
        self.exporter = CubeExporter(
            client=client,
            checkpoint_store=CheckpointStore(self.output_root, default_timestamp),
            output_root=self.output_root,
            page_size=page_size,
            transactional_cubes=transactional_cubes
        )

    async def run(self) -> RunSummary:
        """
        Export every selected cube.

        Returns:
            RunSummary with one ExportResult per attempted cube

        Raises:
            AuthenticationError: Credentials rejected; the run stops
            ExportException: The catalog itself could not be fetched
        """
        summary = RunSummary()

        cubes = select_cubes(await self.metadata.list_cubes(), self.include, self.exclude)
        logger.info(f"Exporting {len(cubes)} cubes to {self.output_root}")

        for cube in cubes:
            try:
                result = await self.exporter.export(cube)
            except AuthenticationError:
                logger.error(f"Authentication failed while exporting {cube.name}, stopping run")
                raise
            except ExportException as e:
                result = ExportResult(
                    cube=cube.name,
                    mode=self.exporter.select_mode(cube),
                    status=ExportStatus.FAILED,
                    error=e.to_dict()
                )
            summary.results.append(result)

        summary.completed_at = datetime.now(timezone.utc)

        logger.info(
            f"Run completed: {len(summary.succeeded)} cubes exported, "
            f"{len(summary.failed)} failed, {summary.total_rows} rows"
        )
        return summary
