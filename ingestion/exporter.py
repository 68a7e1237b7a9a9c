"""
Per-cube export state machine.

    START -> MODE_SELECTED -> PAGING -> (PAGE_WRITTEN)* -> FINALIZING -> DONE
                                  \\-> FAILED

Pages are requested one after another until a page comes back shorter than
the page size. Incremental cubes track the newest ``updatedAt`` seen across
every page of the run and store it as the checkpoint only once all pages are
on disk; a failed run leaves the previous checkpoint in place.
"""

from datetime import datetime
from pathlib import Path
from typing import Iterable, Optional, Union
from core.exceptions import ExportException
from ingestion.checkpoint import CheckpointStore, parse_timestamp
from ingestion.client import APIClient
from ingestion.query import QueryBuilder
from ingestion.writer import PageWriter
from schemas.cube import CubeMetadata, ExportMode, ExportState, Page
from schemas.export import ExportResult, ExportStatus
import logging

logger = logging.getLogger(__name__)


class CubeExporter:
    """
    Export one cube at a time to ``<output_root>/<Cube>/``.

    Responsibilities:
    - Choose incremental or full snapshot mode
    - Drive the page loop
    - Hand pages to the writer
    - Advance the checkpoint after a complete incremental run
    """

    def __init__(
        self,
        client: APIClient,
        checkpoint_store: CheckpointStore,
        output_root: Union[str, Path],
        page_size: int,
        transactional_cubes: Iterable[str],
        query_builder: Optional[QueryBuilder] = None
    ):
        if page_size < 1:
            raise ValueError("page_size must be positive")

        self.client = client
        self.checkpoint_store = checkpoint_store
        self.output_root = Path(output_root)
        self.page_size = page_size
        self.transactional_cubes = frozenset(transactional_cubes)
        self.query_builder = query_builder or QueryBuilder()
        self.state = ExportState.START

    def select_mode(self, cube: CubeMetadata) -> ExportMode:
        if cube.name in self.transactional_cubes:
            return ExportMode.INCREMENTAL
        return ExportMode.FULL_SNAPSHOT

    def _transition(self, cube: CubeMetadata, state: ExportState):
        logger.debug(f"{cube.name}: {self.state.value} -> {state.value}")
        self.state = state

    def _latest_updated_at(
        self,
        cube: CubeMetadata,
        page: Page,
        latest: Optional[datetime]
    ) -> Optional[datetime]:
        """Fold a page's ``updatedAt`` values into the running maximum"""
        member = cube.updated_at_member

        for row in page.rows:
            value = row.get(member)
            if not isinstance(value, str) or not value:
                continue
            try:
                parsed = parse_timestamp(value)
            except ValueError:
                logger.warning(f"{cube.name}: ignoring unparseable {member}={value!r}")
                continue
            if latest is None or parsed > latest:
                latest = parsed

        return latest

    async def export(self, cube: CubeMetadata) -> ExportResult:
        """
        Run the full page loop for one cube.

        Returns:
            ExportResult with page, row and file counts

        Raises:
            ExportException: Any API, filesystem or checkpoint failure; the
                previous checkpoint is left untouched
        """
        self.state = ExportState.START
        mode = self.select_mode(cube)
        self._transition(cube, ExportState.MODE_SELECTED)

        result = ExportResult(cube=cube.name, mode=mode)
        page_index = 0
        latest: Optional[datetime] = None

        try:
            checkpoint = None
            if mode == ExportMode.INCREMENTAL:
                checkpoint = self.checkpoint_store.load(cube.name)
                result.checkpoint_before = checkpoint

            logger.info(
                f"Exporting {cube.name} ({mode.value}"
                + (f", after {checkpoint})" if checkpoint else ")")
            )

            writer = PageWriter(self.output_root / cube.name, mode)

            while True:
                self._transition(cube, ExportState.PAGING)

                query = self.query_builder.build(
                    cube, mode, checkpoint, page_index, self.page_size
                )
                page = await self.client.run_query(query)
                result.pages_fetched += 1

                path = writer.write(page_index, page)
                if path is not None:
                    result.files_written.append(path.name)
                    result.rows_exported += page.row_count
                    self._transition(cube, ExportState.PAGE_WRITTEN)

                if mode == ExportMode.INCREMENTAL:
                    latest = self._latest_updated_at(cube, page, latest)

                page_index += 1

                if page.row_count < self.page_size:
                    break

            self._transition(cube, ExportState.FINALIZING)

            if mode == ExportMode.INCREMENTAL:
                if latest is not None:
                    result.checkpoint_after = self.checkpoint_store.save(cube.name, latest)
                else:
                    result.checkpoint_after = checkpoint
                    logger.info(f"{cube.name}: no new rows, checkpoint stays at {checkpoint}")

            self._transition(cube, ExportState.DONE)

        except ExportException as e:
            self._transition(cube, ExportState.FAILED)
            e.context.setdefault("cube", cube.name)
            e.context.setdefault("page", page_index)
            logger.error(
                f"Export of {cube.name} failed on page {page_index}: {e.message}",
                extra={"error_context": e.to_dict()}
            )
            raise

        logger.info(
            f"Exported {cube.name}: {result.rows_exported} rows in "
            f"{len(result.files_written)} files ({result.pages_fetched} pages)"
        )
        result.status = ExportStatus.SUCCESS
        return result
