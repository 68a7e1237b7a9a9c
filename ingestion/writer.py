"""
Page writer with sequential file numbering
"""

import json
from pathlib import Path
from typing import Optional, Union
from core.exceptions import FilesystemError
from schemas.cube import ExportMode, Page
import logging

logger = logging.getLogger(__name__)

INDEX_WIDTH = 7


def page_filename(index: int) -> str:
    return f"{index:0{INDEX_WIDTH}d}.json"


class PageWriter:
    """
    Write result pages for one cube as ``<index>.json`` files.

    Incremental exports append after the highest numbered file already in the
    directory; the directory is scanned once, then a counter is kept in memory.
    Full snapshots number from 1 on every run, replacing earlier files.
    """

    def __init__(self, output_dir: Union[str, Path], mode: ExportMode):
        self.output_dir = Path(output_dir)
        self.mode = mode

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise FilesystemError(
                f"Cannot create output directory {self.output_dir}",
                context={"path": str(self.output_dir), "operation": "mkdir"},
                original_exception=e
            )

        self._last_index = self._scan_last_index() if mode == ExportMode.INCREMENTAL else 0

    def _scan_last_index(self) -> int:
        last = 0
        try:
            for entry in self.output_dir.glob("*.json"):
                if entry.stem.isdigit():
                    last = max(last, int(entry.stem))
        except OSError as e:
            raise FilesystemError(
                f"Cannot list {self.output_dir}",
                context={"path": str(self.output_dir), "operation": "scan"},
                original_exception=e
            )
        return last

    def next_index(self, page_index: int) -> int:
        if self.mode == ExportMode.INCREMENTAL:
            return self._last_index + 1
        return page_index + 1

    def write(self, page_index: int, page: Page) -> Optional[Path]:
        """
        Write one page.

        Args:
            page_index: Zero-based page counter of the current run
            page: Rows to write

        Returns:
            Path of the written file, or None for an empty page
        """
        if page.row_count == 0:
            return None

        index = self.next_index(page_index)
        path = self.output_dir / page_filename(index)

        try:
            with open(path, "w", encoding="utf-8") as handle:
                json.dump(page.rows, handle, indent=2, ensure_ascii=False)
        except OSError as e:
            raise FilesystemError(
                f"Cannot write page {index} to {path}",
                context={"path": str(path), "operation": "write", "rows": page.row_count},
                original_exception=e
            )

        self._last_index = index
        logger.debug(f"Wrote {page.row_count} rows to {path}")
        return path
