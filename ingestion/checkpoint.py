"""
File-based checkpoint management for incremental exports.

Each incremental cube keeps a single-line file next to its pages:

    <output_root>/<Cube>/latest-data-date-time.txt

holding the newest ``updatedAt`` already exported, as ``YYYY-MM-DDTHH:MM:SS``.
The file is only replaced after a cube's run has written all of its pages.
"""

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Union
from core.exceptions import CheckpointError, FilesystemError
from schemas.cube import Checkpoint
import logging

logger = logging.getLogger(__name__)

CHECKPOINT_FILENAME = "latest-data-date-time.txt"
CHECKPOINT_FORMAT = "%Y-%m-%dT%H:%M:%S"


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp as naive UTC.

    Accepts a trailing ``Z`` and fractional seconds, as returned by the API.
    """
    parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def format_timestamp(value: Union[datetime, str]) -> str:
    """
    Format a timestamp for the checkpoint file.

    Fractional seconds are truncated, so rows updated later within the same
    second as the stored checkpoint pass the next ``afterDate`` filter again
    and are exported twice.
    """
    if isinstance(value, str):
        value = parse_timestamp(value)
    return value.strftime(CHECKPOINT_FORMAT)


class CheckpointStore:
    """Read and write per-cube checkpoint files under the output root"""

    def __init__(self, output_root: Union[str, Path], default_timestamp: str):
        self.output_root = Path(output_root)
        self.default_timestamp = default_timestamp

    def path_for(self, cube_name: str) -> Path:
        return self.output_root / cube_name / CHECKPOINT_FILENAME

    def read(self, cube_name: str) -> Checkpoint:
        """
        Return the stored checkpoint, or the fallback when there is none.

        Raises:
            CheckpointError: The file exists but does not hold a timestamp
            FilesystemError: The file exists but cannot be read
        """
        path = self.path_for(cube_name)

        if not path.exists():
            logger.debug(f"No checkpoint for {cube_name}, using {self.default_timestamp}")
            return Checkpoint(cube=cube_name, timestamp=self.default_timestamp)

        try:
            value = path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise FilesystemError(
                f"Cannot read checkpoint for {cube_name}",
                context={"path": str(path), "operation": "read"},
                original_exception=e
            )

        try:
            parse_timestamp(value)
        except ValueError as e:
            raise CheckpointError(
                f"Invalid checkpoint for {cube_name}",
                context={"cube": cube_name, "path": str(path), "checkpoint_value": value},
                original_exception=e
            )

        return Checkpoint(cube=cube_name, timestamp=value, stored=True, path=str(path))

    def load(self, cube_name: str) -> str:
        return self.read(cube_name).timestamp

    def save(self, cube_name: str, timestamp: Union[datetime, str]) -> str:
        """
        Overwrite the cube's checkpoint file.

        The value is written to a temporary file in the same directory and
        moved into place, so a reader never sees a half-written file.

        Returns:
            The formatted timestamp that was stored
        """
        path = self.path_for(cube_name)

        try:
            value = format_timestamp(timestamp)
        except ValueError as e:
            raise CheckpointError(
                f"Refusing to store invalid checkpoint for {cube_name}",
                context={"cube": cube_name, "path": str(path), "checkpoint_value": str(timestamp)},
                original_exception=e
            )

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=".checkpoint-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(value)
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise FilesystemError(
                f"Cannot write checkpoint for {cube_name}",
                context={"path": str(path), "operation": "write", "checkpoint_value": value},
                original_exception=e
            )

        logger.info(f"Checkpoint for {cube_name} advanced to {value}")
        return value
