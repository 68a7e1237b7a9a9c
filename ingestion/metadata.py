"""
Cube catalog retrieval
"""

from typing import List
from ingestion.client import APIClient
from schemas.cube import CubeMetadata
import logging

logger = logging.getLogger(__name__)


class MetadataFetcher:
    """Retrieve the catalog of available cubes, once per run"""

    def __init__(self, client: APIClient):
        self.client = client

    async def list_cubes(self) -> List[CubeMetadata]:
        cubes = await self.client.fetch_catalog()
        logger.info(f"Catalog lists {len(cubes)} cubes")
        for cube in cubes:
            logger.debug(
                f"Cube {cube.name}: {len(cube.dimensions)} dimensions, "
                f"{len(cube.measures)} measures"
            )
        return cubes
