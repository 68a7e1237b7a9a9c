"""
Load query construction
"""

from typing import Optional
from schemas.cube import CubeMetadata, ExportMode, QueryFilter, QuerySpec


class QueryBuilder:
    """
    Build the query for one page of a cube export.

    Incremental exports filter on ``<Cube>.updatedAt`` after the checkpoint and
    sort ascending on that member, so consecutive offsets walk a stable order.
    Full snapshots sort on the cube's first dimension and have no filter.
    """

    def build(
        self,
        cube: CubeMetadata,
        mode: ExportMode,
        checkpoint: Optional[str],
        page_index: int,
        page_size: int
    ) -> QuerySpec:
        filters = []
        order = {}

        if mode == ExportMode.INCREMENTAL:
            member = cube.updated_at_member
            filters.append(
                QueryFilter(member=member, operator="afterDate", values=[checkpoint])
            )
            order[member] = "asc"
        elif cube.dimensions:
            order[cube.dimensions[0]] = "asc"

        return QuerySpec(
            measures=list(cube.measures),
            dimensions=list(cube.dimensions),
            filters=filters,
            order=order,
            limit=page_size,
            offset=page_index * page_size
        )
