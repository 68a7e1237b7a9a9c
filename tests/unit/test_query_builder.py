"""
Unit tests for load query construction
"""

import pytest
from ingestion.query import QueryBuilder
from schemas.cube import CubeMetadata, ExportMode


@pytest.fixture
def orders():
    return CubeMetadata(
        name="Orders",
        dimensions=["Orders.id", "Orders.status", "Orders.updatedAt"],
        measures=["Orders.count", "Orders.total"]
    )


class TestQueryBuilder:
    """Test QuerySpec construction for both modes"""

    def test_incremental_filter_and_order(self, orders):
        query = QueryBuilder().build(orders, ExportMode.INCREMENTAL, "2025-02-26T16:25:00", 0, 100)

        assert len(query.filters) == 1
        assert query.filters[0].member == "Orders.updatedAt"
        assert query.filters[0].operator == "afterDate"
        assert query.filters[0].values == ["2025-02-26T16:25:00"]
        assert query.order == {"Orders.updatedAt": "asc"}

    def test_full_snapshot_orders_by_first_dimension(self, orders):
        query = QueryBuilder().build(orders, ExportMode.FULL_SNAPSHOT, None, 0, 100)

        assert query.filters == []
        assert query.order == {"Orders.id": "asc"}

    def test_members_keep_catalog_order(self, orders):
        query = QueryBuilder().build(orders, ExportMode.FULL_SNAPSHOT, None, 0, 100)

        assert query.dimensions == ["Orders.id", "Orders.status", "Orders.updatedAt"]
        assert query.measures == ["Orders.count", "Orders.total"]

    @pytest.mark.parametrize("page_index,expected_offset", [(0, 0), (1, 250), (4, 1000)])
    def test_paging_window(self, orders, page_index, expected_offset):
        query = QueryBuilder().build(orders, ExportMode.INCREMENTAL, "2025-01-01T00:00:00", page_index, 250)

        assert query.limit == 250
        assert query.offset == expected_offset

    def test_cube_without_dimensions_has_no_order(self):
        cube = CubeMetadata(name="Totals", measures=["Totals.count"])

        query = QueryBuilder().build(cube, ExportMode.FULL_SNAPSHOT, None, 0, 10)

        assert query.order == {}
        assert query.dimensions == []

    def test_payload_shape(self, orders):
        query = QueryBuilder().build(orders, ExportMode.INCREMENTAL, "2025-02-26T16:25:00", 2, 10)

        payload = query.to_payload()

        assert payload == {
            "query": {
                "measures": ["Orders.count", "Orders.total"],
                "dimensions": ["Orders.id", "Orders.status", "Orders.updatedAt"],
                "filters": [{
                    "member": "Orders.updatedAt",
                    "operator": "afterDate",
                    "values": ["2025-02-26T16:25:00"]
                }],
                "limit": 10,
                "offset": 20,
                "order": {"Orders.updatedAt": "asc"}
            }
        }
