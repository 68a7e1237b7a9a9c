"""
Pytest configuration and fixtures
"""

import json
import httpx
import pytest
import pytest_asyncio
from datetime import datetime
from typing import Any, Dict, List
from core.context import ExecutionContext
from ingestion.client import APIClient

BASE_URL = "http://reporting.test"
TOKEN = "test-token"


def _cube_of(query: Dict[str, Any]) -> str:
    members = query.get("dimensions") or query.get("measures") or [""]
    return members[0].split(".")[0]


class FakeReportingAPI:
    """
    In-memory stand-in for the reporting service.

    Serves ``rows[cube]`` sliced by offset/limit, honours ``afterDate``
    filters, and can answer "Continue wait" a configurable number of times
    before each load.
    """

    def __init__(self):
        self.cubes: List[Dict[str, Any]] = []
        self.rows: Dict[str, List[Dict[str, Any]]] = {}
        self.continue_waits = 0
        self.failing_cubes: Dict[str, int] = {}
        self.auth_status = 200
        self.reject_tokens = 0
        self.login_count = 0
        self.load_requests = 0
        self.load_queries: List[Dict[str, Any]] = []

    def add_cube(self, name: str, dimensions: List[str], measures: List[str], rows=None):
        self.cubes.append({
            "name": name,
            "title": name,
            "dimensions": [{"name": f"{name}.{d}", "type": "string"} for d in dimensions],
            "measures": [{"name": f"{name}.{m}", "type": "number"} for m in measures],
        })
        self.rows[name] = list(rows or [])

    def _load(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        rows = self.rows.get(_cube_of(query), [])
        for f in query.get("filters", []):
            if f["operator"] == "afterDate":
                after = datetime.fromisoformat(f["values"][0])
                rows = [
                    r for r in rows
                    if datetime.fromisoformat(r[f["member"]]) > after
                ]
        offset = query.get("offset", 0)
        return rows[offset:offset + query["limit"]]

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path

        if path == "/auth/login":
            self.login_count += 1
            if self.auth_status != 200:
                return httpx.Response(self.auth_status, json={"message": "Invalid credentials"})
            return httpx.Response(200, json={"token": TOKEN})

        if self.reject_tokens:
            self.reject_tokens -= 1
            return httpx.Response(401, json={"error": "Token expired"})

        if request.headers.get("Authorization") != TOKEN:
            return httpx.Response(401, json={"error": "Invalid token"})

        if path == "/cubejs-api/v1/meta":
            return httpx.Response(200, json={"cubes": self.cubes})

        if path == "/cubejs-api/v1/load":
            self.load_requests += 1
            query = json.loads(request.content)["query"]

            if self.continue_waits:
                self.continue_waits -= 1
                return httpx.Response(200, json={"error": "Continue wait"})

            cube = _cube_of(query)
            if cube in self.failing_cubes:
                if self.failing_cubes[cube] <= len([q for q in self.load_queries if _cube_of(q) == cube]):
                    return httpx.Response(500, text="Internal Server Error")

            self.load_queries.append(query)
            return httpx.Response(200, json={"query": query, "data": self._load(query)})

        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def fake_api():
    return FakeReportingAPI()


@pytest.fixture
def context():
    return ExecutionContext(
        base_url=BASE_URL,
        email="analyst@example.com",
        password="s3cret"
    )


@pytest_asyncio.fixture
async def http_client(fake_api):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler)) as client:
        yield client


@pytest_asyncio.fixture
async def api_client(context, http_client):
    client = APIClient(context, client=http_client)
    yield client
    await client.close()


@pytest.fixture
def order_rows():
    """Three Orders rows, ascending by updatedAt"""
    return [
        {"Orders.id": "1", "Orders.status": "paid", "Orders.updatedAt": "2025-02-27T08:00:00.000", "Orders.count": "1"},
        {"Orders.id": "2", "Orders.status": "paid", "Orders.updatedAt": "2025-02-28T09:30:00.000", "Orders.count": "1"},
        {"Orders.id": "3", "Orders.status": "refunded", "Orders.updatedAt": "2025-03-01T10:00:00.000", "Orders.count": "1"},
    ]


@pytest.fixture
def store_rows():
    return [
        {"Stores.id": str(i), "Stores.city": f"City {i}", "Stores.count": "1"}
        for i in range(1, 6)
    ]
