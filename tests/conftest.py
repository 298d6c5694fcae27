"""
Pytest configuration and shared fixtures.

The remote admin service is a small in-process FastAPI app reached through
httpx.ASGITransport, so the real ApiClient is exercised without a network.
"""

import asyncio
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx
import pytest
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from entity_admin.configs import register_builtin_entities
from entity_admin.engine import EntityAdminEngine
from entity_admin.services.api_client import ApiClient
from entity_admin.services.entity_registry import EntityRegistry
from entity_admin.services.result_cache import ResultCache

TEST_BASE_URL = "http://testserver"
TEST_TOKEN = "test-token"


def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "remote: test talks to the in-process fake admin service"
    )


# ═══════════════════════════════════════════════════════════════════════════
# FakeAdminBackend: in-memory stand-in for the remote admin API
# ═══════════════════════════════════════════════════════════════════════════


class FakeAdminBackend:
    """Records every request and serves entity CRUD from memory."""

    def __init__(self):
        self.records: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.schemas: Dict[str, Any] = {}
        self.envelopes: Dict[str, Callable[[List[Dict[str, Any]]], Any]] = {}
        self.failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.gates: Dict[Tuple[str, str], asyncio.Event] = {}
        self.requests: List[Dict[str, Any]] = []

    def seed(self, slug: str, rows: List[Dict[str, Any]]):
        table = self.records.setdefault(slug, {})
        for row in rows:
            table[str(row["id"])] = dict(row)

    def fail(self, method: str, path: str, status_code: int, body: Any = None):
        self.failures[(method, path)] = (status_code, body)

    def gate(self, method: str, path: str) -> asyncio.Event:
        """Hold matching requests until the returned event is set."""
        event = asyncio.Event()
        self.gates[(method, path)] = event
        return event

    def calls(self, method: Optional[str] = None, path: Optional[str] = None) -> List[Dict[str, Any]]:
        return [
            r for r in self.requests
            if (method is None or r["method"] == method) and (path is None or r["path"] == path)
        ]


def build_app(backend: FakeAdminBackend) -> FastAPI:
    app = FastAPI()

    @app.middleware("http")
    async def record_and_intercept(request: Request, call_next):
        key = (request.method, request.url.path)
        backend.requests.append({
            "method": request.method,
            "path": request.url.path,
            "query": list(request.query_params.multi_items()),
            "authorization": request.headers.get("authorization"),
        })
        if key in backend.gates:
            await backend.gates[key].wait()
        if key in backend.failures:
            status_code, body = backend.failures[key]
            if body is None:
                return Response(status_code=status_code)
            return JSONResponse(status_code=status_code, content=body)
        return await call_next(request)

    @app.get("/admin/schema/{slug}")
    async def describe(slug: str):
        if slug not in backend.schemas:
            return JSONResponse(status_code=404, content={"message": f"Unknown entity {slug}"})
        return backend.schemas[slug]

    @app.get("/admin/{slug}")
    async def list_records(slug: str, request: Request):
        rows = list(backend.records.get(slug, {}).values())
        params = request.query_params

        for key, value in params.multi_items():
            if key.startswith("filter[") and key.endswith("]"):
                field = key[len("filter["):-1]
                allowed = value.split(",")
                rows = [r for r in rows if str(r.get(field)) in allowed]
        search = params.get("search")
        if search:
            rows = [r for r in rows if any(search.lower() in str(v).lower() for v in r.values())]
        sort_by = params.get("sortBy")
        if sort_by:
            rows.sort(key=lambda r: str(r.get(sort_by, "")), reverse=params.get("sortOrder") == "desc")

        if slug in backend.envelopes:
            return backend.envelopes[slug](rows)

        page = int(params.get("page", 1))
        limit = int(params.get("limit", 25))
        start = (page - 1) * limit
        return {
            "data": rows[start:start + limit],
            "total": len(rows),
            "totalPages": max(1, math.ceil(len(rows) / limit)),
        }

    @app.get("/admin/{slug}/{record_id}")
    async def get_record(slug: str, record_id: str):
        row = backend.records.get(slug, {}).get(record_id)
        if row is None:
            return JSONResponse(status_code=404, content={"message": "Record not found"})
        return row

    @app.post("/admin/{slug}")
    async def create_record(slug: str, request: Request):
        body = await request.json()
        table = backend.records.setdefault(slug, {})
        record = {"id": str(len(table) + 1), **body}
        table[record["id"]] = record
        return JSONResponse(status_code=201, content=record)

    @app.put("/admin/{slug}/{record_id}")
    async def update_record(slug: str, record_id: str, request: Request):
        table = backend.records.setdefault(slug, {})
        if record_id not in table:
            return JSONResponse(status_code=404, content={"message": "Record not found"})
        table[record_id].update(await request.json())
        return table[record_id]

    @app.delete("/admin/{slug}/{record_id}")
    async def delete_record(slug: str, record_id: str):
        if backend.records.get(slug, {}).pop(record_id, None) is None:
            return JSONResponse(status_code=404, content={"message": "Record not found"})
        return Response(status_code=204)

    return app


USER_ROWS = [
    {"id": "1", "firstName": "Ada", "lastName": "Lovelace", "email": "ada@example.com", "role": "ADMIN", "status": "ACTIVE"},
    {"id": "2", "firstName": "Grace", "lastName": "Hopper", "email": "grace@example.com", "role": "USER", "status": "ACTIVE"},
    {"id": "3", "firstName": "Alan", "lastName": "Turing", "email": "alan@example.com", "role": "HOST", "status": "SUSPENDED"},
]


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════


@pytest.fixture
def backend():
    fake = FakeAdminBackend()
    fake.seed("users", USER_ROWS)
    return fake


@pytest.fixture
async def api_client(backend):
    """ApiClient wired to the fake admin app with a bearer token."""
    client = ApiClient(
        base_url=TEST_BASE_URL,
        transport=httpx.ASGITransport(app=build_app(backend)),
        token_provider=lambda: TEST_TOKEN,
    )
    yield client
    await client.aclose()


@pytest.fixture
def registry():
    return register_builtin_entities(EntityRegistry())


@pytest.fixture
def engine(api_client, registry):
    return EntityAdminEngine(api_client, registry=registry, cache=ResultCache(ttl_seconds=30))
