import asyncio

from fastapi.testclient import TestClient
from starlette.requests import Request
from starlette.responses import Response

import app.api as api_module
from app.routes import tracking

client = TestClient(api_module.app)


def _request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": [], "query_string": b""})


def test_middleware_keeps_existing_csp():
    async def run_test():
        async def call_next(_request: Request) -> Response:
            resp = Response()
            resp.headers["Content-Security-Policy"] = "default-src 'none'"
            return resp

        resp = await api_module.add_security_headers(_request(), call_next)
        assert resp.headers["Content-Security-Policy"] == "default-src 'none'"
        assert resp.headers.get("X-Content-Type-Options") == "nosniff"

    asyncio.run(run_test())


def test_health_carries_security_headers():
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.headers.get("X-Content-Type-Options") == "nosniff"
    assert resp.headers.get("X-Frame-Options") == "SAMEORIGIN"
    assert "default-src 'self'" in (resp.headers.get("Content-Security-Policy") or "")


def test_unreachable_database_maps_to_503(monkeypatch):
    from core.db.base import DatabaseUnavailable

    def unavailable(*a, **k):
        raise DatabaseUnavailable("connection refused")

    monkeypatch.setattr(tracking, "count_active_rules", unavailable)
    resp = client.get("/api/track/status")
    assert resp.status_code == 503
    assert resp.json() == {"success": False, "error": "database unavailable"}
    assert resp.headers.get("X-Frame-Options") == "SAMEORIGIN"
