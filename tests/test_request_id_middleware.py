from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from code_commenter.adapters.llm.base import AbstractLLMClient
from code_commenter.api.routes.comment import get_comment_service
from code_commenter.main import app
from code_commenter.services.comment_service import CommentService


client = TestClient(app)


def test_preserves_incoming_request_id_header():
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing():
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert isinstance(generated, str)

    duration = resp.headers.get("X-Request-Duration-ms")
    assert duration is not None


def test_error_body_request_id_matches_header():
    resp = client.post(
        "/api/comment",
        json={"code": "x = 1", "personality": "pirate"},
        headers={"X-Request-ID": "trace-me"},
    )

    assert resp.status_code == 400
    assert resp.headers["X-Request-ID"] == "trace-me"
    assert resp.json()["error"]["request_id"] == "trace-me"


def test_unexpected_error_keeps_request_id():
    llm = AsyncMock(spec=AbstractLLMClient)
    llm.provider = "stub"
    llm.generate_text.side_effect = RuntimeError("boom")
    app.dependency_overrides[get_comment_service] = lambda: CommentService(llm=llm)
    try:
        resp = TestClient(app, raise_server_exceptions=False).post(
            "/api/comment",
            json={"code": "x = 1", "personality": "mentor"},
            headers={"X-Request-ID": "trace-500"},
        )
    finally:
        app.dependency_overrides.clear()

    assert resp.status_code == 500
    assert resp.headers["X-Request-ID"] == "trace-500"
    assert "X-Request-Duration-ms" in resp.headers
    assert resp.json()["error"]["request_id"] == "trace-500"
