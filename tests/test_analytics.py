"""Tests for page view tracking."""
import pytest
from fastapi.testclient import TestClient

from blog_platform.services.analytics import AnalyticsService


def record(client: TestClient, page: str, headers: dict = None, **extra):
    return client.post(
        "/api/v1/page-views",
        headers=headers or {},
        json={"page": page, **extra}
    )


def test_record_anonymous_page_view(client: TestClient):
    response = record(client, "/blog/hello-world", referrer="https://example.com/")

    assert response.status_code == 201
    assert response.json()["success"] is True


def test_page_view_requires_page(client: TestClient):
    response = record(client, "")

    assert response.status_code == 422
    assert response.json()["error_code"] == "VALIDATION_ERROR"


def test_top_pages(client: TestClient, user_headers, admin_headers):
    record(client, "/blog/a")
    record(client, "/blog/a", headers=user_headers)
    record(client, "/blog/b", headers=user_headers)

    response = client.get("/api/v1/admin/page-views", headers=admin_headers)

    assert response.status_code == 200
    assert response.json() == [
        {"page": "/blog/a", "views": 2},
        {"page": "/blog/b", "views": 1},
    ]

    response = client.get("/api/v1/admin/page-views", headers=admin_headers, params={"limit": 1})
    assert len(response.json()) == 1


def test_top_pages_require_admin(client: TestClient, user_headers):
    response = client.get("/api/v1/admin/page-views", headers=user_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_page_view_records_visitor(db_session, registered):
    view = await AnalyticsService(db_session).log_page_view(
        "<b>/about</b>",
        user_agent="pytest",
        ip_address="10.0.0.1",
        user_id=registered.identity.id,
    )

    assert view.page == "b/about/b"
    assert view.user_id == registered.identity.id
    assert view.referrer is None
