from fastapi.testclient import TestClient

from protohub.main import app


def test_export_requires_session(fake_services) -> None:
    client = TestClient(app)
    response = client.get("/api/projects/proj_1/export")
    assert response.status_code == 401


def test_export_unknown_project(fake_services, auth_headers) -> None:
    client = TestClient(app)
    response = client.get("/api/projects/missing/export", headers=auth_headers)
    assert response.status_code == 404
    assert response.json() == {"error": "Project not found"}


def test_export_renders_markdown(fake_services, auth_headers) -> None:
    fake_services.projects["proj_1"] = {
        "id": "proj_1",
        "name": "Checkout Flow",
        "current_version": "2",
        "external_url": "https://proto-checkout-flow-x.vercel.app",
    }
    fake_services.entries = [
        {
            "project_id": "proj_1",
            "version": "1",
            "created_at": "2026-02-01T08:00:00Z",
            "updated_by_name": "Kim",
            "what_was_built": "Cart page",
        },
        {
            "project_id": "proj_1",
            "version": "2",
            "created_at": "2026-02-03T08:00:00Z",
            "updated_by_name": "Lee",
            "what_was_built": "Payment step",
            "ai_handoff_notes": "Stripe is mocked.",
        },
        {
            "project_id": "other",
            "version": "9",
            "created_at": "2026-02-04T08:00:00Z",
            "what_was_built": "Unrelated",
        },
    ]
    client = TestClient(app)

    response = client.get("/api/projects/proj_1/export", headers=auth_headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/markdown")
    text = response.text
    assert text.startswith("# Checkout Flow - Context for Claude")
    assert "- Last updated: 2026-02-03 by Lee" in text
    assert text.index("### v2 - 2026-02-03") < text.index("### v1 - 2026-02-01")
    assert "Unrelated" not in text
    assert "Stripe is mocked." in text
