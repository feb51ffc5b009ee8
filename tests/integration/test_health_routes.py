from fastapi.testclient import TestClient

from protohub.main import app


def test_healthz() -> None:
    client = TestClient(app)
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"ok": True}


def test_readyz_unconfigured() -> None:
    client = TestClient(app)
    response = client.get("/readyz")
    assert response.status_code == 503
    assert response.json() == {
        "ok": False,
        "providers": {"vercel": False, "supabase": False, "github_token": False},
    }


def test_readyz_configured(fake_services) -> None:
    client = TestClient(app)
    response = client.get("/readyz")
    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["providers"]["github_token"] is False
