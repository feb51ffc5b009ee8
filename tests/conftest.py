import io
import json
import zipfile
from collections.abc import Callable
from typing import Any
from urllib.parse import unquote

import httpx
import pytest

from protohub.config import get_settings
from protohub.main import app
from protohub.providers import Providers, get_providers
from protohub.ratelimit import limiter

SUPABASE_URL = "https://db.supabase.test"
VALID_SESSION = "session-token"

_ENV_KEYS = (
    "APP_ENV",
    "VERCEL_TOKEN",
    "VERCEL_TEAM_ID",
    "VERCEL_API_BASE_URL",
    "GITHUB_TOKEN",
    "GITHUB_API_BASE_URL",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "MAX_FILE_BYTES",
    "MAX_PAYLOAD_BYTES",
    "RATE_LIMIT_DEPLOYS_PER_MINUTE",
)


@pytest.fixture(autouse=True)
def test_env(monkeypatch: pytest.MonkeyPatch):
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    limiter.reset()
    yield
    app.dependency_overrides.clear()
    get_settings.cache_clear()


class FakeServices:
    """In-memory GitHub, Vercel and Supabase behind one httpx.MockTransport."""

    def __init__(self) -> None:
        self.owner = "acme"
        self.repo = "demo"
        self.repo_files: dict[str, bytes] = {}
        self.github_status: int | None = None
        self.github_headers: dict[str, str] = {}
        self.github_text: str | None = None
        self.users = {VALID_SESSION: {"id": "usr_1", "email": "dev@example.com"}}
        self.projects: dict[str, dict[str, Any]] = {}
        self.entries: list[dict[str, Any]] = []
        self.patch_status = 200
        self.deploy_status = 200
        self.deploy_payload: dict[str, Any] = {
            "id": "dpl_123",
            "url": "proto-demo-abc.vercel.app",
        }
        self.requests: list[httpx.Request] = []
        self.deploy_bodies: list[dict[str, Any]] = []

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def requests_to(self, host: str) -> list[httpx.Request]:
        return [request for request in self.requests if request.url.host == host]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        host = request.url.host
        if host == "api.github.com":
            return self._github(request)
        if host == "raw.githubusercontent.com":
            return self._raw(request)
        if host == "api.vercel.com":
            return self._vercel(request)
        if host == "db.supabase.test":
            return self._supabase(request)
        return httpx.Response(404)

    def _github(self, request: httpx.Request) -> httpx.Response:
        if self.github_text is not None:
            return httpx.Response(200, text=self.github_text)
        if self.github_status is not None:
            return httpx.Response(
                self.github_status,
                headers=self.github_headers,
                json={"message": "error"},
            )
        prefix = f"/repos/{self.owner}/{self.repo}/contents"
        path = unquote(request.url.path)
        if not path.startswith(prefix):
            return httpx.Response(404, json={"message": "Not Found"})
        target = path[len(prefix) :].strip("/")
        if target in self.repo_files:
            return httpx.Response(200, json=self._file_item(target))
        children: dict[str, dict[str, Any]] = {}
        dir_prefix = f"{target}/" if target else ""
        for file_path in self.repo_files:
            if not file_path.startswith(dir_prefix):
                continue
            rest = file_path[len(dir_prefix) :]
            head, sep, _ = rest.partition("/")
            child_path = dir_prefix + head
            if sep:
                children[child_path] = {"type": "dir", "name": head, "path": child_path}
            else:
                children[child_path] = self._file_item(child_path)
        if not children:
            return httpx.Response(404, json={"message": "Not Found"})
        return httpx.Response(200, json=[children[key] for key in sorted(children)])

    def _file_item(self, path: str) -> dict[str, Any]:
        return {
            "type": "file",
            "name": path.rsplit("/", 1)[-1],
            "path": path,
            "size": len(self.repo_files[path]),
            "download_url": (
                f"https://raw.githubusercontent.com/{self.owner}/{self.repo}/main/{path}"
            ),
        }

    def _raw(self, request: httpx.Request) -> httpx.Response:
        prefix = f"/{self.owner}/{self.repo}/main/"
        path = unquote(request.url.path)[len(prefix) :]
        if path not in self.repo_files:
            return httpx.Response(404)
        return httpx.Response(200, content=self.repo_files[path])

    def _vercel(self, request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v2/user":
            return httpx.Response(200, json={"user": {"id": "u"}})
        if request.method == "POST" and request.url.path == "/v13/deployments":
            self.deploy_bodies.append(json.loads(request.content.decode("utf-8")))
            return httpx.Response(self.deploy_status, json=self.deploy_payload)
        return httpx.Response(404)

    def _supabase(self, request: httpx.Request) -> httpx.Response:
        token = request.headers.get("authorization", "").removeprefix("Bearer ")
        if request.url.path == "/auth/v1/user":
            user = self.users.get(token)
            if user is None:
                return httpx.Response(401, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=user)
        if token not in self.users:
            return httpx.Response(401)
        params = request.url.params
        if request.url.path == "/rest/v1/projects":
            project_id = params.get("id", "").removeprefix("eq.")
            row = self.projects.get(project_id)
            if request.method == "PATCH":
                if self.patch_status >= 400:
                    return httpx.Response(self.patch_status, json={"message": "denied"})
                if row is None:
                    return httpx.Response(200, json=[])
                row.update(json.loads(request.content.decode("utf-8")))
                return httpx.Response(200, json=[row])
            return httpx.Response(200, json=[row] if row else [])
        if request.url.path == "/rest/v1/context_entries":
            project_id = params.get("project_id", "").removeprefix("eq.")
            rows = [entry for entry in self.entries if entry["project_id"] == project_id]
            rows.sort(key=lambda entry: entry["created_at"], reverse=True)
            return httpx.Response(200, json=rows)
        return httpx.Response(404)


@pytest.fixture
def fake_services(monkeypatch: pytest.MonkeyPatch) -> FakeServices:
    services = FakeServices()
    monkeypatch.setenv("SUPABASE_URL", SUPABASE_URL)
    monkeypatch.setenv("SUPABASE_ANON_KEY", "anon-key")
    monkeypatch.setenv("VERCEL_TOKEN", "vercel-token")
    get_settings.cache_clear()
    transport = services.transport
    app.dependency_overrides[get_providers] = lambda: Providers(
        settings=get_settings(), transport=transport
    )
    return services


@pytest.fixture
def auth_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {VALID_SESSION}"}


@pytest.fixture
def make_zip() -> Callable[[dict[str, bytes]], bytes]:
    def _make(entries: dict[str, bytes]) -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            for name, content in entries.items():
                if name.endswith("/"):
                    archive.writestr(zipfile.ZipInfo(name), b"")
                else:
                    archive.writestr(name, content)
        return buffer.getvalue()

    return _make
