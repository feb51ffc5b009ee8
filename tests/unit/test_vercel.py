import base64
import json

import httpx
import pytest

from protohub.deploy.types import DeploymentRequest, SourceManifestEntry
from protohub.deploy.vercel import VercelClient
from protohub.errors import ConfigError, UpstreamError

REQUEST = DeploymentRequest(
    target_name="proto-demo-abc",
    files=[
        SourceManifestEntry("index.html", b"<h1>hi</h1>"),
        SourceManifestEntry("img/logo.png", b"\x89PNG\x00\xff"),
    ],
)


def test_missing_token_is_configuration_error() -> None:
    with pytest.raises(ConfigError, match="Vercel token not configured"):
        VercelClient("  ")


def test_build_body_inlines_base64_files() -> None:
    body = VercelClient.build_body(REQUEST)

    assert body["name"] == "proto-demo-abc"
    assert body["projectSettings"] == {"framework": None}
    files = body["files"]
    assert [item["file"] for item in files] == ["index.html", "img/logo.png"]
    assert all(item["encoding"] == "base64" for item in files)
    assert base64.b64decode(files[1]["data"]) == b"\x89PNG\x00\xff"


@pytest.mark.asyncio
async def test_submit_returns_https_url() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "dpl_1", "url": "proto-demo-abc.vercel.app"})

    client = VercelClient(
        "tok", team_id="team_9", transport=httpx.MockTransport(handler)
    )
    result = await client.submit(REQUEST)

    assert result.live_url == "https://proto-demo-abc.vercel.app"
    assert result.deployment_id == "dpl_1"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v13/deployments"
    assert request.url.params["teamId"] == "team_9"
    assert request.headers["authorization"] == "Bearer tok"
    assert json.loads(request.content.decode("utf-8"))["name"] == "proto-demo-abc"


@pytest.mark.asyncio
async def test_submit_without_team_sends_no_team_param() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "dpl_1", "url": "x.vercel.app"})

    await VercelClient("tok", transport=httpx.MockTransport(handler)).submit(REQUEST)

    assert "teamId" not in seen[0].url.params


@pytest.mark.asyncio
async def test_submit_surfaces_provider_error_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            400, json={"error": {"code": "bad_request", "message": "Invalid file name"}}
        )

    client = VercelClient("tok", transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError) as exc_info:
        await client.submit(REQUEST)

    assert exc_info.value.message == "Invalid file name"
    assert exc_info.value.status_code == 500
    assert exc_info.value.upstream_status == 400


@pytest.mark.asyncio
async def test_submit_falls_back_to_generic_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, text="bad gateway")

    client = VercelClient("tok", transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError, match="Deployment failed"):
        await client.submit(REQUEST)


@pytest.mark.asyncio
async def test_submit_transport_failure() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = VercelClient("tok", transport=httpx.MockTransport(handler))
    with pytest.raises(UpstreamError, match="Vercel request failed"):
        await client.submit(REQUEST)


@pytest.mark.asyncio
async def test_health_check() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/v2/user":
            return httpx.Response(200, json={"user": {}})
        return httpx.Response(404)

    assert await VercelClient("tok", transport=httpx.MockTransport(handler)).health_check()
