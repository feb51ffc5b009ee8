"""Collect a deployable manifest from a public GitHub repository."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote

import httpx

from protohub.config import Settings
from protohub.deploy.policy import FilterPolicy, default_policy
from protohub.deploy.types import Manifest, RepoRef
from protohub.errors import (
    InputValidationError,
    NoFilesError,
    RateLimitError,
    RepoNotFoundError,
    UpstreamError,
)

logger = logging.getLogger(__name__)

_REPO_URL_RE = re.compile(
    r"github\.com/(?P<owner>[^/\s?#]+)/(?P<repo>[^/\s?#]+)"
    r"(?:/tree/(?P<branch>[^/\s?#]+)(?P<subpath>/[^\s?#]*)?)?"
)
_SKIPPED_TYPES = {"symlink", "submodule"}


def parse_repo_url(repo_url: str) -> RepoRef:
    """Split a GitHub URL into owner, repo, branch and subdirectory.

    Accepts ``https://github.com/owner/repo``, ``github.com/owner/repo.git`` and
    ``https://github.com/owner/repo/tree/<branch>/<subpath>``.
    """
    match = _REPO_URL_RE.search(repo_url.strip())
    if match is None:
        raise InputValidationError(
            "Invalid GitHub URL. Expected format: https://github.com/owner/repo"
        )
    owner = match.group("owner")
    repo = match.group("repo")
    if repo.endswith(".git"):
        repo = repo[: -len(".git")]
    if not owner or not repo:
        raise InputValidationError(
            "Invalid GitHub URL. Expected format: https://github.com/owner/repo"
        )
    subpath = (match.group("subpath") or "").strip("/")
    return RepoRef(owner=owner, repo=repo, branch=match.group("branch"), subpath=subpath)


def _github_headers(token: str) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
        "User-Agent": "ProtoHub-Deploy/1.0",
    }
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def _raise_for_listing(response: httpx.Response, ref: RepoRef) -> None:
    if response.is_success:
        return
    status = response.status_code
    if status == 403 and response.headers.get("x-ratelimit-remaining") == "0":
        raise RateLimitError(
            "GitHub API rate limit exceeded. "
            "Set GITHUB_TOKEN to raise the limit, or try again later."
        )
    if status == 404:
        raise RepoNotFoundError(
            f"Repository {ref.full_name} not found. "
            "Make sure it is public and the URL is correct."
        )
    raise UpstreamError(
        f"GitHub API error: {status}", status_code=400, upstream_status=status
    )


class GitHubSource:
    def __init__(
        self,
        *,
        token: str = "",
        base_url: str = "https://api.github.com",
        policy: FilterPolicy | None = None,
        timeout_s: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token.strip()
        self._base_url = base_url.rstrip("/")
        self.policy = policy or FilterPolicy()
        self._timeout_s = timeout_s
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> GitHubSource:
        return cls(
            token=settings.github_token,
            base_url=settings.github_api_base_url,
            policy=default_policy(settings),
            timeout_s=settings.http_timeout_seconds,
            transport=transport,
        )

    @property
    def authenticated(self) -> bool:
        return bool(self._token)

    def _contents_url(self, ref: RepoRef, path: str) -> str:
        url = f"{self._base_url}/repos/{ref.owner}/{ref.repo}/contents"
        if path:
            url += "/" + quote(path)
        return url

    @staticmethod
    def _relative(path: str, subpath: str) -> str:
        if not subpath:
            return path
        if path == subpath:
            return path.rsplit("/", 1)[-1]
        prefix = subpath + "/"
        if path.startswith(prefix):
            return path[len(prefix) :]
        return path

    async def _list(
        self, client: httpx.AsyncClient, ref: RepoRef, path: str
    ) -> list[dict[str, Any]]:
        params = {"ref": ref.branch} if ref.branch else None
        response = await client.get(self._contents_url(ref, path), params=params)
        _raise_for_listing(response, ref)
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(
                "GitHub returned an unreadable listing", status_code=500
            ) from exc
        # a path that names a single file comes back as one object
        if isinstance(payload, dict):
            return [payload]
        if not isinstance(payload, list):
            raise UpstreamError("GitHub contents payload is not a list", status_code=500)
        return [item for item in payload if isinstance(item, dict)]

    async def _fetch_file(
        self, client: httpx.AsyncClient, ref: RepoRef, item: dict[str, Any]
    ) -> bytes:
        path = str(item.get("path", ""))
        download_url = item.get("download_url")
        if isinstance(download_url, str) and download_url:
            response = await client.get(download_url)
        else:
            response = await client.get(
                self._contents_url(ref, path),
                params={"ref": ref.branch} if ref.branch else None,
                headers={"Accept": "application/vnd.github.raw+json"},
            )
        if response.status_code == 403 and response.headers.get("x-ratelimit-remaining") == "0":
            _raise_for_listing(response, ref)
        if not response.is_success:
            raise UpstreamError(
                f"Failed to fetch {path} from GitHub: {response.status_code}",
                status_code=500,
                upstream_status=response.status_code,
            )
        return response.content

    async def collect(self, ref: RepoRef) -> Manifest:
        """Walk the repository depth-first and return the eligible files.

        Directories are visited one at a time from an explicit stack; each
        listing and download is awaited before the next one starts.
        """
        manifest = Manifest()
        policy = self.policy
        if not self.authenticated:
            logger.info("GITHUB_TOKEN not set; using unauthenticated GitHub API limits")
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s,
                headers=_github_headers(self._token),
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                stack = [ref.subpath]
                while stack:
                    listing = await self._list(client, ref, stack.pop())
                    subdirs: list[str] = []
                    for item in listing:
                        kind = str(item.get("type", ""))
                        name = str(item.get("name", ""))
                        path = str(item.get("path", ""))
                        if kind == "dir":
                            if policy.is_excluded_dir(name):
                                logger.debug("Skipping excluded directory: %s", path)
                                continue
                            subdirs.append(path)
                        elif kind == "file":
                            if policy.is_excluded_file(name):
                                logger.debug("Skipping excluded file: %s", path)
                                continue
                            listed_size = int(item.get("size", 0) or 0)
                            if policy.exceeds_file_cap(listed_size):
                                logger.info(
                                    "Skipping large file: %s (%d bytes)", path, listed_size
                                )
                                continue
                            content = await self._fetch_file(client, ref, item)
                            if policy.exceeds_file_cap(len(content)):
                                logger.info(
                                    "Skipping large file: %s (%d bytes)", path, len(content)
                                )
                                continue
                            manifest.add(self._relative(path, ref.subpath), content)
                        elif kind in _SKIPPED_TYPES:
                            logger.debug("Skipping %s entry: %s", kind, path)
                    # reversed so the first listed subdirectory is walked first
                    stack.extend(reversed(subdirs))
        except httpx.HTTPError as exc:
            raise UpstreamError(f"GitHub request failed: {exc}", status_code=500) from exc

        if not manifest:
            raise NoFilesError(f"No deployable files found in {ref.full_name}")
        logger.info(
            "Collected %d files (%d bytes) from %s", len(manifest), manifest.total_bytes,
            ref.full_name,
        )
        return manifest
