"""Types shared by the packaging and deploy pipeline."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SourceManifestEntry:
    relative_path: str
    content: bytes

    @property
    def size(self) -> int:
        return len(self.content)


class Manifest:
    """Ordered file set keyed by relative path.

    A path is accepted once; later entries for the same path are dropped.
    """

    def __init__(self) -> None:
        self._entries: dict[str, SourceManifestEntry] = {}

    def add(self, relative_path: str, content: bytes) -> bool:
        if relative_path in self._entries:
            logger.warning("Duplicate manifest path dropped: %s", relative_path)
            return False
        self._entries[relative_path] = SourceManifestEntry(relative_path, content)
        return True

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[SourceManifestEntry]:
        return iter(self._entries.values())

    def __contains__(self, relative_path: object) -> bool:
        return relative_path in self._entries

    @property
    def paths(self) -> list[str]:
        return list(self._entries)

    @property
    def total_bytes(self) -> int:
        return sum(entry.size for entry in self._entries.values())


@dataclass(frozen=True, slots=True)
class RepoRef:
    owner: str
    repo: str
    branch: str | None = None
    subpath: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


@dataclass(frozen=True, slots=True)
class DeploymentRequest:
    target_name: str
    files: list[SourceManifestEntry] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DeploymentResult:
    live_url: str
    deployment_id: str


@dataclass(frozen=True, slots=True)
class DeployOutcome:
    result: DeploymentResult
    target_name: str
    file_count: int
    total_bytes: int
    catalog_updated: bool = False
