"""Collect a deployable manifest from an uploaded ZIP archive."""

from __future__ import annotations

import asyncio
import io
import logging
import zipfile

from protohub.deploy.policy import ARCHIVE_EXTRA_DIRS, FilterPolicy, archive_policy
from protohub.deploy.types import Manifest
from protohub.errors import InputValidationError, NoFilesError

logger = logging.getLogger(__name__)


def _normalize(name: str) -> str | None:
    """Return a safe forward-slash path, or None for entries that escape the root."""
    path = name.replace("\\", "/")
    if path.startswith("/") or (len(path) > 1 and path[1] == ":"):
        return None
    parts = [part for part in path.split("/") if part not in ("", ".")]
    if any(part == ".." for part in parts):
        return None
    return "/".join(parts)


def detect_common_root(paths: list[str]) -> str:
    """Return ``"<folder>/"`` when every path sits under one top-level folder.

    Resource-fork entries (``__MACOSX/...``) do not count against the root.
    """
    candidates = [p for p in paths if p.split("/", 1)[0] not in ARCHIVE_EXTRA_DIRS]
    if not candidates:
        return ""
    first, sep, _ = candidates[0].partition("/")
    if not sep:
        return ""
    root = first + "/"
    if all(path.startswith(root) and len(path) > len(root) for path in candidates):
        return root
    return ""


def read_archive(blob: bytes, policy: FilterPolicy | None = None) -> Manifest:
    policy = policy or archive_policy()
    try:
        archive = zipfile.ZipFile(io.BytesIO(blob))
    except zipfile.BadZipFile as exc:
        raise InputValidationError("Uploaded file is not a valid ZIP archive") from exc

    manifest = Manifest()
    with archive:
        members: list[tuple[str, zipfile.ZipInfo]] = []
        for info in archive.infolist():
            if info.is_dir():
                continue
            path = _normalize(info.filename)
            if not path:
                logger.warning("Skipping unsafe archive entry: %s", info.filename)
                continue
            members.append((path, info))

        root = detect_common_root([path for path, _ in members])
        if root:
            logger.debug("Stripping common archive root %s", root)

        for path, info in members:
            relative_path = path[len(root) :] if root and path.startswith(root) else path
            if not relative_path:
                continue
            if policy.is_excluded_path(relative_path):
                continue
            if policy.exceeds_file_cap(info.file_size):
                logger.info("Skipping large file: %s (%d bytes)", relative_path, info.file_size)
                continue
            try:
                content = archive.read(info)
            except (zipfile.BadZipFile, NotImplementedError, RuntimeError) as exc:
                raise InputValidationError(
                    f"Could not extract {relative_path} from the archive: {exc}"
                ) from exc
            if policy.exceeds_file_cap(len(content)):
                logger.info("Skipping large file: %s (%d bytes)", relative_path, len(content))
                continue
            manifest.add(relative_path, content)

    if not manifest:
        raise NoFilesError("No valid files found in ZIP")
    logger.info("Collected %d files (%d bytes) from archive", len(manifest), manifest.total_bytes)
    return manifest


class ArchiveSource:
    def __init__(self, policy: FilterPolicy | None = None) -> None:
        self.policy = policy or archive_policy()

    async def collect(self, blob: bytes) -> Manifest:
        # decompression is CPU bound; keep the event loop free
        return await asyncio.to_thread(read_archive, blob, self.policy)
