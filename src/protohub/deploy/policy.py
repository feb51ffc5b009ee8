"""File filter policy and payload budget checks."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from protohub.config import Settings
from protohub.errors import PayloadTooLargeError

MIB = 1024 * 1024

EXCLUDED_DIRS = frozenset(
    {"node_modules", ".git", ".next", ".vercel", ".turbo", ".cache", "__pycache__"}
)
EXCLUDED_FILES = frozenset(
    {
        ".DS_Store",
        "Thumbs.db",
        ".env",
        ".env.local",
        ".env.development.local",
        ".env.production.local",
    }
)
EXCLUDED_EXTENSIONS = frozenset(
    {
        "mp4",
        "mov",
        "avi",
        "mkv",
        "webm",
        "mp3",
        "wav",
        "zip",
        "tar",
        "gz",
        "rar",
        "7z",
        "psd",
        "sketch",
        "fig",
        "log",
    }
)
# macOS resource-fork folder added by Finder's "Compress"
ARCHIVE_EXTRA_DIRS = frozenset({"__MACOSX"})


@dataclass(frozen=True, slots=True)
class FilterPolicy:
    excluded_dirs: frozenset[str] = EXCLUDED_DIRS
    excluded_files: frozenset[str] = EXCLUDED_FILES
    excluded_extensions: frozenset[str] = EXCLUDED_EXTENSIONS
    max_file_bytes: int = MIB
    max_payload_bytes: int = 8 * MIB

    def with_extra_dirs(self, names: Iterable[str]) -> FilterPolicy:
        return replace(self, excluded_dirs=self.excluded_dirs | frozenset(names))

    def is_excluded_dir(self, name: str) -> bool:
        return name in self.excluded_dirs

    def is_excluded_file(self, name: str) -> bool:
        if name in self.excluded_files:
            return True
        _, dot, ext = name.rpartition(".")
        if not dot:
            return False
        return ext.lower() in self.excluded_extensions

    def is_excluded_path(self, relative_path: str) -> bool:
        """True when any directory segment or the file name itself is excluded."""
        parts = relative_path.split("/")
        if any(self.is_excluded_dir(part) for part in parts[:-1]):
            return True
        return self.is_excluded_file(parts[-1])

    def exceeds_file_cap(self, size: int) -> bool:
        return size > self.max_file_bytes


def default_policy(settings: Settings | None = None) -> FilterPolicy:
    if settings is None:
        return FilterPolicy()
    return FilterPolicy(
        max_file_bytes=settings.max_file_bytes,
        max_payload_bytes=settings.max_payload_bytes,
    )


def archive_policy(settings: Settings | None = None) -> FilterPolicy:
    return default_policy(settings).with_extra_dirs(ARCHIVE_EXTRA_DIRS)


def encoded_size(raw_size: int) -> int:
    """Length of the padded base64 text for ``raw_size`` bytes."""
    return 4 * ((raw_size + 2) // 3)


def payload_size(sizes: Iterable[int]) -> int:
    return sum(encoded_size(size) for size in sizes)


def enforce_budget(sizes: Iterable[int], policy: FilterPolicy) -> int:
    """Return the transmitted payload size or raise when it exceeds the cap."""
    total = payload_size(sizes)
    if total > policy.max_payload_bytes:
        raise PayloadTooLargeError(total, policy.max_payload_bytes)
    return total
