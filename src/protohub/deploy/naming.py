"""Deployment name derivation."""

from __future__ import annotations

import re
import time

TARGET_PREFIX = "proto"
MAX_SLUG_LENGTH = 50
_NON_ALNUM = re.compile(r"[^a-z0-9]+")
_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def slugify(value: str, *, max_length: int = MAX_SLUG_LENGTH) -> str:
    slug = _NON_ALNUM.sub("-", value.lower()).strip("-")
    return slug[:max_length].rstrip("-")


def to_base36(value: int) -> str:
    if value < 0:
        raise ValueError("base36 value must be non-negative")
    if value == 0:
        return "0"
    digits: list[str] = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def target_name(project_name: str, *, now_ms: int | None = None) -> str:
    """Build a globally unique deployment name for ``project_name``.

    Two calls within the same millisecond produce the same name.
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    slug = slugify(project_name) or "untitled"
    return f"{TARGET_PREFIX}-{slug}-{to_base36(now_ms)}"
