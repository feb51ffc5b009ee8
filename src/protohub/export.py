"""Render a project's context history as a markdown handoff document."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime
from typing import Any

_OPTIONAL_FIELDS = (
    ("decisions_made", "Decisions"),
    ("known_issues", "Issues"),
    ("next_steps", "Next"),
)


def _day(value: object) -> str:
    if not isinstance(value, str) or not value:
        return "unknown date"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value[:10]
    return parsed.date().isoformat()


def _text(value: object) -> str:
    return str(value).strip() if value is not None else ""


def render_handoff(
    project: Mapping[str, Any],
    entries: Sequence[Mapping[str, Any]],
    *,
    today: date | None = None,
) -> str:
    """Entries are expected newest first."""
    today = today or datetime.now(UTC).date()
    latest = entries[0] if entries else None
    if latest is not None:
        last_updated = f"{_day(latest.get('created_at'))} by {_text(latest.get('updated_by_name'))}"
    else:
        last_updated = "No updates yet"

    lines = [
        f"# {_text(project.get('name'))} - Context for Claude",
        "",
        "## Current State",
        f"- Version: {_text(project.get('current_version')) or 'n/a'}",
        f"- Last updated: {last_updated}",
    ]
    external_url = _text(project.get("external_url"))
    if external_url:
        lines.append(f"- Live URL: {external_url}")
    lines += ["", "## Build History"]

    for entry in entries:
        lines += [
            "",
            f"### v{_text(entry.get('version'))} - {_day(entry.get('created_at'))}",
            f"- **What was built:** {_text(entry.get('what_was_built'))}",
        ]
        for key, label in _OPTIONAL_FIELDS:
            value = _text(entry.get(key))
            if value:
                lines.append(f"- **{label}:** {value}")

    handoff_notes = _text(latest.get("ai_handoff_notes")) if latest is not None else ""
    if handoff_notes:
        lines += ["", "## AI Handoff Notes", handoff_notes]

    lines += ["", "---", f"*Exported from Proto Hub on {today.isoformat()}*", ""]
    return "\n".join(lines)
