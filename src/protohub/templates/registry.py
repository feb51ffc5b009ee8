"""Starter template registry, loaded once from package resources."""

from __future__ import annotations

import io
import zipfile
from dataclasses import dataclass
from importlib.resources import files
from importlib.resources.abc import Traversable
from types import MappingProxyType

PROJECT_NAME_TOKEN = "{{PROJECT_NAME}}"
PROJECT_SLUG_TOKEN = "{{PROJECT_SLUG}}"


@dataclass(frozen=True, slots=True)
class StarterTemplate:
    id: str
    name: str
    description: str
    files: MappingProxyType[str, str]

    def summary(self) -> dict[str, str]:
        return {"id": self.id, "name": self.name, "description": self.description}


_CATALOG: tuple[tuple[str, str, str], ...] = (
    ("html-tailwind", "HTML + Tailwind", "Simple static prototype with Tailwind CSS"),
    ("nextjs-tailwind", "Next.js + Tailwind", "React-based prototype with Next.js and Tailwind"),
)


def _walk(root: Traversable, prefix: str = "") -> dict[str, str]:
    found: dict[str, str] = {}
    for child in sorted(root.iterdir(), key=lambda item: item.name):
        path = f"{prefix}{child.name}"
        if child.is_dir():
            found.update(_walk(child, path + "/"))
        else:
            found[path] = child.read_text(encoding="utf-8")
    return found


def _load() -> MappingProxyType[str, StarterTemplate]:
    starters = files("protohub.templates").joinpath("starters")
    loaded: dict[str, StarterTemplate] = {}
    for template_id, name, description in _CATALOG:
        loaded[template_id] = StarterTemplate(
            id=template_id,
            name=name,
            description=description,
            files=MappingProxyType(_walk(starters.joinpath(template_id))),
        )
    return MappingProxyType(loaded)


TEMPLATES = _load()


def list_templates() -> list[dict[str, str]]:
    return [template.summary() for template in TEMPLATES.values()]


def get_template(template_id: str) -> StarterTemplate | None:
    return TEMPLATES.get(template_id)


def render_template_zip(template: StarterTemplate, project_name: str, project_slug: str) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        for path, content in template.files.items():
            rendered = content.replace(PROJECT_NAME_TOKEN, project_name).replace(
                PROJECT_SLUG_TOKEN, project_slug
            )
            archive.writestr(path, rendered)
    return buffer.getvalue()
