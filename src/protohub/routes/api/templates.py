"""Starter template listing and download."""

from fastapi import APIRouter, HTTPException, Response

from protohub.deploy.naming import slugify
from protohub.templates import get_template, list_templates, render_template_zip

router = APIRouter(tags=["api-templates"])

DEFAULT_SLUG = "prototype"


@router.get("/templates", response_model=None)
def templates(
    template: str | None = None,
    name: str = "My Prototype",
    slug: str = "my-prototype",
) -> dict[str, object] | Response:
    if not template:
        return {"templates": list_templates()}
    starter = get_template(template)
    if starter is None:
        raise HTTPException(status_code=404, detail="Template not found")
    # the slug ends up in a latin-1 header and in package.json
    safe_slug = slugify(slug) or DEFAULT_SLUG
    return Response(
        content=render_template_zip(starter, name, safe_slug),
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{safe_slug}-starter.zip"'},
    )
