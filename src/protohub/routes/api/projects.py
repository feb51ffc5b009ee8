"""Project handoff export."""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from protohub.auth.dependencies import UserContext, require_auth
from protohub.export import render_handoff
from protohub.providers import Providers, get_providers

router = APIRouter(prefix="/projects", tags=["api-projects"])


@router.get("/{project_id}/export", response_class=PlainTextResponse)
async def export_project(
    project_id: str,
    ctx: UserContext = Depends(require_auth),  # noqa: B008
    providers: Providers = Depends(get_providers),  # noqa: B008
) -> PlainTextResponse:
    store = providers.store()
    project = await store.get_project(project_id, ctx.access_token)
    if project is None:
        raise HTTPException(status_code=404, detail="Project not found")
    entries = await store.list_context_entries(project_id, ctx.access_token)
    return PlainTextResponse(render_handoff(project, entries), media_type="text/markdown")
