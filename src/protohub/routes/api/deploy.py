"""Deploy-from-GitHub and deploy-from-ZIP routes."""

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from pydantic import BaseModel, ConfigDict, Field

from protohub.auth.dependencies import UserContext, require_auth
from protohub.deploy.archive_source import ArchiveSource
from protohub.deploy.github_source import parse_repo_url
from protohub.deploy.pipeline import CatalogLink, DeployPipeline
from protohub.deploy.policy import archive_policy
from protohub.deploy.types import DeployOutcome
from protohub.errors import InputValidationError
from protohub.providers import Providers, get_providers
from protohub.ratelimit import deploy_limit, limiter

router = APIRouter(prefix="/deploy", tags=["api-deploy"])


class GitHubDeployBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    repo_url: str | None = Field(default=None, alias="repoUrl")
    project_name: str | None = Field(default=None, alias="projectName")
    prototype_id: str | None = Field(default=None, alias="prototypeId")


def _catalog_link(
    providers: Providers, prototype_id: str | None, ctx: UserContext
) -> CatalogLink | None:
    prototype_id = (prototype_id or "").strip()
    if not prototype_id:
        return None
    return CatalogLink(
        writer=providers.store(),
        project_id=prototype_id,
        access_token=ctx.access_token,
    )


def _response(outcome: DeployOutcome) -> dict[str, object]:
    return {
        "success": True,
        "deployedUrl": outcome.result.live_url,
        "projectName": outcome.target_name,
        "fileCount": outcome.file_count,
        "message": (
            f"Deployed {outcome.file_count} files. It may take a minute to go live."
        ),
    }


@router.post("/github")
@limiter.limit(deploy_limit)
async def deploy_github(
    request: Request,
    body: GitHubDeployBody,
    ctx: UserContext = Depends(require_auth),  # noqa: B008
    providers: Providers = Depends(get_providers),  # noqa: B008
) -> dict[str, object]:
    del request
    repo_url = (body.repo_url or "").strip()
    project_name = (body.project_name or "").strip()
    if not repo_url or not project_name:
        raise InputValidationError("repoUrl and projectName are required")
    ref = parse_repo_url(repo_url)
    vercel = providers.vercel()

    source = providers.github()
    pipeline = DeployPipeline(vercel, policy=source.policy)
    outcome = await pipeline.run(
        lambda: source.collect(ref),
        project_name,
        link=_catalog_link(providers, body.prototype_id, ctx),
        source=f"github:{ref.full_name}",
    )
    return _response(outcome)


@router.post("/zip")
@limiter.limit(deploy_limit)
async def deploy_zip(
    request: Request,
    file: UploadFile | None = File(default=None),  # noqa: B008
    project_name: str | None = Form(default=None, alias="projectName"),
    prototype_id: str | None = Form(default=None, alias="prototypeId"),
    ctx: UserContext = Depends(require_auth),  # noqa: B008
    providers: Providers = Depends(get_providers),  # noqa: B008
) -> dict[str, object]:
    del request
    vercel = providers.vercel()
    if file is None:
        raise InputValidationError("No file provided")
    name = (project_name or "").strip()
    if not name:
        raise InputValidationError("projectName is required")
    blob = await file.read()

    policy = archive_policy(providers.settings)
    source = ArchiveSource(policy)
    pipeline = DeployPipeline(vercel, policy=policy)
    outcome = await pipeline.run(
        lambda: source.collect(blob),
        name,
        link=_catalog_link(providers, prototype_id, ctx),
        source=f"zip:{file.filename or 'upload'}",
    )
    return _response(outcome)
