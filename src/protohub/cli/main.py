"""Click CLI group: serve, doctor and local deploy commands."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from protohub.config import get_settings
from protohub.deploy.archive_source import ArchiveSource
from protohub.deploy.github_source import GitHubSource, parse_repo_url
from protohub.deploy.pipeline import DeployPipeline
from protohub.deploy.policy import archive_policy
from protohub.deploy.types import DeployOutcome
from protohub.deploy.vercel import VercelClient
from protohub.errors import ProtoHubError
from protohub.logging import configure_logging


@click.group()
def cli() -> None:
    """Proto Hub CLI."""


@cli.command()
@click.option("--host", type=str, default=None, help="Bind host (default: BIND_HOST).")
@click.option("--port", type=int, default=None, help="Bind port (default: BIND_PORT).")
@click.option("--reload", is_flag=True, help="Reload on code changes.")
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Run the API server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "protohub.main:app",
        host=host or settings.bind_host,
        port=port or settings.bind_port,
        reload=reload,
    )


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Append JSON output to the report.")
def doctor(json_output: bool) -> None:
    """Check configuration and provider credentials."""
    from protohub.cli.doctor import run_doctor

    if not run_doctor(json_output=json_output):
        sys.exit(1)


def _report(outcome: DeployOutcome) -> None:
    click.echo(f"deployment: {outcome.target_name} ({outcome.result.deployment_id})")
    click.echo(f"files: {outcome.file_count} ({outcome.total_bytes} bytes)")
    click.echo(f"url: {outcome.result.live_url}")


@cli.command("deploy-github")
@click.argument("repo_url")
@click.option("--name", "project_name", required=True, help="Human readable project name.")
def deploy_github(repo_url: str, project_name: str) -> None:
    """Deploy a public GitHub repository (optionally a /tree/<branch>/<dir> URL)."""
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)
    try:
        ref = parse_repo_url(repo_url)
        source = GitHubSource.from_settings(settings)
        pipeline = DeployPipeline(VercelClient.from_settings(settings), policy=source.policy)
        outcome = asyncio.run(
            pipeline.run(
                lambda: source.collect(ref), project_name, source=f"github:{ref.full_name}"
            )
        )
    except ProtoHubError as exc:
        raise click.ClickException(exc.message) from exc
    _report(outcome)


@cli.command("deploy-zip")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--name", "project_name", required=True, help="Human readable project name.")
def deploy_zip(archive: Path, project_name: str) -> None:
    """Deploy the contents of a local ZIP archive."""
    settings = get_settings()
    configure_logging(settings.log_level, app_env=settings.app_env)
    policy = archive_policy(settings)
    blob = archive.read_bytes()
    try:
        source = ArchiveSource(policy)
        pipeline = DeployPipeline(VercelClient.from_settings(settings), policy=policy)
        outcome = asyncio.run(
            pipeline.run(lambda: source.collect(blob), project_name, source=f"zip:{archive.name}")
        )
    except ProtoHubError as exc:
        raise click.ClickException(exc.message) from exc
    _report(outcome)


if __name__ == "__main__":
    cli()
