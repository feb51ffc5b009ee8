"""Repository packaging and deploy pipeline."""

from protohub.deploy.archive_source import ArchiveSource, read_archive
from protohub.deploy.github_source import GitHubSource, parse_repo_url
from protohub.deploy.pipeline import CatalogLink, DeployPipeline, DeployStage
from protohub.deploy.vercel import VercelClient

__all__ = [
    "ArchiveSource",
    "CatalogLink",
    "DeployPipeline",
    "DeployStage",
    "GitHubSource",
    "VercelClient",
    "parse_repo_url",
    "read_archive",
]
