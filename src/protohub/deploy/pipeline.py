"""Single-shot deploy pipeline: collect, filter, submit, link."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

import httpx

from protohub.deploy.naming import target_name
from protohub.deploy.policy import FilterPolicy, enforce_budget
from protohub.deploy.types import DeploymentRequest, DeploymentResult, DeployOutcome, Manifest
from protohub.errors import CatalogError
from protohub.logging import log_context

logger = logging.getLogger(__name__)


class DeployStage(StrEnum):
    IDLE = "idle"
    COLLECTING = "collecting"
    FILTERING = "filtering"
    SUBMITTING = "submitting"
    LINKED = "linked"
    FAILED = "failed"


_TRANSITIONS: dict[DeployStage, frozenset[DeployStage]] = {
    DeployStage.IDLE: frozenset({DeployStage.COLLECTING, DeployStage.FAILED}),
    DeployStage.COLLECTING: frozenset({DeployStage.FILTERING, DeployStage.FAILED}),
    DeployStage.FILTERING: frozenset({DeployStage.SUBMITTING, DeployStage.FAILED}),
    DeployStage.SUBMITTING: frozenset({DeployStage.LINKED, DeployStage.FAILED}),
    DeployStage.LINKED: frozenset(),
    DeployStage.FAILED: frozenset(),
}


class Submitter(Protocol):
    async def submit(self, request: DeploymentRequest) -> DeploymentResult: ...


class CatalogWriter(Protocol):
    async def update_project_url(self, project_id: str, url: str, access_token: str) -> int: ...


@dataclass(frozen=True, slots=True)
class CatalogLink:
    writer: CatalogWriter
    project_id: str
    access_token: str


class DeployPipeline:
    """One deploy invocation.

    Stages only move forward; a failed or finished pipeline cannot be rerun,
    the caller builds a new one.
    """

    def __init__(self, submitter: Submitter, *, policy: FilterPolicy | None = None) -> None:
        self._submitter = submitter
        self.policy = policy or FilterPolicy()
        self.stage = DeployStage.IDLE

    def _advance(self, stage: DeployStage) -> None:
        if stage not in _TRANSITIONS[self.stage]:
            raise RuntimeError(f"illegal deploy transition {self.stage} -> {stage}")
        logger.debug("Deploy stage %s -> %s", self.stage, stage)
        self.stage = stage

    async def _link(self, result: DeploymentResult, link: CatalogLink | None) -> bool:
        if link is None:
            return False
        try:
            updated = await link.writer.update_project_url(
                link.project_id, result.live_url, link.access_token
            )
        except (CatalogError, httpx.HTTPError) as exc:
            logger.error("Failed to update prototype URL for %s: %s", link.project_id, exc)
            return False
        if updated == 0:
            logger.warning(
                "Prototype %s not updated (missing row or no write access)", link.project_id
            )
            return False
        return True

    async def run(
        self,
        collect: Callable[[], Awaitable[Manifest]],
        project_name: str,
        *,
        link: CatalogLink | None = None,
        source: str = "",
    ) -> DeployOutcome:
        name = target_name(project_name)
        with log_context(deploy_target=name, deploy_source=source):
            try:
                self._advance(DeployStage.COLLECTING)
                manifest = await collect()

                self._advance(DeployStage.FILTERING)
                payload_bytes = enforce_budget(
                    (entry.size for entry in manifest), self.policy
                )
                logger.info(
                    "Payload ready: %d files, %d bytes encoded", len(manifest), payload_bytes
                )

                self._advance(DeployStage.SUBMITTING)
                result = await self._submitter.submit(
                    DeploymentRequest(target_name=name, files=list(manifest))
                )
            except Exception:
                self._advance(DeployStage.FAILED)
                raise

            catalog_updated = await self._link(result, link)
            self._advance(DeployStage.LINKED)
            logger.info("Deployed %s to %s", name, result.live_url)
            return DeployOutcome(
                result=result,
                target_name=name,
                file_count=len(manifest),
                total_bytes=manifest.total_bytes,
                catalog_updated=catalog_updated,
            )
