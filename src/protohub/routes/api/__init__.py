"""API router aggregation."""

from fastapi import APIRouter

from protohub.routes.api import deploy, projects, templates

router = APIRouter(prefix="/api", tags=["api"])
router.include_router(deploy.router)
router.include_router(templates.router)
router.include_router(projects.router)
