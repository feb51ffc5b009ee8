"""Health and readiness routes."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from protohub.config import get_settings

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthz() -> dict[str, bool]:
    return {"ok": True}


@router.get("/readyz")
async def readyz() -> JSONResponse:
    settings = get_settings()
    providers = {
        "vercel": bool(settings.vercel_token.strip()),
        "supabase": bool(settings.supabase_url.strip() and settings.supabase_anon_key.strip()),
        "github_token": bool(settings.github_token.strip()),
    }
    ok = providers["vercel"] and providers["supabase"]
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"ok": ok, "providers": providers},
    )
