"""FastAPI dependencies for Supabase session auth."""

import logging
from dataclasses import dataclass

from fastapi import Cookie, Depends, Header

from protohub.errors import AuthorizationError
from protohub.providers import Providers, get_providers

logger = logging.getLogger(__name__)

SESSION_COOKIE = "sb-access-token"


def _extract_bearer(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    return token.strip()


def extract_session_token(
    authorization: str | None,
    session_cookie: str | None,
) -> str | None:
    bearer = _extract_bearer(authorization)
    if bearer:
        return bearer
    if session_cookie:
        token = session_cookie.strip()
        if token:
            return token
    return None


@dataclass(frozen=True, slots=True)
class UserContext:
    user_id: str
    email: str
    access_token: str


async def require_auth(
    authorization: str | None = Header(default=None),
    sb_access_token: str | None = Cookie(default=None, alias=SESSION_COOKIE),
    providers: Providers = Depends(get_providers),  # noqa: B008
) -> UserContext:
    raw_token = extract_session_token(authorization, sb_access_token)
    if not raw_token:
        raise AuthorizationError("Unauthorized")
    store = providers.store()
    if not store.enabled:
        logger.warning("SUPABASE_URL/SUPABASE_ANON_KEY not set; rejecting session")
        raise AuthorizationError("Unauthorized")
    user = await store.get_user(raw_token)
    if user is None:
        raise AuthorizationError("Unauthorized")
    return UserContext(
        user_id=str(user["id"]),
        email=str(user.get("email") or ""),
        access_token=raw_token,
    )
