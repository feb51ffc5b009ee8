"""Web authentication package."""

from protohub.auth.dependencies import UserContext, extract_session_token, require_auth

__all__ = ["UserContext", "extract_session_token", "require_auth"]
