"""Shared request rate limiter."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from protohub.config import get_settings

limiter = Limiter(key_func=get_remote_address)


def deploy_limit() -> str:
    return f"{get_settings().rate_limit_deploys_per_minute}/minute"
