"""Doctor command: configuration checks with a color-coded report."""

from __future__ import annotations

import asyncio
import json
from dataclasses import asdict, dataclass

import httpx

from protohub.config import Settings, get_settings, validate_settings_for_env
from protohub.deploy.vercel import VercelClient


@dataclass(frozen=True, slots=True)
class CheckResult:
    name: str
    passed: bool
    message: str
    fix_hint: str = ""


def _green(text: str) -> str:
    return f"\033[32m{text}\033[0m"


def _red(text: str) -> str:
    return f"\033[31m{text}\033[0m"


def _yellow(text: str) -> str:
    return f"\033[33m{text}\033[0m"


def check_config_validates(settings: Settings) -> CheckResult:
    try:
        validate_settings_for_env(settings)
    except ValueError as exc:
        return CheckResult(
            name="Configuration valid for APP_ENV",
            passed=False,
            message=str(exc),
            fix_hint="Set the missing keys in .env or the environment.",
        )
    return CheckResult(
        name="Configuration valid for APP_ENV",
        passed=True,
        message=f"APP_ENV={settings.app_env}",
    )


def check_vercel_token(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> CheckResult:
    name = "Vercel token accepted"
    if not settings.vercel_token.strip():
        return CheckResult(
            name=name,
            passed=False,
            message="VERCEL_TOKEN not set",
            fix_hint="Create a token at https://vercel.com/account/tokens.",
        )
    client = VercelClient.from_settings(settings, transport=transport)
    ok = asyncio.run(client.health_check())
    return CheckResult(
        name=name,
        passed=ok,
        message="token valid" if ok else "Vercel rejected the token or is unreachable",
        fix_hint="Regenerate VERCEL_TOKEN and check VERCEL_API_BASE_URL.",
    )


def check_supabase(settings: Settings) -> CheckResult:
    configured = bool(settings.supabase_url.strip() and settings.supabase_anon_key.strip())
    return CheckResult(
        name="Supabase configured",
        passed=configured,
        message="SUPABASE_URL and SUPABASE_ANON_KEY set" if configured else "missing keys",
        fix_hint="Copy the project URL and anon key from the Supabase dashboard.",
    )


def check_github_token(settings: Settings) -> CheckResult:
    has_token = bool(settings.github_token.strip())
    # optional: only raises the rate limit, so it always passes
    return CheckResult(
        name="GitHub token",
        passed=True,
        message="set" if has_token else "not set (60 requests/hour unauthenticated)",
    )


def run_checks(
    settings: Settings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[CheckResult]:
    settings = settings or get_settings()
    return [
        check_config_validates(settings),
        check_supabase(settings),
        check_vercel_token(settings, transport=transport),
        check_github_token(settings),
    ]


def run_doctor(*, json_output: bool = False) -> bool:
    results = run_checks()
    for result in results:
        icon = _green("✓") if result.passed else _red("✗")
        print(f"  {icon} {result.name}: {result.message}")
        if not result.passed and result.fix_hint:
            print(f"    {_yellow('Fix:')} {result.fix_hint}")
    if json_output:
        print(json.dumps([asdict(result) for result in results], indent=2))
    return all(result.passed for result in results)
