from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from loandesk import __version__ as APP_VERSION
from loandesk.core.settings import settings
from loandesk.services.loan_store import LoanRecordStore
from loandesk.utils.redis_client import get_redis_client


async def _check_db(store: LoanRecordStore) -> dict[str, str]:
    try:
        await store.ping()
        return {"status": "ok"}
    except Exception as exc:  # pragma: no cover - exercised in runtime
        return {"status": "error", "error": str(exc)}


async def _check_redis() -> dict[str, str]:
    if not settings.redis_url:
        return {"status": "skipped"}
    try:
        redis = get_redis_client()
        await redis.ping()
        return {"status": "ok"}
    except Exception as exc:
        return {"status": "error", "error": str(exc)}


def _check_payments() -> dict[str, str]:
    configured = bool(settings.stripe_secret_key and settings.stripe_webhook_secret)
    return {"status": "ok" if configured else "unconfigured"}


def _overall_status(checks: dict[str, dict[str, Any]]) -> tuple[str, bool]:
    ready = all(check.get("status") in {"ok", "skipped"} for check in checks.values())
    return ("ok" if ready else "degraded", ready)


async def live_payload() -> dict[str, str]:
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


async def _collect_checks(store: LoanRecordStore) -> dict[str, dict[str, str]]:
    return {
        "api": {"status": "ok", "version": APP_VERSION},
        "database": await _check_db(store),
        "redis": await _check_redis(),
        "payments": _check_payments(),
    }


async def ready_payload(store: LoanRecordStore) -> dict[str, Any]:
    checks = await _collect_checks(store)
    overall, ready = _overall_status(checks)
    return {
        "status": overall,
        "ready": ready,
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "checks": checks,
    }


async def status_summary_payload(store: LoanRecordStore) -> dict[str, Any]:
    payload = await ready_payload(store)
    payload["version"] = APP_VERSION
    return payload
