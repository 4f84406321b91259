from __future__ import annotations

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from sqlalchemy import text

from docmarket.api.deps import get_database
from docmarket.core.config import get_settings
from docmarket.db.session import Database
from docmarket.workers.celery_app import celery_app

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["health"])


def _ok_check(extra: dict[str, Any] | None = None) -> dict[str, Any]:
    return {"status": "ok", **(extra or {})}


def _failed_check(error: str) -> dict[str, str]:
    return {"status": "failed", "error": error}


async def _check_database(database: Database) -> dict[str, Any]:
    try:
        async with database.session() as session:
            await session.execute(text("SELECT 1"))
        return _ok_check()
    except Exception as exc:
        logger.warning("health_check_failed", dependency="database", error_type=type(exc).__name__)
        return _failed_check("database_unavailable")


async def _check_redis() -> dict[str, Any]:
    redis_client: Redis | None = None
    try:
        redis_client = Redis.from_url(get_settings().redis_url)
        pong = await redis_client.ping()
        if pong is not True:
            return _failed_check("redis_unexpected_ping_response")
        return _ok_check()
    except Exception as exc:
        logger.warning("health_check_failed", dependency="redis", error_type=type(exc).__name__)
        return _failed_check("redis_unavailable")
    finally:
        if redis_client is not None:
            await redis_client.aclose()


def _check_celery_worker_sync() -> dict[str, Any]:
    try:
        replies = celery_app.control.inspect(timeout=1.0).ping() or {}
    except Exception as exc:
        logger.warning("health_check_failed", dependency="celery", error_type=type(exc).__name__)
        return _failed_check("celery_unavailable")
    if not replies:
        return _failed_check("no_celery_workers")
    return _ok_check({"workers": len(replies)})


async def _check_celery_worker() -> dict[str, Any]:
    return await asyncio.to_thread(_check_celery_worker_sync)


def _checks_response(
    checks: dict[str, dict[str, Any]],
    *,
    ok_label: str,
    failed_label: str,
) -> JSONResponse:
    is_ok = all(check.get("status") == "ok" for check in checks.values())
    return JSONResponse(
        status_code=status.HTTP_200_OK if is_ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": ok_label if is_ok else failed_label, "checks": checks},
    )


@router.get("/live")
async def live() -> dict[str, str]:
    return {"status": "live"}


@router.get("/health")
async def health(database: Database = Depends(get_database)) -> JSONResponse:
    database_check, redis_check, celery_check = await asyncio.gather(
        _check_database(database),
        _check_redis(),
        _check_celery_worker(),
    )
    checks = {"database": database_check, "redis": redis_check, "celery": celery_check}
    return _checks_response(checks, ok_label="ok", failed_label="degraded")


@router.get("/ready")
async def ready(database: Database = Depends(get_database)) -> JSONResponse:
    # workers are not required to accept traffic
    database_check, redis_check = await asyncio.gather(_check_database(database), _check_redis())
    checks = {"database": database_check, "redis": redis_check}
    return _checks_response(checks, ok_label="ready", failed_label="not_ready")
