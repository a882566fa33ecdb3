from __future__ import annotations

import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ping", tags=["health"])


@router.get("", summary="Liveness probe")
async def ping() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready", summary="Readiness probe checking the database")
async def ready(request: Request) -> JSONResponse:
    tester = getattr(request.app.state, "postgres_tester", None)
    if tester is None:
        return JSONResponse({"status": "ok", "database": "skipped"})
    try:
        await tester.test_connection()
    except Exception as exc:
        logger.warning("Database readiness check failed: %s", exc)
        return JSONResponse({"status": "unavailable", "database": "error"}, status_code=503)
    return JSONResponse({"status": "ok", "database": "ok"})
