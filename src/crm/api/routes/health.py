"""Health check endpoints.

Provides liveness (/health) and readiness (/health/ready) checks. Readiness
round-trips the database through the repository.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from src.crm.config import get_settings
from src.crm.core.errors import CrmError

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Basic liveness check. No external dependencies are checked."""
    settings = get_settings()
    return {"status": "ok", "environment": settings.ENVIRONMENT.value}


async def _check_dependencies(request: Request) -> dict:
    """Check database connectivity. Returns check results dict."""
    checks: dict = {"database": "ok"}

    repo = getattr(request.app.state, "crm_repository", None)
    if repo is None:
        checks["database"] = "error"
        checks["database_error"] = "repository not initialized"
        return checks

    try:
        await repo.ping()
    except CrmError as e:
        checks["database"] = "error"
        checks["database_error"] = e.message
    except Exception as e:
        checks["database"] = "error"
        checks["database_error"] = str(e) or type(e).__name__

    return checks


@router.get("/health/ready")
async def readiness_check(request: Request):
    """Readiness check: 200 if the database answers, 503 otherwise."""
    checks = await _check_dependencies(request)
    healthy = checks.get("database") == "ok"

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "ready" if healthy else "degraded",
            "checks": checks,
        },
    )
