"""Liveness and readiness probes, mounted outside the API prefix."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health_check():
    return {"status": "healthy"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Ready only when the configured database answers a ping."""
    database = getattr(request.app.state, "database", None)
    if database is None:
        db_check = "not configured"
    else:
        try:
            await database.ping()
            db_check = "ok"
        except Exception as e:
            db_check = f"failed: {e}"

    ready = db_check == "ok"
    body = {"status": "ready" if ready else "not_ready", "checks": {"database": db_check}}
    return body if ready else JSONResponse(content=body, status_code=503)
