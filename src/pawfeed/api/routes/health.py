"""Health check endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text


router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Return service health, checking both the remote store and local storage databases."""
    checks: dict[str, str] = {}
    overall_ok = True

    for name, attr in (("remote_store", "db_session_factory"), ("local_storage", "local_session_factory")):
        try:
            session_factory = getattr(request.app.state, attr)
            async with session_factory() as session:
                await session.execute(text("SELECT 1"))
            checks[name] = "ok"
        except Exception as exc:
            checks[name] = f"error: {exc}"
            overall_ok = False

    registry = getattr(request.app.state, "feed_registry", None)
    return JSONResponse(
        status_code=200 if overall_ok else 503,
        content={
            "status": "healthy" if overall_ok else "degraded",
            "service": "pawfeed",
            "version": "0.3.0",
            "checks": checks,
            "open_feeds": len(registry) if registry is not None else 0,
        },
    )
