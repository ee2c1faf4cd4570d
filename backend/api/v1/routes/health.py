import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text

from common.core.config import settings
from common.core.otel_axiom_exporter import get_logger
from common.db.scoped import get_session
from common.providers.rate_limiter.limiter import limiter

logger = get_logger(__name__)

router = APIRouter()


@router.get("/")
@limiter.exempt
async def health_check(request: Request):
    # No rate limiting or logging - k8s probes hit this every 5-10s
    return {"status": "healthy", "service": settings.app_name}


@router.get("/db")
@limiter.limit("100/minute")
async def db_check(request: Request):
    """Round-trip the read-only pool and report latency."""
    started = time.perf_counter()
    try:
        async with get_session(readonly=True) as session:
            await session.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "database": "disconnected"},
        )
    latency_ms = round((time.perf_counter() - started) * 1000, 2)
    return {"status": "healthy", "database": "connected", "latency_ms": latency_ms}
