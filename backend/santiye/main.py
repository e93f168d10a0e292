"""
Şantiye Site-Management API v1.0
FastAPI backend for construction project tracking: Gantt schedule with
earned value, hakediş (progress payments) and portfolio dashboard.
"""
import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from santiye import config
from santiye.services.logging_config import setup_logging
from santiye.services.middleware import RequestTimingMiddleware
from santiye.services.perf_monitor import tracker as perf_tracker
from santiye.store import SiteStore, get_store, store

setup_logging(level=config.LOG_LEVEL, json_output=config.JSON_LOGS)
logger = logging.getLogger("santiye-api")

# Record process start time for uptime calculation
_PROCESS_START = time.monotonic()


@asynccontextmanager
async def lifespan(app: FastAPI):
    if config.SEED_DEMO_DATA:
        store.seed_demo_data()
    else:
        logger.info("SANTIYE_SEED_DEMO not set, starting with an empty store")
    yield


app = FastAPI(
    title="Şantiye Site-Management API",
    version=config.APP_VERSION,
    description="Construction site management: schedule, earned value and hakediş",
    lifespan=lifespan,
)


# ---------------------------------------------------------------------------
# Security Headers Middleware
# ---------------------------------------------------------------------------
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds standard security headers to every response."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Requested-With"],
)
app.add_middleware(SecurityHeadersMiddleware)
# Request timing + X-Request-ID must be outermost so it wraps all other middleware
app.add_middleware(RequestTimingMiddleware)

# Routers
from santiye.api.project_routes import router as project_router  # noqa: E402
from santiye.api.schedule_routes import router as schedule_router  # noqa: E402
from santiye.api.finance_routes import router as finance_router  # noqa: E402
from santiye.api.subcontractor_routes import router as subcontractor_router  # noqa: E402
from santiye.api.punch_routes import router as punch_router  # noqa: E402

app.include_router(project_router)
app.include_router(schedule_router)
app.include_router(finance_router)
app.include_router(subcontractor_router)
app.include_router(punch_router)


@app.get("/health")
async def health_check(site_store: SiteStore = Depends(get_store)):
    return {
        "status": "active",
        "version": config.APP_VERSION,
        "projects_loaded": len(site_store.list_projects()),
        "demo_seeded": config.SEED_DEMO_DATA,
    }


@app.get("/metrics")
async def metrics():
    """
    Calculation metrics sourced from the in-process PerformanceTracker.
    """
    snapshot = perf_tracker.get_metrics()
    return {
        "uptime_seconds": round(time.monotonic() - _PROCESS_START, 1),
        **snapshot,
    }


@app.get("/api/v1/dashboard/summary")
async def dashboard_summary(site_store: SiteStore = Depends(get_store)):
    from santiye.services.dashboard_engine import portfolio_summary
    return portfolio_summary(
        site_store.list_projects(),
        punch_items=site_store.list_punch_items(),
        subcontractors=site_store.list_subcontractors(),
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("santiye.main:app", host="0.0.0.0", port=8000, reload=True)
