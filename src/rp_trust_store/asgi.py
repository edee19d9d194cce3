"""
FastAPI + Uvicorn ASGI application hosting the trust store updater.

Runs the refresh scheduler on the server's event loop and exposes the current
trust anchors plus health probes.

Architecture:
  - FastAPI: lightweight web framework
  - Uvicorn: production ASGI server (handles signals, graceful shutdown)
  - APScheduler AsyncIOScheduler: cron refresh on the same event loop
  - SingleFlightUpdater: scheduler runs and POST /trigger share one update
  - K8s Probes: liveness (scheduler running) + readiness (first update done)

Entry point for production: uvicorn rp_trust_store.asgi:app --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI
from fastapi.responses import JSONResponse

from rp_trust_store import __version__
from rp_trust_store.config import AppSettings
from rp_trust_store.coordinator import SingleFlightUpdater
from rp_trust_store.main import configure_structlog, create_updater
from rp_trust_store.scheduler import create_scheduler

# ─────────────────────── Global State ───────────────────────
# Set during app startup and read by the endpoints.

_scheduler: AsyncIOScheduler | None = None
_coordinator: SingleFlightUpdater | None = None
_error_message: str | None = None
log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Startup: load settings, wire the updater and start the scheduler.
    Shutdown: stop the scheduler.
    """
    global _scheduler, _coordinator, _error_message

    log.info("asgi.startup", event="lifespan_startup")

    try:
        settings = AppSettings()  # type: ignore[call-arg]
    except Exception as e:
        error_msg = f"Configuration error: {e}"
        _error_message = error_msg
        log.error("asgi.startup_error", error=error_msg)
        raise

    configure_structlog(settings.log_level)

    log.info(
        "asgi.startup_config",
        version=__version__,
        log_level=settings.log_level,
        pem_url=settings.trust_store.pem_url,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    try:
        _coordinator = SingleFlightUpdater(create_updater(settings))
        _scheduler = create_scheduler(
            update_fn=_coordinator.update,
            cron=settings.scheduler.cron,
            run_on_startup=settings.run_on_startup,
        )
        _scheduler.start()
    except Exception as e:
        error_msg = f"Failed to initialize updater/scheduler: {e}"
        _error_message = error_msg
        log.error("asgi.init_error", error=error_msg)
        raise

    log.info("asgi.startup_complete")

    yield

    log.info("asgi.shutdown", reason="SIGTERM or server stop")
    try:
        _scheduler.shutdown(wait=False)
        log.info("asgi.scheduler_shutdown_complete")
    except Exception as e:
        log.warning("asgi.scheduler_shutdown_error", error=str(e))
    log.info("asgi.shutdown_complete")


# ─────────────────────── FastAPI Application ───────────────────────

app = FastAPI(
    title="rp-trust-store",
    description="Relying-party certificate trust store — scheduled refresh as a web service",
    version=__version__,
    lifespan=lifespan,
)


def _scheduler_running() -> bool:
    return _scheduler is not None and _scheduler.running


@app.get("/health")
async def health() -> JSONResponse:
    """
    Liveness probe.

    Returns 200 while the scheduler runs and startup raised no error, 503 otherwise.
    """
    if _error_message:
        log.warning("health.check_failed", error=_error_message)
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "error": _error_message},
        )

    if not _scheduler_running():
        return JSONResponse(
            status_code=503,
            content={"status": "unhealthy", "reason": "scheduler not running"},
        )

    return JSONResponse(
        status_code=200,
        content={"status": "healthy", "scheduler_running": True},
    )


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe.

    Ready once the first update has completed, whatever it returned: an empty
    trust store is a valid outcome. Returns 202 while starting.
    """
    if _error_message:
        return JSONResponse(
            status_code=503,
            content={"status": "error", "error": _error_message},
        )

    if _coordinator is None or _coordinator.snapshot.updated_at is None:
        return JSONResponse(
            status_code=202,
            content={"status": "starting", "scheduler_running": _scheduler_running()},
        )

    return JSONResponse(
        status_code=200,
        content={"status": "ready", "certificates": _coordinator.snapshot.count},
    )


@app.get("/info")
async def info() -> dict[str, Any]:
    """Application metadata for debugging and monitoring."""
    snapshot = _coordinator.snapshot if _coordinator is not None else None
    return {
        "name": "rp-trust-store",
        "version": __version__,
        "scheduler_running": _scheduler_running(),
        "update_in_flight": _coordinator is not None and _coordinator.in_flight,
        "certificates": snapshot.count if snapshot is not None else 0,
        "updated_at": (
            snapshot.updated_at.isoformat()
            if snapshot is not None and snapshot.updated_at is not None
            else None
        ),
        "has_error": _error_message is not None,
    }


@app.get("/certificates")
async def certificates() -> JSONResponse:
    """
    The current trust anchors: fingerprint, subject and issuer of each.

    Returns 503 before the updater is initialized.
    """
    if _coordinator is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "reason": "Updater not initialized"},
        )

    snapshot = _coordinator.snapshot
    return JSONResponse(
        status_code=200,
        content={
            "count": snapshot.count,
            "updated_at": snapshot.updated_at.isoformat() if snapshot.updated_at else None,
            "certificates": [
                {
                    "fingerprint": record.fingerprint,
                    "subject": record.subject,
                    "issuer": record.issuer,
                }
                for record in snapshot.certificates
            ],
        },
    )


@app.post("/trigger")
async def trigger() -> JSONResponse:
    """
    Run a trust store update now.

    Joins an update that is already in flight instead of starting a second one.
    Returns 200 with the resulting certificate count, 503 before startup.
    """
    if _coordinator is None:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "reason": "Updater not initialized"},
        )

    log.info("trigger.manual_start", source="REST")

    try:
        result = await _coordinator.update()
    except Exception as e:
        log.error("trigger.exception", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": str(e)},
        )

    log.info("trigger.completed", certificates=len(result))
    return JSONResponse(
        status_code=200,
        content={"status": "success", "certificates": len(result)},
    )


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rp_trust_store.asgi:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
        log_level="info",
    )
