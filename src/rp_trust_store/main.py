"""
Application entry point — wires dependencies and runs the refresh scheduler.

Composition root: creates concrete adapters, injects them into the updater,
wraps it in the single-flight coordinator and hands that to the scheduler.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Configure structlog
  2. Load and validate configuration from environment
  3. Create the fetcher, cache store and parser adapters
  4. Build TrustStoreUpdater + SingleFlightUpdater
  5. Run the scheduler until SIGINT/SIGTERM
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys

import structlog

from rp_trust_store import __version__
from rp_trust_store.adapters.file_cache import FileCacheStore
from rp_trust_store.adapters.http_client import HttpPemFetcher
from rp_trust_store.adapters.pem_parser import PemCertificateParser
from rp_trust_store.config import AppSettings
from rp_trust_store.coordinator import SingleFlightUpdater
from rp_trust_store.scheduler import create_scheduler
from rp_trust_store.updater import TrustStoreUpdater


def configure_structlog(log_level: str = "INFO") -> None:
    """
    Configure structlog for structured logging.

    Key/value events with ISO timestamps, rendered for the console.
    """
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_updater(settings: AppSettings) -> TrustStoreUpdater:
    """Instantiate the adapters and the updater from application settings."""
    fetcher = HttpPemFetcher(
        connect_timeout=settings.http.connect_timeout_seconds,
        read_timeout=settings.http.read_timeout_seconds,
    )
    cache = FileCacheStore(
        directory=settings.storage.directory,
        name=settings.storage.cache_file,
    )
    return TrustStoreUpdater(
        pem_url=settings.trust_store.pem_url,
        fetcher=fetcher,
        cache=cache,
        parser=PemCertificateParser(),
        cache_policy=settings.trust_store.cache_policy,
    )


async def _serve(settings: AppSettings) -> None:
    """Run the scheduler on this event loop until a shutdown signal arrives."""
    log = structlog.get_logger()
    coordinator = SingleFlightUpdater(create_updater(settings))
    scheduler = create_scheduler(
        update_fn=coordinator.update,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    log.info("app.scheduler_starting", cron=settings.scheduler.cron)
    scheduler.start()
    try:
        await stop.wait()
    finally:
        log.info("app.shutdown", reason="signal received")
        scheduler.shutdown(wait=False)


def main() -> None:
    """Wire dependencies and launch the scheduled refresh."""
    try:
        settings = AppSettings()  # type: ignore[call-arg]
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        log_level=settings.log_level,
        pem_url=settings.trust_store.pem_url,
        cache_policy=settings.trust_store.cache_policy.value,
        cron=settings.scheduler.cron,
        run_on_startup=settings.run_on_startup,
    )

    try:
        asyncio.run(_serve(settings))
    except Exception as e:
        log.error("app.fatal_error", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
