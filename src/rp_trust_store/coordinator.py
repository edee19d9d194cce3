"""
Single-flight coordination for trust store updates.

The updater itself holds no lock. When updates can be triggered from more
than one place (the scheduler and POST /trigger), SingleFlightUpdater makes
overlapping callers share one in-flight update and keeps the latest outcome
as a snapshot for the host service.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import structlog

from rp_trust_store.domain.models import CertificateRecord, TrustAnchorSnapshot
from rp_trust_store.updater import TrustStoreUpdater

log = structlog.get_logger()


class SingleFlightUpdater:
    """
    At most one TrustStoreUpdater.update() in flight per instance.

    Callers arriving while an update runs await that same update. A caller
    that is cancelled stops waiting; the shared update keeps running for the
    others. Must be used from a single event loop.
    """

    def __init__(self, updater: TrustStoreUpdater) -> None:
        self._updater = updater
        self._in_flight: asyncio.Task[list[CertificateRecord]] | None = None
        self._snapshot = TrustAnchorSnapshot()

    @property
    def snapshot(self) -> TrustAnchorSnapshot:
        return self._snapshot

    @property
    def in_flight(self) -> bool:
        return self._in_flight is not None and not self._in_flight.done()

    async def update(self) -> list[CertificateRecord]:
        task = self._in_flight
        if task is None or task.done():
            task = asyncio.create_task(self._run())
            self._in_flight = task
        else:
            log.debug("single_flight.joined", url=self._updater.pem_url)
        return list(await asyncio.shield(task))

    async def _run(self) -> list[CertificateRecord]:
        certificates = await self._updater.update()
        self._snapshot = TrustAnchorSnapshot(
            certificates=tuple(certificates),
            updated_at=datetime.now(UTC),
        )
        log.info("trust_store.updated", certificates=len(certificates))
        return certificates
