"""
Updater — the fetch → cache → parse → dedupe pipeline and its fallback policy.

Each stage returns a Result; the fresh path is a railway and any failure on
it (transport, cache write, parse) switches to the cache fallback:

  fetch(pem_url)
    → ensure non-blank
      → write-through to the cache slot
        → parse + dedupe                      ──▶ fresh certificates
  on Failure:
  cache exists?
    → log staleness (hours, advisory only)
      → read slot → parse + dedupe            ──▶ cached certificates
  on Failure / no cache                       ──▶ []

Exactly one source wins per call; fresh and cached data are never merged.
There is no retry inside one update(). No exception escapes update()
except cancellation of the awaiting task.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from rp_trust_store.domain.dedup import deduplicate_by_fingerprint
from rp_trust_store.domain.models import CachePolicy, CertificateRecord
from rp_trust_store.domain.ports import CacheStore, CertificateParser, PemFetcher
from rp_trust_store.result import ErrorCode, FailureDescription, Result

log = structlog.get_logger()

_SECONDS_PER_HOUR = 3600


def _utc_now() -> datetime:
    return datetime.now(UTC)


class TrustStoreUpdater:
    """
    Produce the deduplicated relying-party certificate list.

    With CachePolicy.WRITE_THROUGH (the default) a non-blank body is written to
    the cache before it is parsed, so an unparsable remote bundle replaces the
    previous cache and the fallback then parses that same bundle.
    CachePolicy.WRITE_AFTER_PARSE only caches bodies that parsed.

    The updater holds no lock: two concurrent update() calls race on the cache
    slot and the last writer wins. Wrap it in SingleFlightUpdater when
    updates can overlap.
    """

    def __init__(
        self,
        pem_url: str,
        fetcher: PemFetcher,
        cache: CacheStore,
        parser: CertificateParser,
        cache_policy: CachePolicy = CachePolicy.WRITE_THROUGH,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._pem_url = pem_url
        self._fetcher = fetcher
        self._cache = cache
        self._parser = parser
        self._cache_policy = cache_policy
        self._clock = clock

    @property
    def pem_url(self) -> str:
        return self._pem_url

    async def update(self) -> list[CertificateRecord]:
        """
        Fetch, cache and parse the remote bundle, falling back to the cache.

        Blocking file I/O and parsing run in a worker thread, the download on
        the event loop. Returns [] when neither source yields certificates.
        """
        fetched = (
            await Result.from_awaitable(
                self._fetcher.fetch(self._pem_url),
                ErrorCode.TRANSPORT_ERROR,
                f"PEM bundle download from {self._pem_url} failed",
            )
        ).flat_map(lambda result: result)

        fresh = await asyncio.to_thread(self._from_remote, fetched)
        if fresh.is_success():
            return fresh.value()

        return await asyncio.to_thread(self._from_cache)

    # ──────────────────────── Fresh path ────────────────────────

    def _from_remote(self, fetched: Result[str]) -> Result[list[CertificateRecord]]:
        pem = fetched.ensure(
            lambda text: bool(text.strip()),
            ErrorCode.TRANSPORT_ERROR,
            "Fetched PEM bundle is blank",
        )
        if self._cache_policy is CachePolicy.WRITE_AFTER_PARSE:
            result = pem.flat_map(
                lambda text: self._parse(text).flat_map(
                    lambda records: self._write(text).map(lambda _: records)
                )
            )
        else:
            result = pem.flat_map(self._write).flat_map(self._parse)
        return result.peek_failure(self._log_remote_failure)

    def _write(self, pem: str) -> Result[str]:
        def write() -> str:
            self._cache.write(pem)
            log.info("cache.written", url=self._pem_url, policy=self._cache_policy.value)
            return pem

        return Result.from_computation(write, ErrorCode.STORAGE_ERROR, "Cache write failed")

    def _log_remote_failure(self, error: FailureDescription) -> None:
        log.warning(
            "fetch.failed",
            url=self._pem_url,
            error_code=error.code.value,
            error=str(error),
        )

    # ──────────────────────── Fallback path ────────────────────────

    def _from_cache(self) -> list[CertificateRecord]:
        exists = Result.from_computation(
            self._cache.exists, ErrorCode.STORAGE_ERROR, "Cache lookup failed"
        ).get_or_else(False)
        if not exists:
            log.info("trust_store.empty", reason="no cache")
            return []

        log.info("cache.using", stale_hours=self._stale_hours())
        return (
            Result.from_computation(self._cache.read, ErrorCode.STORAGE_ERROR, "Cache read failed")
            .flat_map(self._parse)
            .either(
                on_success=lambda records: records,
                on_failure=self._log_cache_failure,
            )
        )

    def _stale_hours(self) -> int | None:
        """Whole hours since the slot was last written; diagnostics only."""
        return (
            Result.from_computation(
                self._cache.last_modified, ErrorCode.STORAGE_ERROR, "Cache mtime unavailable"
            )
            .map(lambda modified: int((self._clock() - modified).total_seconds() // _SECONDS_PER_HOUR))
            .get_or_else(None)  # type: ignore[arg-type]
        )

    def _log_cache_failure(self, error: FailureDescription) -> list[CertificateRecord]:
        log.warning("cache.parse_failed", error_code=error.code.value, error=str(error))
        log.info("trust_store.empty", reason="cache unusable")
        return []

    # ──────────────────────── Shared ────────────────────────

    def _parse(self, pem: str) -> Result[list[CertificateRecord]]:
        return Result.from_computation(
            lambda: deduplicate_by_fingerprint(self._parser.parse(pem)),
            ErrorCode.PARSE_ERROR,
            "Certificate bundle could not be parsed",
        )
