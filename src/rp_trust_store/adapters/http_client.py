"""
HTTP adapter — PEM bundle download via httpx.

Adapter layer — implements the PemFetcher port with an httpx AsyncClient.

One GET per call (redirects followed), default headers, no request body,
no retries: a failed download is recovered by the updater's cache fallback,
and the next scheduled update is the retry. Every failure (non-200 status, empty body,
DNS/TLS/connection errors, timeouts) is captured into a TRANSPORT_ERROR
Result — no exceptions leak to the orchestration layer.

The client is opened per request inside `async with`, so the connection is
released on success, on error and when the awaiting task is cancelled.
"""

from __future__ import annotations

import httpx
import structlog

from rp_trust_store.result import ErrorCode, Result

log = structlog.get_logger()

CONNECT_TIMEOUT_SECONDS = 10.0
READ_TIMEOUT_SECONDS = 15.0


class EmptyBundleError(Exception):
    """The server answered 200 with an empty body."""


class HttpPemFetcher:
    """
    Download PEM certificate bundles via HTTP GET.

    Implements the PemFetcher port.
    """

    def __init__(
        self,
        connect_timeout: float = CONNECT_TIMEOUT_SECONDS,
        read_timeout: float = READ_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=read_timeout,
            pool=connect_timeout,
        )
        self._transport = transport

    async def fetch(self, url: str) -> Result[str]:
        """
        GET `url` and return the body text.

        Returns Result[str] with the PEM text on HTTP 200 with a non-empty body,
        or Result.failure(TRANSPORT_ERROR, ...) on any other outcome.
        """
        return await Result.from_awaitable(
            self._do_fetch(url),
            ErrorCode.TRANSPORT_ERROR,
            f"PEM bundle download from {url} failed",
        )

    async def _do_fetch(self, url: str) -> str:
        """HTTP GET — exceptions are captured by from_awaitable."""
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            follow_redirects=True,
        ) as client:
            response = await client.get(url)
            if response.status_code != httpx.codes.OK:
                log.warning("fetch.http_status", url=url, status_code=response.status_code)
                raise httpx.HTTPStatusError(
                    f"HTTP {response.status_code} from {url}",
                    request=response.request,
                    response=response,
                )
            text = response.text
            if not text:
                raise EmptyBundleError(f"Empty response body from {url}")
            log.info("fetch.complete", url=url, size_bytes=len(response.content))
            return text
