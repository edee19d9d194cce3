"""
Ports — Protocol-based interfaces for the trust store's collaborators.

The updater depends only on these contracts:

  PemFetcher         → one HTTP GET, normalised to Result[str]
  CacheStore         → one persisted byte slot (exists / read / write / mtime)
  CertificateParser  → PEM text → list[CertificateRecord], raising on a
                       malformed container

Adapters satisfy a port by implementing its methods — no inheritance.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from rp_trust_store.domain.models import CertificateRecord
from rp_trust_store.result import Result


@runtime_checkable
class PemFetcher(Protocol):
    """
    Port: download the PEM bundle.

    Success means HTTP 200 with a non-empty body. Every other outcome is a
    Failure(TRANSPORT_ERROR); nothing is raised except caller cancellation.
    """

    async def fetch(self, url: str) -> Result[str]: ...


@runtime_checkable
class CacheStore(Protocol):
    """
    Port: the single cache slot holding the last fetched bundle.

    Blocking, local I/O. `write` replaces the whole slot atomically;
    readers never observe a partially written bundle.
    """

    def exists(self) -> bool: ...

    def read(self) -> str: ...

    def write(self, pem: str) -> None: ...

    def last_modified(self) -> datetime: ...


@runtime_checkable
class CertificateParser(Protocol):
    """
    Port: decode PEM text into certificate records.

    Blank input yields []. Undecodable certificate entries are dropped;
    only a malformed container raises.
    """

    def parse(self, pem: str) -> list[CertificateRecord]: ...
