"""
Domain models — immutable values flowing through the trust store pipeline.

A CertificateRecord is the unit handed to the trust-evaluation layer.
Its identity is content-addressed: two records are the same trust anchor
exactly when their DER encodings are byte-identical.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from rp_trust_store.domain.fingerprint import fingerprint


@dataclass(frozen=True, slots=True)
class CertificateRecord:
    """
    A decoded X.509 relying-party certificate.

    `certificate` holds the canonical DER encoding (the fingerprint input).
    `decoded` is the parsed object for downstream consumers and takes no part
    in equality.
    """

    certificate: bytes = field(repr=False)
    decoded: x509.Certificate = field(repr=False, compare=False, hash=False)

    @classmethod
    def from_x509(cls, cert: x509.Certificate) -> CertificateRecord:
        return cls(certificate=cert.public_bytes(Encoding.DER), decoded=cert)

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.certificate)

    @property
    def subject(self) -> str:
        return self.decoded.subject.rfc4514_string()

    @property
    def issuer(self) -> str:
        return self.decoded.issuer.rfc4514_string()


class CachePolicy(str, Enum):
    """
    When a freshly fetched bundle is written to the cache slot.

    WRITE_THROUGH writes every non-blank body before it is parsed, so a
    corrupt remote bundle replaces the last good cache. WRITE_AFTER_PARSE
    only writes bodies that parsed.
    """

    WRITE_THROUGH = "write_through"
    WRITE_AFTER_PARSE = "write_after_parse"


@dataclass(frozen=True, slots=True)
class CacheSlot:
    """The single persisted bundle: `<directory>/<name>`."""

    directory: Path
    name: str

    @property
    def path(self) -> Path:
        return self.directory / self.name


@dataclass(frozen=True, slots=True)
class TrustAnchorSnapshot:
    """The latest update outcome as held by the host service."""

    certificates: tuple[CertificateRecord, ...] = ()
    updated_at: datetime | None = None

    @property
    def count(self) -> int:
        return len(self.certificates)
