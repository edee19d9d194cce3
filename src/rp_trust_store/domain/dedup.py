"""
Fingerprint deduplication — a free, pure function over certificate records.

Equality is content-addressed: records whose DER encodings hash to the same
SHA-256 digest are one trust anchor, whatever metadata the decoded objects
carry. Order is preserved and the first occurrence wins.
"""

from __future__ import annotations

from collections.abc import Iterable

from rp_trust_store.domain.models import CertificateRecord


def deduplicate_by_fingerprint(records: Iterable[CertificateRecord]) -> list[CertificateRecord]:
    seen: set[str] = set()
    unique: list[CertificateRecord] = []
    for record in records:
        key = record.fingerprint
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique
