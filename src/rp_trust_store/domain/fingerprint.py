"""SHA-256 fingerprints of DER-encoded certificates."""

from __future__ import annotations

import hashlib


def fingerprint(der: bytes) -> str:
    """Uppercase hex SHA-256 digest of the DER bytes (64 characters, no separators)."""
    return hashlib.sha256(der).hexdigest().upper()
