"""
Shared test fixtures and helpers for the rp-trust-store test suite.

Certificates are generated at test time with cryptography (EC P-256,
self-signed), so no binary fixtures are checked in.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TypeVar

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.hazmat.primitives.serialization import Encoding

from rp_trust_store.result import ErrorCode, FailureDescription, Result

T = TypeVar("T")

GARBAGE_BUNDLE = "this is not a PEM bundle\nat all\n"

BROKEN_CERTIFICATE_BLOCK = (
    "-----BEGIN CERTIFICATE-----\n"
    "bm90IGEgY2VydGlmaWNhdGU=\n"
    "-----END CERTIFICATE-----\n"
)


def make_certificate(common_name: str = "rp.example.com") -> x509.Certificate:
    """Create a self-signed EC certificate with the given subject CN."""
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(x509.oid.NameOID.COMMON_NAME, common_name)])
    now = datetime.now(UTC)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=30))
        .sign(key, hashes.SHA256())
    )


def to_pem(*certificates: x509.Certificate) -> str:
    """Concatenate certificates into one PEM bundle."""
    return "".join(cert.public_bytes(Encoding.PEM).decode("ascii") for cert in certificates)


class ResultAssertions:
    """Expressive test assertions for Result values."""

    @staticmethod
    def assert_success(result: Result[T]) -> T:
        assert result.is_success(), f"Expected Success but got Failure({result.error()})"
        return result.value()

    @staticmethod
    def assert_failure(result: Result[T], expected_code: ErrorCode | None = None) -> FailureDescription:
        assert result.is_failure(), f"Expected Failure but got Success({result.value()!r})"
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} but got {error.code.value}: {error.message!r}"
            )
        return error


@pytest.fixture(scope="session")
def cert_a() -> x509.Certificate:
    return make_certificate("rp-a.example.com")


@pytest.fixture(scope="session")
def cert_b() -> x509.Certificate:
    return make_certificate("rp-b.example.com")


@pytest.fixture(scope="session")
def cert_c() -> x509.Certificate:
    return make_certificate("rp-c.example.com")
