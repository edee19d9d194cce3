"""
Unit tests for the PEM certificate parser adapter.

Test categories:
  - Blank input: empty / whitespace → []
  - Happy path: multi-certificate bundles decode in bundle order
  - Tolerance: non-certificate blocks ignored, broken certificate blocks dropped
  - Container failure: non-blank text without PEM armour → PemFormatError
"""

from __future__ import annotations

import pytest
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from rp_trust_store.adapters.pem_parser import PemCertificateParser, PemFormatError
from tests.conftest import BROKEN_CERTIFICATE_BLOCK, GARBAGE_BUNDLE, to_pem

KEY_BLOCK = (
    "-----BEGIN PUBLIC KEY-----\n"
    "MFkwEwYHKoZIzj0CAQYIKoZIzj0DAQcDQgAE\n"
    "-----END PUBLIC KEY-----\n"
)


@pytest.fixture()
def parser() -> PemCertificateParser:
    return PemCertificateParser()


class TestBlankInput:
    """
    GIVEN blank text
    WHEN parsed
    THEN the result is an empty list, not an error.
    """

    @pytest.mark.parametrize("text", ["", "   ", "\n\t \n"])
    def test_blank_yields_empty_list(self, parser: PemCertificateParser, text: str) -> None:
        assert parser.parse(text) == []


class TestValidBundles:
    def test_single_certificate(self, parser: PemCertificateParser, cert_a: x509.Certificate) -> None:
        records = parser.parse(to_pem(cert_a))
        assert len(records) == 1
        assert records[0].certificate == cert_a.public_bytes(Encoding.DER)

    def test_preserves_bundle_order(
        self,
        parser: PemCertificateParser,
        cert_a: x509.Certificate,
        cert_b: x509.Certificate,
        cert_c: x509.Certificate,
    ) -> None:
        """
        GIVEN a bundle [B, C, A]
        WHEN parsed
        THEN records come back as [B, C, A].
        """
        records = parser.parse(to_pem(cert_b, cert_c, cert_a))
        assert [r.subject for r in records] == [
            "CN=rp-b.example.com",
            "CN=rp-c.example.com",
            "CN=rp-a.example.com",
        ]

    def test_does_not_deduplicate(self, parser: PemCertificateParser, cert_a: x509.Certificate) -> None:
        """Deduplication is a separate stage; the parser returns every entry."""
        records = parser.parse(to_pem(cert_a, cert_a))
        assert len(records) == 2

    def test_tolerates_surrounding_text_and_crlf(
        self, parser: PemCertificateParser, cert_a: x509.Certificate
    ) -> None:
        text = "# relying parties\r\n" + to_pem(cert_a).replace("\n", "\r\n") + "trailer\r\n"
        records = parser.parse(text)
        assert len(records) == 1


class TestTolerance:
    def test_ignores_non_certificate_blocks(
        self, parser: PemCertificateParser, cert_a: x509.Certificate
    ) -> None:
        """
        GIVEN a bundle with a PUBLIC KEY block next to a certificate
        WHEN parsed
        THEN only the certificate is returned.
        """
        records = parser.parse(KEY_BLOCK + to_pem(cert_a))
        assert len(records) == 1

    def test_only_non_certificate_blocks_yield_empty(self, parser: PemCertificateParser) -> None:
        assert parser.parse(KEY_BLOCK) == []

    def test_drops_undecodable_certificate_block(
        self,
        parser: PemCertificateParser,
        cert_a: x509.Certificate,
        cert_b: x509.Certificate,
    ) -> None:
        """
        GIVEN [A, <broken certificate block>, B]
        WHEN parsed
        THEN the broken block is dropped and A, B are returned.
        """
        records = parser.parse(to_pem(cert_a) + BROKEN_CERTIFICATE_BLOCK + to_pem(cert_b))
        assert [r.subject for r in records] == ["CN=rp-a.example.com", "CN=rp-b.example.com"]


class TestContainerFailure:
    def test_text_without_armour_raises(self, parser: PemCertificateParser) -> None:
        with pytest.raises(PemFormatError):
            parser.parse(GARBAGE_BUNDLE)

    def test_unterminated_block_raises(self, parser: PemCertificateParser) -> None:
        with pytest.raises(PemFormatError):
            parser.parse("-----BEGIN CERTIFICATE-----\nMIIB\n")

    def test_all_certificate_blocks_undecodable_raises(self, parser: PemCertificateParser) -> None:
        """
        GIVEN armoured CERTIFICATE blocks none of which decodes
        WHEN parsed
        THEN PemFormatError is raised instead of returning [].
        """
        with pytest.raises(PemFormatError, match="2 CERTIFICATE block"):
            parser.parse(BROKEN_CERTIFICATE_BLOCK + BROKEN_CERTIFICATE_BLOCK)

    def test_undecodable_certificate_beside_key_raises(self, parser: PemCertificateParser) -> None:
        with pytest.raises(PemFormatError):
            parser.parse(KEY_BLOCK + BROKEN_CERTIFICATE_BLOCK)

    def test_pem_format_error_is_value_error(self) -> None:
        assert issubclass(PemFormatError, ValueError)
