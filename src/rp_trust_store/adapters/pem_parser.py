"""
PEM parser adapter — certificate bundle text → CertificateRecord list.

Adapter layer — implements the CertificateParser port using cryptography
(PyCA) for X.509 decoding.

Pipeline:
  PEM text
    → armour scan: every `-----BEGIN <LABEL>----- … -----END <LABEL>-----` block
    → keep CERTIFICATE / X509 CERTIFICATE blocks, ignore keys, CRLs, etc.
    → cryptography: x509.load_pem_x509_certificate() per block
    → CertificateRecord (DER re-encoding + decoded object)

Failure policy: a block that does not decode is logged and dropped. Non-blank
input without any PEM armour raises PemFormatError, and so does a bundle whose
CERTIFICATE blocks all fail to decode. The updater treats either as a failed
parse of the whole bundle.
"""

from __future__ import annotations

import re

import structlog
from cryptography import x509

from rp_trust_store.domain.models import CertificateRecord

log = structlog.get_logger()

_PEM_BLOCK = re.compile(
    r"-----BEGIN (?P<label>[A-Z0-9 ]+)-----\r?\n?(?P<body>.*?)-----END (?P=label)-----",
    re.DOTALL,
)

_CERTIFICATE_LABELS = frozenset({"CERTIFICATE", "X509 CERTIFICATE"})


class PemFormatError(ValueError):
    """The text is not a PEM container."""


def _split_blocks(pem: str) -> list[tuple[str, str]]:
    """Return (label, full block text) for every armoured block, in order."""
    return [(m.group("label"), m.group(0)) for m in _PEM_BLOCK.finditer(pem)]


def _decode_certificate(block: str, index: int) -> CertificateRecord | None:
    """Decode one CERTIFICATE block, or None when it is not a valid certificate."""
    try:
        pem_bytes = block.replace("\r\n", "\n").encode("ascii") + b"\n"
        cert = x509.load_pem_x509_certificate(pem_bytes)
    except ValueError as e:
        log.warning("pem.certificate_dropped", index=index, error=str(e))
        return None
    return CertificateRecord.from_x509(cert)


class PemCertificateParser:
    """
    Parse PEM bundle text into CertificateRecords.

    Implements the CertificateParser port.
    """

    def parse(self, pem: str) -> list[CertificateRecord]:
        """
        Decode every certificate in the bundle, preserving bundle order.

        Blank input yields []. Raises PemFormatError when non-blank input
        contains no PEM block at all, or when it has CERTIFICATE blocks and
        none of them decodes.
        """
        if not pem.strip():
            return []

        blocks = _split_blocks(pem)
        if not blocks:
            raise PemFormatError("No PEM BEGIN/END block found in certificate bundle")

        records: list[CertificateRecord] = []
        certificate_blocks = 0
        for index, (label, block) in enumerate(blocks):
            if label not in _CERTIFICATE_LABELS:
                log.debug("pem.block_ignored", index=index, label=label)
                continue
            certificate_blocks += 1
            record = _decode_certificate(block, index)
            if record is not None:
                records.append(record)

        if certificate_blocks and not records:
            raise PemFormatError(
                f"None of the {certificate_blocks} CERTIFICATE block(s) in the bundle could be decoded"
            )

        log.info("pem.parsed", blocks=len(blocks), certificates=len(records))
        return records
