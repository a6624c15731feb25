"""Certificate and CRL inspection service."""

import logging
from typing import Callable, TextIO

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat
from cryptography.x509.oid import SignatureAlgorithmOID

from filepki.exceptions import DecodeError
from filepki.models.ca import Subject, SubjectAltName
from filepki.models.certificate import CertificateSummary
from filepki.models.crl import CRLData
from filepki.models.extensions import BasicConstraints, ExtendedKeyUsage, KeyUsage
from filepki.services.extension_codec import (
    OID_BASIC_CONSTRAINTS,
    OID_EXTENDED_KEY_USAGE,
    OID_KEY_USAGE,
    OID_SUBJECT_ALT_NAME,
    ExtensionCodec,
    RawExtension,
)
from filepki.utils.printer import Printer

logger = logging.getLogger("filepki")

EXTENSION_NAMES = {
    OID_KEY_USAGE: "Key usage",
    OID_SUBJECT_ALT_NAME: "Subject alt name",
    OID_BASIC_CONSTRAINTS: "Basic constraints",
    OID_EXTENDED_KEY_USAGE: "Extended key usage",
}

SIGNATURE_ALGORITHM_NAMES = {
    SignatureAlgorithmOID.ECDSA_WITH_SHA256: "ECDSA-SHA256",
    SignatureAlgorithmOID.ECDSA_WITH_SHA384: "ECDSA-SHA384",
    SignatureAlgorithmOID.ECDSA_WITH_SHA512: "ECDSA-SHA512",
    SignatureAlgorithmOID.RSA_WITH_SHA256: "SHA256-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA384: "SHA384-RSA",
    SignatureAlgorithmOID.RSA_WITH_SHA512: "SHA512-RSA",
    SignatureAlgorithmOID.ED25519: "Ed25519",
}

CURVE_NAMES = {
    "secp256r1": "P-256",
    "secp384r1": "P-384",
    "secp521r1": "P-521",
}


def _serial_bytes(serial_number: int) -> bytes:
    return serial_number.to_bytes(max(1, (serial_number.bit_length() + 7) // 8), "big")


def certificate_extensions(cert: x509.Certificate) -> list[RawExtension]:
    """Extensions exactly as encoded, bypassing the parsing done by cryptography."""
    return ExtensionCodec.read_extensions(cert.tbs_certificate_bytes)


def signature_algorithm_name(cert: x509.Certificate) -> str:
    oid = cert.signature_algorithm_oid
    return SIGNATURE_ALGORITHM_NAMES.get(oid, oid.dotted_string)


class CertificateInspector:
    """Human readable views of certificates and CRLs."""

    @staticmethod
    def print_certificate(cert: x509.Certificate, stream: TextIO) -> None:
        """
        Print a certificate.

        Known extensions are decoded; others are printed as raw data.

        Args:
            cert: Certificate to print
            stream: Output text stream

        Raises:
            DecodeError: If the extensions are malformed, or a critical known
                extension cannot be decoded
        """
        p = Printer(stream)

        p.line("Data:")
        with p.with_indent():
            _print_certificate_data(p, cert)

        p.line("Signature:")
        with p.with_indent():
            p.line(f"Algorithm: {signature_algorithm_name(cert)}")
            p.line(f"Data: {p.hex(cert.signature)}")

    @staticmethod
    def print_crl(crl_data: CRLData, stream: TextIO) -> None:
        p = Printer(stream)

        p.line(f"Creation date: {crl_data.creation_date.isoformat()}")
        p.line(f"Expiration date: {crl_data.expiration_date.isoformat()}")

        p.line("Revoked certificates:")
        with p.with_indent():
            for entry in crl_data.revoked_certificates:
                p.line(f"Serial number: {p.hex(_serial_bytes(entry.serial_number))}")
                with p.with_indent():
                    p.line(f"Revocation date: {entry.revocation_date.isoformat()}")

    @staticmethod
    def summarize(name: str, cert: x509.Certificate) -> CertificateSummary:
        """
        Build a decoded summary of a certificate.

        Args:
            name: Logical certificate name
            cert: Certificate

        Returns:
            Certificate summary

        Raises:
            DecodeError: If the extensions are malformed, or a critical known
                extension cannot be decoded
        """
        summary = CertificateSummary(
            name=name,
            serial_number=format(cert.serial_number, "X"),
            subject=Subject.from_x509_name(cert.subject),
            issuer=Subject.from_x509_name(cert.issuer),
            not_before=cert.not_valid_before_utc,
            not_after=cert.not_valid_after_utc,
            signature_algorithm=signature_algorithm_name(cert),
        )

        for ext in certificate_extensions(cert):
            try:
                value = ExtensionCodec.decode(ext.oid, ext.value)
            except DecodeError as e:
                if ext.critical:
                    raise
                logger.warning(f"Skipping undecodable extension {ext.oid}: {e}")
                continue

            if isinstance(value, KeyUsage):
                summary.key_usage = value.values()
            elif isinstance(value, ExtendedKeyUsage):
                summary.extended_key_usage = value.key_purpose_ids
            elif isinstance(value, BasicConstraints):
                summary.basic_constraints = value
            elif isinstance(value, SubjectAltName):
                summary.san = value

        return summary


def _print_certificate_data(p: Printer, cert: x509.Certificate) -> None:
    p.line(f"Version: {cert.version.value + 1}")
    p.line(f"Serial number: {p.hex(_serial_bytes(cert.serial_number))}")
    p.line(f"Issuer: {cert.issuer.rfc4514_string()}")

    p.line("Validity:")
    with p.with_indent():
        p.line(f"Not before: {cert.not_valid_before_utc.isoformat()}")
        p.line(f"Not after:  {cert.not_valid_after_utc.isoformat()}")

    p.line(f"Subject: {cert.subject.rfc4514_string()}")

    p.line("Public key:")
    with p.with_indent():
        _print_public_key(p, cert.public_key())

    p.line("Extensions:")
    with p.with_indent():
        for ext in certificate_extensions(cert):
            print_extension(p, ext)


def _print_public_key(p: Printer, public_key) -> None:
    if isinstance(public_key, ec.EllipticCurvePublicKey):
        p.line("Algorithm: ECDSA")
        p.line(f"ECDSA curve: {CURVE_NAMES.get(public_key.curve.name, public_key.curve.name)}")
    elif isinstance(public_key, rsa.RSAPublicKey):
        p.line("Algorithm: RSA")
        p.line(f"Size: {public_key.key_size // 8}")
    elif isinstance(public_key, ed25519.Ed25519PublicKey):
        p.line("Algorithm: Ed25519")
    else:
        p.line(f"Unknown public key type {type(public_key).__name__}")
        return

    data = public_key.public_bytes(Encoding.DER, PublicFormat.SubjectPublicKeyInfo)
    p.line(f"Data: {p.hex(data)}")


def print_extension(p: Printer, ext: RawExtension) -> None:
    oid = ext.oid
    raw = ext.value

    name = EXTENSION_NAMES.get(oid)
    if name is None:
        _print_extension_block(p, ext, oid, lambda: p.line(f"Non-decoded data: {p.hex(raw)}"))
        return

    try:
        value = ExtensionCodec.decode(oid, raw)
    except DecodeError as e:
        if ext.critical:
            raise
        logger.warning(f"Cannot decode extension {oid}: {e}")

        def print_failure():
            p.line(f"Cannot decode: {e}")
            p.line(f"Non-decoded data: {p.hex(raw)}")

        _print_extension_block(p, ext, name, print_failure)
        return

    if isinstance(value, KeyUsage):
        _print_extension_block(p, ext, name, lambda: _print_lines(p, value.values()))
    elif isinstance(value, ExtendedKeyUsage):
        _print_extension_block(p, ext, name, lambda: _print_lines(p, value.key_purpose_ids))
    elif isinstance(value, BasicConstraints):
        _print_extension_block(p, ext, name, lambda: _print_basic_constraints(p, value))
    elif isinstance(value, SubjectAltName):
        _print_extension_block(p, ext, name, lambda: _print_subject_alt_name(p, value))


def _print_extension_block(p: Printer, ext: RawExtension, name: str, fn: Callable[[], None]) -> None:
    critical = " (critical)" if ext.critical else ""
    p.line(f"{name}{critical}:")
    with p.with_indent():
        fn()


def _print_lines(p: Printer, values) -> None:
    for value in values:
        p.line(str(value))


def _print_basic_constraints(p: Printer, constraints: BasicConstraints) -> None:
    p.line(f"CA: {str(constraints.ca).lower()}")
    if constraints.path_len_constraint != -1:
        p.line(f"Path length constraint: {constraints.path_len_constraint}")


def _print_subject_alt_name(p: Printer, san: SubjectAltName) -> None:
    sections = [
        ("URIs:", san.uris),
        ("DNS names:", san.dns_names),
        ("IP addresses:", san.ip_addresses),
        ("Email addresses:", san.email_addresses),
    ]

    for title, values in sections:
        p.line(title)
        with p.with_indent():
            _print_lines(p, values)
