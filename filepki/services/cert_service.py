"""Certificate template construction and signing service."""

import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

from cryptography import x509
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ed25519
from cryptography.hazmat.primitives.serialization import Encoding
from cryptography.x509.oid import ExtendedKeyUsageOID

from filepki.exceptions import ParseError, SerialGenerationError, SigningError, TemplateBuildError
from filepki.models.ca import CertificateRequest, SubjectAltName
from filepki.models.certificate import CertificateTemplate, ExtendedKeyUsagePolicy
from filepki.models.extensions import BasicConstraints, KeyUsage
from filepki.services.key_service import KeyService, PrivateKey, PublicKey
from filepki.services.store_service import ArtifactStore

logger = logging.getLogger("filepki")

SERIAL_NUMBER_BITS = 128

# Latest time a GeneralizedTime can express (RFC 5280 4.1.2.5)
MAX_NOT_AFTER = datetime(9999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def generate_serial_number() -> int:
    """
    Generate a random, nonzero 128-bit serial number.

    Raises:
        SerialGenerationError: If the random source fails
    """
    try:
        serial = secrets.randbits(SERIAL_NUMBER_BITS)
        while serial == 0:
            serial = secrets.randbits(SERIAL_NUMBER_BITS)
    except (OSError, NotImplementedError) as e:
        raise SerialGenerationError(f"cannot generate random serial number: {e}") from e

    return serial


def not_after_for(not_before: datetime, validity: int) -> datetime:
    """End of a validity period of validity days, capped at MAX_NOT_AFTER."""
    try:
        return min(not_before + timedelta(days=validity), MAX_NOT_AFTER)
    except OverflowError:
        return MAX_NOT_AFTER


def extended_key_usage_for(request: CertificateRequest, policy: ExtendedKeyUsagePolicy) -> list[x509.ObjectIdentifier]:
    """Extended key usage of a new certificate under a given policy."""
    if request.is_ca:
        return []

    if policy == ExtendedKeyUsagePolicy.SERVER_ONLY:
        return [ExtendedKeyUsageOID.SERVER_AUTH]

    if request.is_client_certificate:
        if policy == ExtendedKeyUsagePolicy.OMIT_FOR_CLIENT:
            return []
        return [ExtendedKeyUsageOID.CLIENT_AUTH]

    return [ExtendedKeyUsageOID.SERVER_AUTH]


def signature_hash_for(key: PrivateKey) -> Optional[hashes.HashAlgorithm]:
    """Ed25519 signs without a separate hash; other keys use SHA-256."""
    KeyService.key_type(key)

    if isinstance(key, ed25519.Ed25519PrivateKey):
        return None
    return hashes.SHA256()


class CertificateService:
    """Service for certificate operations."""

    def __init__(
        self,
        store: ArtifactStore,
        eku_policy: ExtendedKeyUsagePolicy = ExtendedKeyUsagePolicy.BY_FLAG,
    ):
        """
        Initialize certificate service.

        Args:
            store: Artifact store holding the certificates
            eku_policy: Extended key usage policy for leaf certificates
        """
        self.store = store
        self.eku_policy = eku_policy

    def build_template(self, request: CertificateRequest, public_key: PublicKey) -> CertificateTemplate:
        """
        Build an unsigned certificate from a request.

        Args:
            request: Certificate request
            public_key: Public key of the certificate subject

        Returns:
            Unsigned certificate template

        Raises:
            TemplateBuildError: If the request is incomplete or no serial can be generated
        """
        if request.validity is None:
            raise TemplateBuildError("certificate validity is not set")

        if not request.subject.common_name:
            raise TemplateBuildError("certificate common name is not set")

        serial_number = generate_serial_number()

        not_before = datetime.now(timezone.utc).replace(microsecond=0)
        not_after = not_after_for(not_before, request.validity)

        key_usage = KeyUsage(key_encipherment=True, digital_signature=True)
        if request.is_ca:
            key_usage.key_cert_sign = True
            key_usage.crl_sign = True

        return CertificateTemplate(
            serial_number=serial_number,
            subject=request.subject.model_copy(),
            public_key=public_key,
            not_before=not_before,
            not_after=not_after,
            key_usage=key_usage,
            extended_key_usage=extended_key_usage_for(request, self.eku_policy),
            basic_constraints=BasicConstraints(ca=request.is_ca),
            san=request.san.model_copy(deep=True) if request.san else SubjectAltName(),
        )

    @staticmethod
    def sign(
        template: CertificateTemplate,
        signing_key: PrivateKey,
        issuer_cert: Optional[x509.Certificate] = None,
    ) -> x509.Certificate:
        """
        Sign a template.

        Without an issuer certificate the template signs itself: the issuer
        name is the subject name. The signing key is not checked against the
        issuer certificate.

        Args:
            template: Unsigned certificate
            signing_key: Issuer private key, or the subject key for a root
            issuer_cert: Issuer certificate, None for a self-signed root

        Returns:
            Signed certificate

        Raises:
            SigningError: If the signature operation fails
        """
        subject_name = template.subject.to_x509_name()
        issuer_name = subject_name if issuer_cert is None else issuer_cert.subject
        algorithm = signature_hash_for(signing_key)

        try:
            builder = (
                x509.CertificateBuilder()
                .serial_number(template.serial_number)
                .subject_name(subject_name)
                .issuer_name(issuer_name)
                .public_key(template.public_key)
                .not_valid_before(template.not_before)
                .not_valid_after(template.not_after)
            )
            builder = _add_extensions(builder, template, issuer_cert)

            return builder.sign(private_key=signing_key, algorithm=algorithm)
        except (ValueError, TypeError) as e:
            raise SigningError(f"cannot sign certificate: {e}") from e

    def generate_certificate(
        self,
        request: CertificateRequest,
        public_key: PublicKey,
        signing_key: PrivateKey,
        issuer_cert: Optional[x509.Certificate] = None,
    ) -> x509.Certificate:
        template = self.build_template(request, public_key)
        return self.sign(template, signing_key, issuer_cert)

    def create_certificate(
        self,
        name: str,
        request: CertificateRequest,
        public_key: PublicKey,
        signing_key: PrivateKey,
        issuer_cert: Optional[x509.Certificate] = None,
    ) -> x509.Certificate:
        """Generate a certificate and store it under a new name."""
        logger.info(f"Creating certificate '{name}'")

        cert = self.generate_certificate(request, public_key, signing_key, issuer_cert)
        self.write_certificate(cert, name)

        logger.info(f"Created certificate '{name}' (Serial: {format(cert.serial_number, 'X')})")
        return cert

    def write_certificate(self, cert: x509.Certificate, name: str) -> None:
        self.store.write_certificate(name, cert.public_bytes(Encoding.DER))

    def load_certificate(self, name: str) -> x509.Certificate:
        """
        Load a stored certificate.

        Raises:
            ArtifactNotFoundError: If the certificate does not exist
            ParseError: If the certificate is malformed
        """
        logger.info(f"Loading certificate '{name}'")

        der = self.store.read_certificate(name)
        try:
            return x509.load_der_x509_certificate(der)
        except ValueError as e:
            raise ParseError(f"cannot parse certificate: {e}") from e


def _add_extensions(
    builder: x509.CertificateBuilder,
    template: CertificateTemplate,
    issuer_cert: Optional[x509.Certificate],
) -> x509.CertificateBuilder:
    ku = template.key_usage
    builder = builder.add_extension(
        x509.KeyUsage(
            digital_signature=ku.digital_signature,
            content_commitment=ku.non_repudiation,
            key_encipherment=ku.key_encipherment,
            data_encipherment=ku.data_encipherment,
            key_agreement=ku.key_agreement,
            key_cert_sign=ku.key_cert_sign,
            crl_sign=ku.crl_sign,
            encipher_only=False,
            decipher_only=False,
        ),
        critical=True,
    )

    if template.extended_key_usage:
        builder = builder.add_extension(x509.ExtendedKeyUsage(template.extended_key_usage), critical=False)

    builder = builder.add_extension(
        x509.BasicConstraints(ca=template.basic_constraints.ca, path_length=None),
        critical=True,
    )

    if not template.san.is_empty():
        builder = builder.add_extension(
            x509.SubjectAlternativeName(template.san.to_general_names()),
            critical=False,
        )

    builder = builder.add_extension(
        x509.SubjectKeyIdentifier.from_public_key(template.public_key),
        critical=False,
    )

    if issuer_cert is not None:
        try:
            ski = issuer_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
        except x509.ExtensionNotFound:
            ski = None

        if ski is not None:
            builder = builder.add_extension(
                x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value),
                critical=False,
            )

    return builder
