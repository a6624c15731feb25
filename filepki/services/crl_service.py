"""CRL management service."""

import logging

from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding

from filepki.exceptions import CRLSigningError, InvalidCRLError, ParseError
from filepki.models.crl import CRLData, CRLResponse, RevokedCertificateEntry
from filepki.services.cert_service import signature_hash_for
from filepki.services.key_service import PrivateKey
from filepki.services.store_service import ArtifactStore

logger = logging.getLogger("filepki")


class CRLService:
    """Service for CRL management operations.

    A CRL is keyed by the logical name of its issuer and is always rewritten
    in full.
    """

    def __init__(self, store: ArtifactStore):
        self.store = store

    @staticmethod
    def generate_crl(issuer_cert: x509.Certificate, issuer_key: PrivateKey, crl_data: CRLData) -> bytes:
        """
        Sign a CRL.

        Args:
            issuer_cert: Certificate of the issuing authority
            issuer_key: Private key of the issuing authority
            crl_data: Revoked entries and validity window

        Returns:
            DER encoded CRL

        Raises:
            InvalidCRLError: If the expiration differs from the issuer's own expiration
            CRLSigningError: If the signature operation fails
        """
        if crl_data.expiration_date != issuer_cert.not_valid_after_utc:
            raise InvalidCRLError(
                f"crl expiration {crl_data.expiration_date.isoformat()} does not match "
                f"issuer expiration {issuer_cert.not_valid_after_utc.isoformat()}"
            )

        algorithm = signature_hash_for(issuer_key)

        try:
            builder = (
                x509.CertificateRevocationListBuilder()
                .issuer_name(issuer_cert.subject)
                .last_update(crl_data.creation_date)
                .next_update(crl_data.expiration_date)
            )

            for entry in crl_data.revoked_certificates:
                revoked = (
                    x509.RevokedCertificateBuilder()
                    .serial_number(entry.serial_number)
                    .revocation_date(entry.revocation_date)
                    .build()
                )
                builder = builder.add_revoked_certificate(revoked)

            try:
                ski = issuer_cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
                builder = builder.add_extension(
                    x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value),
                    critical=False,
                )
            except x509.ExtensionNotFound:
                pass

            crl = builder.sign(private_key=issuer_key, algorithm=algorithm)
        except (ValueError, TypeError) as e:
            raise CRLSigningError(f"cannot sign crl: {e}") from e

        return crl.public_bytes(Encoding.DER)

    @staticmethod
    def read_crl(der: bytes) -> CRLData:
        """
        Parse a signed CRL back into CRL data.

        Raises:
            ParseError: If the CRL is malformed
        """
        try:
            crl = x509.load_der_x509_crl(der)
        except ValueError as e:
            raise ParseError(f"cannot parse crl: {e}") from e

        if crl.next_update_utc is None:
            raise ParseError("crl has no next update date")

        entries = [
            RevokedCertificateEntry(
                serial_number=revoked.serial_number,
                revocation_date=revoked.revocation_date_utc,
            )
            for revoked in crl
        ]

        return CRLData(
            revoked_certificates=entries,
            creation_date=crl.last_update_utc,
            expiration_date=crl.next_update_utc,
        )

    def create_crl(
        self, name: str, issuer_cert: x509.Certificate, issuer_key: PrivateKey, crl_data: CRLData
    ) -> bytes:
        logger.info(f"Creating CRL '{name}'")

        der = self.generate_crl(issuer_cert, issuer_key, crl_data)
        self.store.write_crl(name, der)
        return der

    def update_crl(
        self, name: str, issuer_cert: x509.Certificate, issuer_key: PrivateKey, crl_data: CRLData
    ) -> bytes:
        logger.info(f"Updating CRL '{name}'")

        der = self.generate_crl(issuer_cert, issuer_key, crl_data)
        self.store.write_crl(name, der)
        return der

    def load_crl(self, name: str) -> bytes:
        """Return the DER encoding of the CRL of an issuing authority."""
        logger.info(f"Loading CRL '{name}'")

        return self.store.read_crl(name)

    def get_crl_info(self, name: str) -> CRLResponse:
        """Get CRL information for an issuing authority."""
        crl_data = self.read_crl(self.load_crl(name))

        return CRLResponse(
            issuer_name=name,
            created_at=crl_data.creation_date,
            next_update=crl_data.expiration_date,
            revoked_count=len(crl_data.revoked_certificates),
            entries=crl_data.revoked_certificates,
        )
