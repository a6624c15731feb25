"""Certificate authority orchestration service."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from cryptography import x509

from filepki.models.ca import CertificateRequest
from filepki.models.config import AppConfig
from filepki.models.crl import CRLData, RevokedCertificateEntry
from filepki.services.cert_service import CertificateService
from filepki.services.crl_service import CRLService
from filepki.services.key_service import KeyService, PasswordProvider
from filepki.services.store_service import ROOT_CA_NAME, ArtifactStore
from filepki.utils.validators import validate_password

logger = logging.getLogger("filepki")


class AuthorityContext:
    """Everything an authority operation needs, passed explicitly."""

    def __init__(self, pki_data_dir: Path, config: Optional[AppConfig] = None):
        """
        Initialize authority context.

        Args:
            pki_data_dir: Root directory of the stored artifacts
            config: Application configuration, defaults if None
        """
        self.config = config or AppConfig.default()
        self.store = ArtifactStore(pki_data_dir)
        self.key_service = KeyService(self.store, self.config.security)
        self.cert_service = CertificateService(self.store, self.config.certificates.eku_policy)
        self.crl_service = CRLService(self.store)

    def default_request(self) -> CertificateRequest:
        return self.config.certificates.to_request()


class AuthorityService:
    """Service for root bootstrap, issuance and revocation.

    Operations fail fast. Artifacts written before a failing step stay on disk.
    """

    def __init__(self, context: AuthorityContext):
        self.context = context

    def bootstrap_root(self, request: CertificateRequest, password: Optional[bytes] = None) -> x509.Certificate:
        """
        Create the root authority: key, self-signed certificate and empty CRL.

        Args:
            request: Root certificate request, always issued as a CA
            password: Encrypt the root key with this password if set

        Returns:
            Root certificate

        Raises:
            AlreadyExistsError: If a root key or certificate already exists
            PKIError: If any step fails
        """
        ctx = self.context
        request = request.model_copy(deep=True)
        request.is_ca = True

        # Root certificates carry no default SAN
        defaults = ctx.default_request()
        defaults.san = None
        request.update_from_defaults(defaults)

        logger.info(f"Bootstrapping root authority '{ROOT_CA_NAME}'")

        try:
            if password is not None:
                validate_password(
                    password,
                    ctx.config.security.min_password_length,
                    ctx.config.security.max_password_length,
                )

            key = ctx.key_service.generate()
            cert = ctx.cert_service.generate_certificate(request, KeyService.derive_public_key(key), key)

            now = datetime.now(timezone.utc).replace(microsecond=0)
            crl_data = CRLData.for_issuer(cert, now)
            crl = ctx.crl_service.generate_crl(cert, key, crl_data)

            ctx.key_service.write_private_key(key, ROOT_CA_NAME, password)
            ctx.cert_service.write_certificate(cert, ROOT_CA_NAME)
            ctx.store.write_crl(ROOT_CA_NAME, crl)
        except Exception as e:
            logger.error(f"Failed to bootstrap root authority: {e}")
            raise

        logger.info(f"Created root authority '{ROOT_CA_NAME}' (Serial: {format(cert.serial_number, 'X')})")
        return cert

    def issue(
        self,
        name: str,
        request: CertificateRequest,
        issuer_name: str = ROOT_CA_NAME,
        password_provider: Optional[PasswordProvider] = None,
        password: Optional[bytes] = None,
    ) -> x509.Certificate:
        """
        Issue a certificate under an existing authority.

        Args:
            name: Logical name of the new key and certificate
            request: Certificate request, merged with the configured defaults
            issuer_name: Logical name of the issuing authority
            password_provider: Called if the issuer key is encrypted
            password: Encrypt the new key with this password if set

        Returns:
            Issued certificate

        Raises:
            ArtifactNotFoundError: If the issuer artifacts do not exist
            DecryptionError: If the issuer key cannot be decrypted
            AlreadyExistsError: If a key or certificate named name already exists
        """
        ctx = self.context
        request = request.model_copy(deep=True)
        request.update_from_defaults(ctx.default_request())

        logger.info(f"Issuing certificate '{name}' under '{issuer_name}'")

        try:
            if password is not None:
                validate_password(
                    password,
                    ctx.config.security.min_password_length,
                    ctx.config.security.max_password_length,
                )

            issuer_key = ctx.key_service.load_private_key(issuer_name, password_provider)
            issuer_cert = ctx.cert_service.load_certificate(issuer_name)

            key = ctx.key_service.generate()
            cert = ctx.cert_service.generate_certificate(
                request, KeyService.derive_public_key(key), issuer_key, issuer_cert
            )

            ctx.key_service.write_private_key(key, name, password)
            ctx.cert_service.write_certificate(cert, name)
        except Exception as e:
            logger.error(f"Failed to issue certificate '{name}': {e}")
            raise

        logger.info(f"Issued certificate '{name}' (Serial: {format(cert.serial_number, 'X')})")
        return cert

    def revoke(
        self,
        cert_name: str,
        issuer_name: str = ROOT_CA_NAME,
        password_provider: Optional[PasswordProvider] = None,
    ) -> CRLData:
        """
        Revoke a certificate by appending it to the CRL of its issuer.

        The CRL creation date is refreshed; its expiration stays pinned to the
        issuer certificate.

        Args:
            cert_name: Logical name of the certificate to revoke
            issuer_name: Logical name of the issuing authority
            password_provider: Called if the issuer key is encrypted

        Returns:
            Updated CRL data
        """
        ctx = self.context

        logger.info(f"Revoking certificate '{cert_name}' under '{issuer_name}'")

        try:
            issuer_cert = ctx.cert_service.load_certificate(issuer_name)
            issuer_key = ctx.key_service.load_private_key(issuer_name, password_provider)
            cert = ctx.cert_service.load_certificate(cert_name)
            crl_data = ctx.crl_service.read_crl(ctx.crl_service.load_crl(issuer_name))

            now = datetime.now(timezone.utc).replace(microsecond=0)
            crl_data.creation_date = now
            crl_data.add_revoked_certificate(
                RevokedCertificateEntry(serial_number=cert.serial_number, revocation_date=now)
            )

            ctx.crl_service.update_crl(issuer_name, issuer_cert, issuer_key, crl_data)
        except Exception as e:
            logger.error(f"Failed to revoke certificate '{cert_name}': {e}")
            raise

        logger.info(f"Revoked certificate '{cert_name}' (Serial: {format(cert.serial_number, 'X')})")
        return crl_data
