"""Tests for CRL service."""

from datetime import datetime, timedelta, timezone

import pytest
from cryptography import x509

from filepki.exceptions import ArtifactNotFoundError, InvalidCRLError, ParseError
from filepki.models.crl import CRLData, RevokedCertificateEntry
from filepki.services.crl_service import CRLService
from filepki.services.key_service import KeyService


@pytest.fixture
def issuer(cert_service, sample_root_request):
    """Create an in-memory self-signed issuer and return (certificate, key)."""
    key = KeyService.generate()
    request = sample_root_request.model_copy(update={"is_ca": True})
    cert = cert_service.generate_certificate(request, key.public_key(), key)
    return cert, key


@pytest.fixture
def now():
    return datetime.now(timezone.utc).replace(microsecond=0)


@pytest.mark.unit
class TestCRLGeneration:
    """Test CRL signing and parsing."""

    def test_empty_crl(self, issuer, now):
        cert, key = issuer
        crl_data = CRLData.for_issuer(cert, now)

        der = CRLService.generate_crl(cert, key, crl_data)

        crl = x509.load_der_x509_crl(der)
        assert crl.issuer == cert.subject
        assert crl.is_signature_valid(cert.public_key())
        assert crl.next_update_utc == cert.not_valid_after_utc
        assert crl.last_update_utc == now
        assert len(crl) == 0

    def test_entries_order_and_duplicates(self, issuer, now):
        """Test that entries keep their order and duplicates survive."""
        cert, key = issuer
        entries = [
            RevokedCertificateEntry(serial_number=42, revocation_date=now - timedelta(days=2)),
            RevokedCertificateEntry(serial_number=7, revocation_date=now - timedelta(days=1)),
            RevokedCertificateEntry(serial_number=42, revocation_date=now),
        ]
        crl_data = CRLData(revoked_certificates=entries, creation_date=now, expiration_date=cert.not_valid_after_utc)

        read_back = CRLService.read_crl(CRLService.generate_crl(cert, key, crl_data))

        assert read_back == crl_data

    def test_expiration_must_match_issuer(self, issuer, now):
        cert, key = issuer
        crl_data = CRLData(creation_date=now, expiration_date=cert.not_valid_after_utc - timedelta(days=1))

        with pytest.raises(InvalidCRLError):
            CRLService.generate_crl(cert, key, crl_data)

    def test_authority_key_identifier(self, issuer, now):
        cert, key = issuer

        crl = x509.load_der_x509_crl(CRLService.generate_crl(cert, key, CRLData.for_issuer(cert, now)))

        aki = crl.extensions.get_extension_for_class(x509.AuthorityKeyIdentifier).value
        ski = cert.extensions.get_extension_for_class(x509.SubjectKeyIdentifier).value
        assert aki.key_identifier == ski.digest

    def test_naive_dates_are_utc(self, issuer):
        cert, _ = issuer
        naive = datetime(2030, 1, 1, 12, 0, 0)

        crl_data = CRLData(creation_date=naive, expiration_date=cert.not_valid_after_utc)

        assert crl_data.creation_date == naive.replace(tzinfo=timezone.utc)

    def test_read_garbage(self):
        with pytest.raises(ParseError):
            CRLService.read_crl(b"\x30\x00")


@pytest.mark.integration
class TestCRLStorage:
    """Test stored CRLs."""

    def test_create_and_load(self, crl_service, issuer, now):
        cert, key = issuer
        crl_data = CRLData.for_issuer(cert, now)

        crl_service.create_crl("root-ca", cert, key, crl_data)

        assert crl_service.read_crl(crl_service.load_crl("root-ca")) == crl_data

    def test_update_replaces(self, crl_service, store, issuer, now):
        """Test that updates rewrite the whole CRL."""
        cert, key = issuer
        crl_data = CRLData.for_issuer(cert, now)
        crl_service.create_crl("root-ca", cert, key, crl_data)

        crl_data.add_revoked_certificate(RevokedCertificateEntry(serial_number=1234, revocation_date=now))
        crl_service.update_crl("root-ca", cert, key, crl_data)

        read_back = crl_service.read_crl(crl_service.load_crl("root-ca"))
        assert [entry.serial_number for entry in read_back.revoked_certificates] == [1234]
        assert store.crl_path("root-ca").read_bytes().startswith(b"-----BEGIN X509 CRL-----\n")

    def test_get_crl_info(self, crl_service, issuer, now):
        cert, key = issuer
        crl_data = CRLData.for_issuer(cert, now)
        crl_data.add_revoked_certificate(RevokedCertificateEntry(serial_number=99, revocation_date=now))
        crl_service.create_crl("root-ca", cert, key, crl_data)

        info = crl_service.get_crl_info("root-ca")

        assert info.issuer_name == "root-ca"
        assert info.revoked_count == 1
        assert info.next_update == cert.not_valid_after_utc
        assert info.entries[0].serial_number == 99

    def test_load_missing(self, crl_service):
        with pytest.raises(ArtifactNotFoundError):
            crl_service.load_crl("missing")
