"""CRL data models."""

from datetime import datetime, timezone
from typing import List, Optional

from cryptography import x509
from pydantic import BaseModel, Field, field_validator


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are taken as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class RevokedCertificateEntry(BaseModel):
    """Entry in the revocation list."""

    serial_number: int = Field(..., gt=0)
    revocation_date: datetime

    @field_validator("revocation_date")
    @classmethod
    def revocation_date_as_utc(cls, v):
        return _as_utc(v)


class CRLData(BaseModel):
    """Content of a certificate revocation list.

    Entries are kept in revocation order; the same serial number may appear
    more than once.
    """

    revoked_certificates: List[RevokedCertificateEntry] = Field(default_factory=list)
    creation_date: datetime
    expiration_date: datetime

    @field_validator("creation_date", "expiration_date")
    @classmethod
    def dates_as_utc(cls, v):
        return _as_utc(v)

    @classmethod
    def for_issuer(cls, issuer_cert: x509.Certificate, now: datetime) -> "CRLData":
        """Empty CRL whose lifetime is pinned to the issuer certificate."""
        return cls(creation_date=now, expiration_date=issuer_cert.not_valid_after_utc)

    def add_revoked_certificate(self, entry: RevokedCertificateEntry) -> None:
        self.revoked_certificates.append(entry)


class CRLResponse(BaseModel):
    """Response model for CRL operations."""

    issuer_name: str
    created_at: datetime
    next_update: datetime
    revoked_count: int
    entries: List[RevokedCertificateEntry] = Field(default_factory=list)


class RevokeRequest(BaseModel):
    """Request model for revoking a certificate."""

    issuer_name: Optional[str] = None
    issuer_password: Optional[str] = Field(None, description="Password of the issuer private key")
