"""Certificate template and response models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from cryptography import x509
from pydantic import BaseModel, ConfigDict, Field

from .ca import CertificateRequest, Subject, SubjectAltName
from .extensions import BasicConstraints, KeyUsage


class ExtendedKeyUsagePolicy(str, Enum):
    """Which extended key usage leaf certificates receive.

    CA certificates never carry the extension.
    """

    BY_FLAG = "by_flag"  # serverAuth, or clientAuth for client certificates
    SERVER_ONLY = "server_only"  # serverAuth on every leaf
    OMIT_FOR_CLIENT = "omit_for_client"  # serverAuth, nothing for client certificates


class CertificateTemplate(BaseModel):
    """Unsigned certificate, ready to be signed."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    serial_number: int
    subject: Subject
    public_key: Any
    not_before: datetime
    not_after: datetime
    key_usage: KeyUsage
    extended_key_usage: list[x509.ObjectIdentifier] = Field(default_factory=list)
    basic_constraints: BasicConstraints
    san: SubjectAltName = Field(default_factory=SubjectAltName)


class CertificateSummary(BaseModel):
    """Decoded view of a stored certificate."""

    name: str
    serial_number: str
    subject: Subject
    issuer: Subject
    not_before: datetime
    not_after: datetime
    signature_algorithm: Optional[str] = None
    key_usage: list[str] = Field(default_factory=list)
    extended_key_usage: list[str] = Field(default_factory=list)
    basic_constraints: Optional[BasicConstraints] = None
    san: Optional[SubjectAltName] = None


class IssueRequest(BaseModel):
    """API request for issuing a certificate."""

    request: CertificateRequest = Field(default_factory=CertificateRequest)
    issuer_name: Optional[str] = None
    issuer_password: Optional[str] = None
    key_password: Optional[str] = None


class RootRequest(BaseModel):
    """API request for bootstrapping the root authority."""

    request: CertificateRequest = Field(default_factory=CertificateRequest)
    password: Optional[str] = None
