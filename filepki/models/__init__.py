"""Data models for FilePKI."""

from .ca import CertificateRequest, KeyType, SANEntry, SANType, Subject, SubjectAltName
from .certificate import CertificateTemplate, ExtendedKeyUsagePolicy
from .config import AppConfig
from .crl import CRLData, RevokedCertificateEntry
from .extensions import BasicConstraints, ExtendedKeyUsage, KeyUsage

__all__ = [
    "KeyType",
    "Subject",
    "SANType",
    "SANEntry",
    "SubjectAltName",
    "CertificateRequest",
    "CertificateTemplate",
    "ExtendedKeyUsagePolicy",
    "CRLData",
    "RevokedCertificateEntry",
    "KeyUsage",
    "ExtendedKeyUsage",
    "BasicConstraints",
    "AppConfig",
]
