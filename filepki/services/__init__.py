"""Service layer for business logic."""

from .authority_service import AuthorityContext, AuthorityService
from .cert_service import CertificateService
from .crl_service import CRLService
from .extension_codec import ExtensionCodec
from .inspect_service import CertificateInspector
from .key_service import KeyService
from .store_service import ROOT_CA_NAME, ArtifactStore
from .yaml_service import YAMLService

__all__ = [
    "ROOT_CA_NAME",
    "ArtifactStore",
    "YAMLService",
    "KeyService",
    "CertificateService",
    "CRLService",
    "ExtensionCodec",
    "CertificateInspector",
    "AuthorityContext",
    "AuthorityService",
]
