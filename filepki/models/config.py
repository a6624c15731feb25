"""Application configuration models."""

from typing import Optional

from pydantic import BaseModel, Field

from .ca import CertificateRequest, SANEntry, SANType, Subject, SubjectAltName
from .certificate import ExtendedKeyUsagePolicy


class AppSettings(BaseModel):
    """Application settings."""

    title: str = "FilePKI"
    version: str = "1.0.0"
    debug: bool = False


class PathSettings(BaseModel):
    """Path settings."""

    pki_data: str = "./pki-data"
    # Base directory of a relative logging.file
    logs: str = "./logs"


def _default_san() -> list[SANEntry]:
    return [
        SANEntry(type=SANType.DNS_NAME, value="localhost"),
        SANEntry(type=SANType.IP_ADDRESS, value="127.0.0.1"),
        SANEntry(type=SANType.IP_ADDRESS, value="::1"),
    ]


class CertificateDefaults(BaseModel):
    """Defaults merged into every certificate request."""

    validity: int = Field(365, gt=0)
    subject: Subject = Field(default_factory=lambda: Subject(common_name="localhost"))
    san: list[SANEntry] = Field(default_factory=_default_san)
    eku_policy: ExtendedKeyUsagePolicy = ExtendedKeyUsagePolicy.BY_FLAG

    def to_request(self) -> CertificateRequest:
        return CertificateRequest(
            validity=self.validity,
            subject=self.subject.model_copy(),
            san=SubjectAltName.from_entries(self.san),
        )


class SecuritySettings(BaseModel):
    """Security settings."""

    min_password_length: int = 4
    max_password_length: int = 1023


class LoggingSettings(BaseModel):
    """Logging settings."""

    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None


class AppConfig(BaseModel):
    """Main application configuration."""

    app: AppSettings = Field(default_factory=AppSettings)
    paths: PathSettings = Field(default_factory=PathSettings)
    certificates: CertificateDefaults = Field(default_factory=CertificateDefaults)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def default(cls) -> "AppConfig":
        """Built-in configuration used when no configuration file exists."""
        return cls()
