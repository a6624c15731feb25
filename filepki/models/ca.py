"""Subject, SAN and certificate request models."""

from enum import Enum
from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Optional, Union

from cryptography import x509
from cryptography.x509.oid import NameOID
from pydantic import BaseModel, Field, field_validator

from filepki.utils.validators import validate_uri

# Largest validity a 32-bit signed day count can hold
MAX_VALIDITY_DAYS = 2**31 - 1


class KeyType(str, Enum):
    """Private key variants the PKI can operate on."""

    EC = "EC"
    RSA = "RSA"
    ED25519 = "Ed25519"


# Attribute order of the encoded distinguished name
_NAME_ATTRIBUTES = [
    ("country", NameOID.COUNTRY_NAME),
    ("organization", NameOID.ORGANIZATION_NAME),
    ("organizational_unit", NameOID.ORGANIZATIONAL_UNIT_NAME),
    ("locality", NameOID.LOCALITY_NAME),
    ("province", NameOID.STATE_OR_PROVINCE_NAME),
    ("street_address", NameOID.STREET_ADDRESS),
    ("postal_code", NameOID.POSTAL_CODE),
    ("common_name", NameOID.COMMON_NAME),
]


class Subject(BaseModel):
    """Certificate subject information."""

    country: Optional[str] = Field(None, min_length=2, max_length=2)
    organization: Optional[str] = None
    organizational_unit: Optional[str] = None
    locality: Optional[str] = None
    province: Optional[str] = None
    street_address: Optional[str] = None
    postal_code: Optional[str] = None
    common_name: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def empty_as_absent(cls, v, info):
        """Treat empty optional fields as absent."""
        if info.field_name != "common_name" and v == "":
            return None
        return v

    def to_x509_name(self) -> x509.Name:
        """Build the X.509 name, skipping absent fields."""
        attributes = []
        for field_name, oid in _NAME_ATTRIBUTES:
            value = getattr(self, field_name)
            if value:
                attributes.append(x509.NameAttribute(oid, value))
        return x509.Name(attributes)

    @classmethod
    def from_x509_name(cls, name: x509.Name) -> "Subject":
        values = {}
        for field_name, oid in _NAME_ATTRIBUTES:
            attrs = name.get_attributes_for_oid(oid)
            if attrs:
                values[field_name] = attrs[0].value
        return cls(**values)

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "common_name": "My Root CA",
                "organization": "ACME Corp",
                "country": "FR",
                "locality": "Paris",
            }
        }


class SANType(str, Enum):
    """SAN entry types used in configuration files."""

    URI = "uri"
    EMAIL_ADDRESS = "emailAddress"
    DNS_NAME = "dnsName"
    IP_ADDRESS = "ipAddress"


class SANEntry(BaseModel):
    """A single typed SAN value, as written in configuration files."""

    type: SANType
    value: str


class SubjectAltName(BaseModel):
    """Subject alternative names, one list per name type."""

    uris: list[str] = Field(default_factory=list)
    dns_names: list[str] = Field(default_factory=list)
    ip_addresses: list[Union[IPv4Address, IPv6Address]] = Field(default_factory=list)
    email_addresses: list[str] = Field(default_factory=list)

    @field_validator("uris")
    @classmethod
    def validate_uris(cls, v):
        return [validate_uri(uri) for uri in v]

    @classmethod
    def from_entries(cls, entries: list[SANEntry]) -> "SubjectAltName":
        san = cls()
        for entry in entries:
            if entry.type == SANType.URI:
                san.uris.append(validate_uri(entry.value))
            elif entry.type == SANType.EMAIL_ADDRESS:
                san.email_addresses.append(entry.value)
            elif entry.type == SANType.DNS_NAME:
                san.dns_names.append(entry.value)
            elif entry.type == SANType.IP_ADDRESS:
                san.ip_addresses.append(_parse_ip_address(entry.value))
        return san

    def is_empty(self) -> bool:
        return not (self.uris or self.dns_names or self.ip_addresses or self.email_addresses)

    def to_general_names(self) -> list[x509.GeneralName]:
        names: list[x509.GeneralName] = []
        names.extend(x509.DNSName(name) for name in self.dns_names)
        names.extend(x509.RFC822Name(address) for address in self.email_addresses)
        names.extend(x509.IPAddress(address) for address in self.ip_addresses)
        names.extend(x509.UniformResourceIdentifier(uri) for uri in self.uris)
        return names


def _parse_ip_address(value: str) -> Union[IPv4Address, IPv6Address]:
    try:
        return ip_address(value.strip())
    except ValueError:
        raise ValueError(f"invalid ip address {value!r}")


class CertificateRequest(BaseModel):
    """Input of a certificate issuance."""

    validity: Optional[int] = Field(None, gt=0, le=MAX_VALIDITY_DAYS, description="Validity in days")
    subject: Subject = Field(default_factory=Subject)
    san: Optional[SubjectAltName] = None
    is_ca: bool = False
    is_client_certificate: bool = False

    def update_from_defaults(self, defaults: "CertificateRequest") -> None:
        """Fill unset validity, subject fields and SAN from a defaults request."""
        if self.validity is None:
            self.validity = defaults.validity

        for field_name in Subject.model_fields:
            if not getattr(self.subject, field_name):
                setattr(self.subject, field_name, getattr(defaults.subject, field_name))

        if self.san is None and defaults.san is not None:
            self.san = defaults.san.model_copy(deep=True)

    class Config:
        """Pydantic config."""

        json_schema_extra = {
            "example": {
                "validity": 365,
                "subject": {"common_name": "www.example.com"},
                "san": {"dns_names": ["www.example.com"], "ip_addresses": ["127.0.0.1"]},
            }
        }
