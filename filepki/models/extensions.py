"""Decoded certificate extension values."""

from pydantic import BaseModel, Field

# Names of the key usage bits, in bit order (RFC 5280 4.2.1.3)
KEY_USAGE_NAMES = [
    "digitalSignature",
    "nonRepudiation",
    "keyEncipherment",
    "dataEncipherment",
    "keyAgreement",
    "keyCertSign",
    "cRLSign",
    "encipherOnly",
    "decipherOnly",
]


class KeyUsage(BaseModel):
    """Key usage flags."""

    digital_signature: bool = False
    non_repudiation: bool = False
    key_encipherment: bool = False
    data_encipherment: bool = False
    key_agreement: bool = False
    key_cert_sign: bool = False
    crl_sign: bool = False
    encipher_only: bool = False
    decipher_only: bool = False

    def flags(self) -> list[bool]:
        return [
            self.digital_signature,
            self.non_repudiation,
            self.key_encipherment,
            self.data_encipherment,
            self.key_agreement,
            self.key_cert_sign,
            self.crl_sign,
            self.encipher_only,
            self.decipher_only,
        ]

    def values(self) -> list[str]:
        """Return the names of the set flags, in bit order."""
        return [name for name, flag in zip(KEY_USAGE_NAMES, self.flags()) if flag]


class ExtendedKeyUsage(BaseModel):
    """Extended key usage purposes (RFC 5280 4.2.1.12)."""

    key_purpose_ids: list[str] = Field(default_factory=list)


class BasicConstraints(BaseModel):
    """Basic constraints; a path length of -1 means absent."""

    ca: bool = False
    path_len_constraint: int = -1
