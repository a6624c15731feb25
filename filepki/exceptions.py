"""Exception hierarchy for PKI operations."""


class PKIError(ValueError):
    """Base class for all PKI failures."""


class EntropyFailure(PKIError):
    """The operating system random source is unavailable."""


class KeyGenerationError(EntropyFailure):
    """A private key could not be generated."""


class TemplateBuildError(PKIError):
    """A certificate template could not be built."""


class SerialGenerationError(TemplateBuildError, EntropyFailure):
    """A random serial number could not be generated."""


class ParseError(PKIError):
    """Stored data (key, certificate, CRL, PEM armor) is malformed."""


class DecodeError(PKIError):
    """A DER extension payload is malformed."""


class UnknownTag(DecodeError):
    """A general name carries a tag outside of the supported set."""

    def __init__(self, tag: int):
        super().__init__(f"unknown tag {tag}")
        self.tag = tag


class UnsupportedKeyType(PKIError):
    """The key variant cannot be operated on."""


class DecryptionError(PKIError):
    """Wrong password or corrupted encrypted container."""


class InvalidPasswordError(PKIError):
    """The password does not satisfy the length constraints."""


class SigningError(PKIError):
    """The certificate signature operation failed."""


class CRLSigningError(PKIError):
    """The CRL signature operation failed."""


class InvalidCRLError(PKIError):
    """The CRL data is inconsistent with its issuer."""


class AlreadyExistsError(PKIError):
    """An artifact that must be created already exists."""


class ArtifactNotFoundError(PKIError):
    """A stored artifact does not exist."""
