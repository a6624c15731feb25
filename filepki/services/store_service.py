"""On-disk storage of keys, certificates and CRLs."""

import logging
from pathlib import Path

from filepki.utils.file_utils import FileUtils
from filepki.utils.pem import PEM_CERTIFICATE, PEM_CRL, PEMBlock, decode_pem, encode_pem
from filepki.utils.validators import validate_artifact_name

logger = logging.getLogger("filepki")

# Logical name of the authority used when no issuer is given
ROOT_CA_NAME = "root-ca"


class ArtifactStore:
    """Maps logical names to armored artifact files under a PKI directory.

    Layout::

        <root>/private-keys/<name>.key
        <root>/certificates/<name>.cert
        <root>/certificates/<issuer name>.crl
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def private_keys_path(self) -> Path:
        return self.root / "private-keys"

    def private_key_path(self, name: str) -> Path:
        return self.private_keys_path() / f"{validate_artifact_name(name)}.key"

    def certificates_path(self) -> Path:
        return self.root / "certificates"

    def certificate_path(self, name: str) -> Path:
        return self.certificates_path() / f"{validate_artifact_name(name)}.cert"

    def crl_path(self, name: str) -> Path:
        return self.certificates_path() / f"{validate_artifact_name(name)}.crl"

    def read_private_key(self, name: str) -> bytes:
        """Return the armored key container, encrypted or not."""
        return FileUtils.read_binary_file(self.private_key_path(name))

    def write_private_key(self, name: str, pem_data: bytes) -> None:
        FileUtils.create_file(self.private_key_path(name), pem_data, mode=0o600)

    def read_certificate(self, name: str) -> bytes:
        """Return the DER encoding of a stored certificate."""
        data = FileUtils.read_binary_file(self.certificate_path(name))
        return decode_pem(data, PEM_CERTIFICATE).data

    def write_certificate(self, name: str, der: bytes) -> None:
        pem_data = encode_pem(PEMBlock(label=PEM_CERTIFICATE, data=der))
        FileUtils.create_file(self.certificate_path(name), pem_data, mode=0o644)

    def read_crl(self, name: str) -> bytes:
        """Return the DER encoding of a stored CRL."""
        data = FileUtils.read_binary_file(self.crl_path(name))
        return decode_pem(data, PEM_CRL).data

    def write_crl(self, name: str, der: bytes) -> None:
        pem_data = encode_pem(PEMBlock(label=PEM_CRL, data=der))
        FileUtils.create_or_replace_file(self.crl_path(name), pem_data, mode=0o644)
