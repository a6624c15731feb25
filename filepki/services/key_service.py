"""Private key generation, storage and encryption service."""

import logging
import os
from typing import Callable, Optional, Union

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, padding, serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from filepki.exceptions import (
    DecryptionError,
    KeyGenerationError,
    ParseError,
    UnsupportedKeyType,
)
from filepki.models.ca import KeyType
from filepki.models.config import SecuritySettings
from filepki.services.store_service import ArtifactStore
from filepki.utils.der import is_single_element
from filepki.utils.pem import PEM_PRIVATE_KEY, PEMBlock, decode_pem, encode_pem
from filepki.utils.validators import validate_password

logger = logging.getLogger("filepki")

PrivateKey = Union[ec.EllipticCurvePrivateKey, rsa.RSAPrivateKey, ed25519.Ed25519PrivateKey]
PublicKey = Union[ec.EllipticCurvePublicKey, rsa.RSAPublicKey, ed25519.Ed25519PublicKey]

# Called only when an encrypted key has to be opened
PasswordProvider = Callable[[], bytes]

# Legacy OpenSSL PEM encryption (RFC 1421 headers)
PROC_TYPE_ENCRYPTED = "4,ENCRYPTED"
DEFAULT_PEM_CIPHER = "AES-256-CBC"
PEM_CIPHER_KEY_SIZES = {
    "AES-128-CBC": 16,
    "AES-192-CBC": 24,
    "AES-256-CBC": 32,
}
AES_BLOCK_SIZE = 16


class KeyService:
    """Service for private key operations."""

    def __init__(self, store: ArtifactStore, security: Optional[SecuritySettings] = None):
        """
        Initialize key service.

        Args:
            store: Artifact store holding the private keys
            security: Password constraints, defaults if None
        """
        self.store = store
        self.security = security or SecuritySettings()

    @staticmethod
    def generate() -> ec.EllipticCurvePrivateKey:
        """
        Generate a fresh ECDSA P-256 private key.

        Raises:
            KeyGenerationError: If the random source fails
        """
        try:
            return ec.generate_private_key(ec.SECP256R1())
        except Exception as e:
            raise KeyGenerationError(f"cannot generate private key: {e}") from e

    @staticmethod
    def key_type(key) -> KeyType:
        """
        Identify the variant of a private key.

        Raises:
            UnsupportedKeyType: If the key is none of the supported variants
        """
        if isinstance(key, ec.EllipticCurvePrivateKey):
            return KeyType.EC
        elif isinstance(key, rsa.RSAPrivateKey):
            return KeyType.RSA
        elif isinstance(key, ed25519.Ed25519PrivateKey):
            return KeyType.ED25519

        raise UnsupportedKeyType(f"unhandled private key {type(key).__name__}")

    @staticmethod
    def derive_public_key(key: PrivateKey) -> PublicKey:
        """
        Return the public half of a private key.

        Raises:
            UnsupportedKeyType: If the key is none of the supported variants
        """
        key_type = KeyService.key_type(key)

        if key_type is KeyType.EC:
            return key.public_key()
        elif key_type is KeyType.RSA:
            return key.public_key()
        elif key_type is KeyType.ED25519:
            return key.public_key()

        raise UnsupportedKeyType(f"unhandled key type {key_type}")

    @staticmethod
    def serialize(key: PrivateKey) -> bytes:
        """Encode a private key as unencrypted PKCS#8 DER."""
        KeyService.key_type(key)

        return key.private_bytes(
            encoding=serialization.Encoding.DER,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    @staticmethod
    def encrypt(serialized_key: bytes, password: bytes) -> bytes:
        """
        Armor a serialized key, encrypted with a password.

        The result is an OpenSSL compatible "PRIVATE KEY" PEM block carrying
        Proc-Type and DEK-Info headers.

        Args:
            serialized_key: PKCS#8 DER key
            password: Encryption password

        Returns:
            Armored encrypted key
        """
        iv = os.urandom(AES_BLOCK_SIZE)
        key = _derive_pem_key(password, iv[:8], PEM_CIPHER_KEY_SIZES[DEFAULT_PEM_CIPHER])

        padder = padding.PKCS7(AES_BLOCK_SIZE * 8).padder()
        padded = padder.update(serialized_key) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        block = PEMBlock(
            label=PEM_PRIVATE_KEY,
            data=ciphertext,
            headers={
                "Proc-Type": PROC_TYPE_ENCRYPTED,
                "DEK-Info": f"{DEFAULT_PEM_CIPHER},{iv.hex().upper()}",
            },
        )
        return encode_pem(block)

    @staticmethod
    def armor(serialized_key: bytes) -> bytes:
        """Armor a serialized key without encryption."""
        return encode_pem(PEMBlock(label=PEM_PRIVATE_KEY, data=serialized_key))

    @staticmethod
    def is_encrypted(block: PEMBlock) -> bool:
        return block.headers.get("Proc-Type") == PROC_TYPE_ENCRYPTED

    @staticmethod
    def decrypt(pem_data: bytes, password_provider: Optional[PasswordProvider] = None) -> bytes:
        """
        Return the PKCS#8 DER key of an armored container.

        The password provider is only called when the container is encrypted.

        Args:
            pem_data: Armored key container
            password_provider: Callable returning the password

        Returns:
            Serialized key

        Raises:
            ParseError: If the armor is malformed
            DecryptionError: If the password is wrong or the container corrupted
        """
        block = decode_pem(pem_data, PEM_PRIVATE_KEY)
        if not KeyService.is_encrypted(block):
            return block.data

        if password_provider is None:
            raise DecryptionError("private key is encrypted and no password is available")

        cipher_name, iv = _parse_dek_info(block.headers.get("DEK-Info", ""))
        ciphertext = block.data
        if not ciphertext or len(ciphertext) % AES_BLOCK_SIZE != 0:
            raise DecryptionError("invalid encrypted data length")

        password = password_provider()
        key = _derive_pem_key(password, iv[:8], PEM_CIPHER_KEY_SIZES[cipher_name])

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(AES_BLOCK_SIZE * 8).unpadder()
        try:
            data = unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise DecryptionError("cannot decrypt private key: invalid password or corrupted data") from e

        # A wrong password can still yield valid padding
        if not is_single_element(data):
            raise DecryptionError("cannot decrypt private key: invalid password or corrupted data")

        return data

    @staticmethod
    def parse(der: bytes) -> ec.EllipticCurvePrivateKey:
        """
        Parse a PKCS#8 DER key created by this PKI.

        Raises:
            ParseError: If the data is not a valid key structure
            UnsupportedKeyType: If the key is not an EC key
        """
        try:
            key = serialization.load_der_private_key(der, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            raise ParseError(f"cannot parse key: {e}") from e

        if not isinstance(key, ec.EllipticCurvePrivateKey):
            raise UnsupportedKeyType("key is not an ecdsa key")

        return key

    def load_private_key(
        self, name: str, password_provider: Optional[PasswordProvider] = None
    ) -> ec.EllipticCurvePrivateKey:
        """
        Load and, if needed, decrypt a stored private key.

        Args:
            name: Logical key name
            password_provider: Called only if the key is encrypted

        Returns:
            Private key
        """
        logger.info(f"Loading private key '{name}'")

        data = self.store.read_private_key(name)
        der = self.decrypt(data, password_provider)
        return self.parse(der)

    def create_private_key(self, name: str, password: Optional[bytes] = None) -> ec.EllipticCurvePrivateKey:
        """
        Generate and store a new private key.

        Args:
            name: Logical key name
            password: Encrypt the stored key with this password if set

        Returns:
            Generated private key
        """
        logger.info(f"Creating private key '{name}'")

        if password is not None:
            validate_password(password, self.security.min_password_length, self.security.max_password_length)

        key = self.generate()
        self.write_private_key(key, name, password)
        return key

    def write_private_key(self, key: PrivateKey, name: str, password: Optional[bytes] = None) -> None:
        """Store a private key, failing if a key with this name exists."""
        serialized = self.serialize(key)

        if password is None:
            pem_data = self.armor(serialized)
        else:
            pem_data = self.encrypt(serialized, password)

        self.store.write_private_key(name, pem_data)


def _derive_pem_key(password: bytes, salt: bytes, key_size: int) -> bytes:
    """OpenSSL EVP_BytesToKey with MD5 and a single iteration."""
    key = b""
    digest = b""

    while len(key) < key_size:
        h = hashes.Hash(hashes.MD5())
        h.update(digest)
        h.update(password)
        h.update(salt)
        digest = h.finalize()
        key += digest

    return key[:key_size]


def _parse_dek_info(value: str) -> tuple[str, bytes]:
    cipher_name, sep, iv_hex = value.partition(",")
    cipher_name = cipher_name.strip()

    if not sep or cipher_name not in PEM_CIPHER_KEY_SIZES:
        raise DecryptionError(f"unsupported pem encryption {cipher_name!r}")

    try:
        iv = bytes.fromhex(iv_hex.strip())
    except ValueError as e:
        raise DecryptionError("invalid pem encryption iv") from e

    if len(iv) != AES_BLOCK_SIZE:
        raise DecryptionError("invalid pem encryption iv length")

    return cipher_name, iv
