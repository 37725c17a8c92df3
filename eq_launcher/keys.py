"""
Key store for token issuance.

Loads the RSA signing key and the RSA encryption key from PEM files and derives
the ``kid`` that identifies each one to the questionnaire runner. Keys are read
from disk on every call; nothing is cached between issuances.
"""

import hashlib
import logging
from dataclasses import dataclass

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from eq_launcher.errors import KeyLoadError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SigningKeyMaterial:
    """RSA private key plus the kid derived from its public half."""

    key: rsa.RSAPrivateKey
    kid: str


@dataclass(frozen=True)
class EncryptionKeyMaterial:
    """RSA public key plus the kid derived from the key file."""

    key: rsa.RSAPublicKey
    kid: str


@dataclass(frozen=True)
class KeyPair:
    """PEM encoded RSA key pair."""

    private_key_pem: bytes
    public_key_pem: bytes


def _read_key_file(path: str, description: str) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError:
        raise KeyLoadError("read", f"Failed to read {description} key from file: {path}")


def load_signing_key(path: str) -> SigningKeyMaterial:
    """
    Load the PEM encoded RSA private key used for signing.

    The kid is the hex SHA-1 of the PEM encoded SubjectPublicKeyInfo of the
    matching public key.

    Raises:
        KeyLoadError: op is "read", "parse" or "marshal" depending on the stage.
    """
    key_data = _read_key_file(path, "signing")

    try:
        private_key = serialization.load_pem_private_key(key_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise KeyLoadError("parse", "Failed to parse signing key from PEM")

    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise KeyLoadError("parse", "Failed to parse signing key from PEM")

    try:
        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
    except ValueError:
        raise KeyLoadError("marshal", "Failed to marshal public key")

    kid = hashlib.sha1(public_pem).hexdigest()
    logger.debug(f"Loaded signing key {kid} from {path}")
    return SigningKeyMaterial(key=private_key, kid=kid)


def load_encryption_key(path: str) -> EncryptionKeyMaterial:
    """
    Load the PEM encoded RSA public key used for encryption.

    The kid is the hex SHA-1 of the whole key file as read from disk, not of
    the decoded key. The runner derives the same value from the same file.

    Raises:
        KeyLoadError: op is "read", "parse" or "cast" depending on the stage.
    """
    key_data = _read_key_file(path, "encryption")

    try:
        public_key = serialization.load_pem_public_key(key_data)
    except (ValueError, TypeError, UnsupportedAlgorithm):
        raise KeyLoadError("parse", "Failed to parse encryption key PEM")

    kid = hashlib.sha1(key_data).hexdigest()

    if not isinstance(public_key, rsa.RSAPublicKey):
        raise KeyLoadError("cast", "Failed to cast key to RSA public key")

    logger.debug(f"Loaded encryption key {kid} from {path}")
    return EncryptionKeyMaterial(key=public_key, kid=kid)


def generate_key_pair(key_size: int = 2048) -> KeyPair:
    """
    Generate a fresh RSA key pair in the formats the key store reads.

    The private key is PKCS#1 PEM, the public key is X.509
    SubjectPublicKeyInfo PEM.
    """
    private_key = rsa.generate_private_key(public_exponent=65537, key_size=key_size)

    private_pem = private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_pem = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )

    return KeyPair(private_key_pem=private_pem, public_key_pem=public_pem)
