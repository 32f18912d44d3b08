"""
Key material for signing NEAR transactions.

Keys travel as strings of the form ``ed25519:<base58>``. Secret keys decode
either to the 64-byte ``seed || public key`` form emitted by NEAR tooling or
to a bare 32-byte seed.
"""
import logging
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey, Ed25519PublicKey
)
from cryptography.hazmat.primitives.serialization import (
    Encoding, PrivateFormat, PublicFormat, NoEncryption
)

from .exceptions import SigningError

logger = logging.getLogger(__name__)

ED25519_SEED_LENGTH = 32
ED25519_PUBLIC_KEY_LENGTH = 32
ED25519_SIGNATURE_LENGTH = 64


class KeyType(IntEnum):
    """Key type tag, matching the Borsh enum index used on chain."""
    ED25519 = 0

    @property
    def prefix(self) -> str:
        return self.name.lower()

    @classmethod
    def from_prefix(cls, prefix: str) -> "KeyType":
        try:
            return cls[prefix.upper()]
        except KeyError:
            raise SigningError(f"Unsupported key type: {prefix}")


def _split_key_string(value: str):
    """Split ``<type>:<base58>`` into (KeyType, decoded bytes)."""
    if not isinstance(value, str) or not value:
        raise SigningError("Key string must be a non-empty string")

    if ":" in value:
        prefix, encoded = value.split(":", 1)
        key_type = KeyType.from_prefix(prefix)
    else:
        key_type, encoded = KeyType.ED25519, value

    try:
        raw = base58.b58decode(encoded)
    except ValueError as e:
        raise SigningError(f"Key is not valid base58: {e}") from e
    return key_type, raw


@dataclass(frozen=True)
class PublicKey:
    """
    Public half of a key pair as it appears in transactions.

    Attributes:
        key_type: Signature scheme of the key
        data: Raw public key bytes
    """
    key_type: KeyType
    data: bytes

    def __post_init__(self):
        if len(self.data) != ED25519_PUBLIC_KEY_LENGTH:
            raise SigningError(
                f"Public key must be {ED25519_PUBLIC_KEY_LENGTH} bytes, got {len(self.data)}"
            )

    @classmethod
    def from_string(cls, value: str) -> "PublicKey":
        """
        Parse a public key from ``ed25519:<base58>``.

        Raises:
            SigningError: If the string is not a valid public key
        """
        key_type, raw = _split_key_string(value)
        return cls(key_type=key_type, data=raw)

    @classmethod
    def from_value(cls, value: Union["PublicKey", str]) -> "PublicKey":
        if isinstance(value, PublicKey):
            return value
        return cls.from_string(value)

    def to_string(self) -> str:
        return f"{self.key_type.prefix}:{base58.b58encode(self.data).decode('ascii')}"

    def verify(self, message: bytes, signature: bytes) -> bool:
        """
        Check an Ed25519 signature over ``message``.

        Returns:
            True if the signature is valid, False otherwise
        """
        try:
            Ed25519PublicKey.from_public_bytes(self.data).verify(signature, message)
            return True
        except (InvalidSignature, ValueError):
            return False

    def __str__(self) -> str:
        return self.to_string()


@dataclass(frozen=True)
class Signature:
    """A signature tagged with the key type that produced it."""
    key_type: KeyType
    data: bytes

    def __post_init__(self):
        if len(self.data) != ED25519_SIGNATURE_LENGTH:
            raise SigningError(
                f"Signature must be {ED25519_SIGNATURE_LENGTH} bytes, got {len(self.data)}"
            )

    def to_string(self) -> str:
        return f"{self.key_type.prefix}:{base58.b58encode(self.data).decode('ascii')}"


class KeyPair:
    """
    Ed25519 key pair.

    The secret never appears in ``repr`` or log output. Instances are
    read-only after construction.
    """

    __slots__ = ("_private_key", "_public_key")

    def __init__(self, private_key: Ed25519PrivateKey):
        self._private_key = private_key
        public_bytes = private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        self._public_key = PublicKey(KeyType.ED25519, public_bytes)

    @classmethod
    def generate(cls) -> "KeyPair":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "KeyPair":
        """
        Build a key pair from a 32-byte Ed25519 seed.

        Raises:
            SigningError: If the seed has the wrong length
        """
        if len(seed) != ED25519_SEED_LENGTH:
            raise SigningError(
                f"Ed25519 seed must be {ED25519_SEED_LENGTH} bytes, got {len(seed)}"
            )
        return cls(Ed25519PrivateKey.from_private_bytes(bytes(seed)))

    @classmethod
    def from_string(cls, value: str) -> "KeyPair":
        """
        Parse a secret key string.

        Args:
            value: ``ed25519:<base58>`` (prefix optional) encoding either
                the 64-byte ``seed || public key`` form or a 32-byte seed

        Returns:
            KeyPair

        Raises:
            SigningError: If the key material is malformed or its public
                half does not match the seed
        """
        _, raw = _split_key_string(value)

        if len(raw) == ED25519_SEED_LENGTH + ED25519_PUBLIC_KEY_LENGTH:
            key_pair = cls.from_seed(raw[:ED25519_SEED_LENGTH])
            if key_pair.public_key.data != raw[ED25519_SEED_LENGTH:]:
                raise SigningError("Secret key does not match its embedded public key")
            return key_pair
        if len(raw) == ED25519_SEED_LENGTH:
            return cls.from_seed(raw)

        raise SigningError(
            f"Secret key must decode to 32 or 64 bytes, got {len(raw)}"
        )

    @property
    def public_key(self) -> PublicKey:
        return self._public_key

    def seed(self) -> bytes:
        return self._private_key.private_bytes(
            encoding=Encoding.Raw,
            format=PrivateFormat.Raw,
            encryption_algorithm=NoEncryption()
        )

    def to_string(self) -> str:
        """Secret key in the 64-byte ``ed25519:<base58>`` form."""
        raw = self.seed() + self._public_key.data
        return f"{KeyType.ED25519.prefix}:{base58.b58encode(raw).decode('ascii')}"

    def sign(self, message: bytes) -> Signature:
        return Signature(KeyType.ED25519, self._private_key.sign(message))

    def verify(self, message: bytes, signature: bytes) -> bool:
        return self._public_key.verify(message, signature)

    def __repr__(self) -> str:
        return f"KeyPair(public_key={self._public_key.to_string()!r}, secret=[REDACTED])"


def verify_signature(public_key: Union[PublicKey, str], message: bytes, signature: Union[Signature, bytes]) -> bool:
    """
    Verify a signature against a public key.

    Args:
        public_key: PublicKey or its string form
        message: Signed bytes (for transactions, the 32-byte digest)
        signature: Signature or raw signature bytes

    Returns:
        True if valid
    """
    key = PublicKey.from_value(public_key)
    raw = signature.data if isinstance(signature, Signature) else signature
    return key.verify(message, raw)
