"""
In-process signer backed by an Ed25519 key pair.
"""
import logging
from typing import Union

from ..exceptions import SigningError
from ..keys import KeyPair, PublicKey, Signature

logger = logging.getLogger(__name__)


class LocalSigner:
    """
    Sign with a key pair held in memory.

    Args:
        key: KeyPair or secret key string (``ed25519:<base58>``)

    Raises:
        SigningError: If the key string is malformed
    """

    def __init__(self, key: Union[KeyPair, str]):
        if isinstance(key, KeyPair):
            self.key_pair = key
        else:
            self.key_pair = KeyPair.from_string(key)
        logger.debug("Loaded local signer for %s", self.key_pair.public_key)

    @property
    def public_key(self) -> PublicKey:
        return self.key_pair.public_key

    def sign(self, message: bytes) -> Signature:
        try:
            return self.key_pair.sign(message)
        except (TypeError, ValueError) as e:
            raise SigningError(f"Failed to sign message: {e}") from e

    def __repr__(self) -> str:
        return f"LocalSigner({self.key_pair!r})"
