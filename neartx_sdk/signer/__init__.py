"""
Signer interfaces for the neartx SDK.
"""
from typing import Protocol, runtime_checkable

from ..keys import PublicKey, Signature


@runtime_checkable
class Signer(Protocol):
    """Protocol for custom signers (hardware wallets, remote KMS, ...)"""

    @property
    def public_key(self) -> PublicKey:
        """Public key matching the secret this signer holds"""
        ...

    def sign(self, message: bytes) -> Signature:
        """Sign raw bytes (a transaction digest) and return the signature"""
        ...


from .local import LocalSigner  # noqa: E402

__all__ = ["Signer", "LocalSigner"]
