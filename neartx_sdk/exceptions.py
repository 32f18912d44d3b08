"""
Exceptions for the neartx SDK.
"""
from typing import Any, Dict, Optional


class NearTxError(Exception):
    """Base exception for all neartx SDK errors."""
    pass


class NetworkError(NearTxError):
    """Raised when the RPC endpoint is unreachable, times out or keeps failing."""
    pass


class NotFoundError(NearTxError):
    """Raised when the node has no such account or access key."""
    pass


class ValidationError(NearTxError, ValueError):
    """Raised when transaction inputs are malformed or out of range."""
    pass


class SerializationError(ValidationError):
    """Raised when a value cannot be encoded or decoded with the Borsh schema."""
    pass


class SigningError(NearTxError):
    """Raised when key material is malformed or cannot sign a transaction."""
    pass


class RpcError(NearTxError):
    """
    Raised for JSON-RPC errors that do not map to a more specific exception.

    Attributes:
        name: Top-level error name reported by the node (e.g. ``HANDLER_ERROR``)
        cause: Error cause name (e.g. ``UNKNOWN_BLOCK``)
        data: Raw error object from the response
    """

    def __init__(
        self,
        message: str,
        name: Optional[str] = None,
        cause: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None
    ):
        self.name = name
        self.cause = cause
        self.data = data or {}
        super().__init__(message)
