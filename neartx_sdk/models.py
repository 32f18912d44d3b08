"""
Data models for the neartx SDK.
"""
import base64
import binascii
from enum import Enum
from typing import Any, Dict, Optional

import base58
from pydantic import BaseModel, Field


class AccessKeyInfo(BaseModel):
    """Access key state returned by the ``query`` RPC method"""
    nonce: int = Field(..., ge=0)
    block_hash: str
    block_height: int = 0
    permission: Any = None

    @property
    def block_hash_bytes(self) -> bytes:
        return base58.b58decode(self.block_hash)

    @property
    def next_nonce(self) -> int:
        return self.nonce + 1


class TxStatus(str, Enum):
    SUCCESS = "Success"
    FAILURE = "Failure"


class BroadcastResult(BaseModel):
    """
    Outcome of a commit-style broadcast.

    ``status`` is FAILURE both when the transaction executed and reverted
    (``included`` is True, the nonce is consumed) and when the node refused
    it before inclusion (``included`` is False, the nonce may be reused).
    """
    status: TxStatus
    transaction_hash: Optional[str] = None
    included: bool = True
    failure: Optional[Dict[str, Any]] = None
    payload: Any = None

    class Config:
        populate_by_name = True

    @property
    def is_success(self) -> bool:
        return self.status == TxStatus.SUCCESS

    @property
    def success_value(self) -> Optional[bytes]:
        """Decoded return value of the last receipt, if any"""
        if not self.is_success or not isinstance(self.payload, dict):
            return None
        value = (self.payload.get("status") or {}).get("SuccessValue")
        if value is None:
            return None
        try:
            return base64.b64decode(value)
        except (binascii.Error, ValueError):
            return None

    @classmethod
    def from_outcome(cls, outcome: Dict[str, Any]) -> "BroadcastResult":
        """
        Build a result from a ``FinalExecutionOutcome`` returned by the node.

        Args:
            outcome: The ``result`` member of the RPC response

        Returns:
            BroadcastResult
        """
        status = outcome.get("status") or {}
        tx_hash = (outcome.get("transaction_outcome") or {}).get("id") \
            or (outcome.get("transaction") or {}).get("hash")

        if isinstance(status, dict) and "Failure" in status:
            return cls(
                status=TxStatus.FAILURE,
                transaction_hash=tx_hash,
                included=True,
                failure=status["Failure"],
                payload=outcome
            )
        if isinstance(status, dict) and any(key.startswith("Success") for key in status):
            return cls(
                status=TxStatus.SUCCESS,
                transaction_hash=tx_hash,
                included=True,
                payload=outcome
            )
        # Non-final statuses ("NotStarted", "Started") are not a commit
        return cls(
            status=TxStatus.FAILURE,
            transaction_hash=tx_hash,
            included=True,
            failure={"status": status},
            payload=outcome
        )

    @classmethod
    def rejected(cls, error: Dict[str, Any], transaction_hash: Optional[str] = None) -> "BroadcastResult":
        """Build a result for a transaction the node refused before inclusion"""
        return cls(
            status=TxStatus.FAILURE,
            transaction_hash=transaction_hash,
            included=False,
            failure=error.get("data") if isinstance(error.get("data"), dict) else error,
            payload=error
        )
