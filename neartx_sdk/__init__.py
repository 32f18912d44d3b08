"""
neartx SDK - build, sign and broadcast NEAR transactions over JSON-RPC.
"""
from .client import NearClient
from .config import NetworkConfig, TransactionConfig
from .exceptions import (
    NearTxError, NetworkError, NotFoundError, RpcError,
    SerializationError, SigningError, ValidationError
)
from .keys import KeyPair, KeyType, PublicKey, Signature, verify_signature
from .models import AccessKeyInfo, BroadcastResult, TxStatus
from .provider import JsonRpcProvider
from .signer import LocalSigner, Signer
from .transactions import (
    AccessKey, Action, AddKey, CreateAccount, DeleteAccount, DeleteKey,
    DeployContract, FullAccessPermission, FunctionCall, FunctionCallPermission,
    Sha256Hasher, SignedTransaction, Stake, Transaction, TransactionSchema,
    Transfer, create_transaction, full_access_key, function_call_access_key,
    hash_transaction, serialize_transaction, sign_transaction
)
from .version import __version__

__all__ = [
    "NearClient",
    "JsonRpcProvider",
    "NetworkConfig",
    "TransactionConfig",
    "NearTxError",
    "NetworkError",
    "NotFoundError",
    "RpcError",
    "SerializationError",
    "SigningError",
    "ValidationError",
    "KeyPair",
    "KeyType",
    "PublicKey",
    "Signature",
    "verify_signature",
    "AccessKeyInfo",
    "BroadcastResult",
    "TxStatus",
    "LocalSigner",
    "Signer",
    "AccessKey",
    "Action",
    "AddKey",
    "CreateAccount",
    "DeleteAccount",
    "DeleteKey",
    "DeployContract",
    "FullAccessPermission",
    "FunctionCall",
    "FunctionCallPermission",
    "Sha256Hasher",
    "SignedTransaction",
    "Stake",
    "Transaction",
    "TransactionSchema",
    "Transfer",
    "create_transaction",
    "full_access_key",
    "function_call_access_key",
    "hash_transaction",
    "serialize_transaction",
    "sign_transaction",
    "__version__",
]
