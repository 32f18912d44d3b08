"""
NearClient - build, sign and broadcast NEAR transactions.
"""
import logging
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Union

from .config import DEFAULT_GAS, NetworkConfig, TransactionConfig
from .exceptions import SigningError, ValidationError
from .keys import PublicKey
from .models import AccessKeyInfo, BroadcastResult
from .provider import JsonRpcProvider
from .signer import LocalSigner, Signer
from .transactions import (
    AccessKey, Action, AddKey, FunctionCall, Hasher, SignedTransaction,
    Transaction, TransactionSchema, Transfer, create_transaction,
    check_uint, sign_transaction, transaction_hash, validate_account_id
)
from .serializer import U64_MAX


class NearClient:
    """
    Client for sending transactions from one account.

    The pipeline is strictly sequential:

    1. fetch the access key (nonce and recent block hash)
    2. build the transaction with nonce + 1
    3. serialize, hash and sign it
    4. broadcast it and wait for the execution outcome

    To use this client, you'll need:
    - A NEAR RPC endpoint
    - The sending account id
    - Either a secret key string or a custom signer
    """

    def __init__(
        self,
        rpc_url: str,
        account_id: str,
        private_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        retry_count: int = 3,
        timeout: int = 30,
        hasher: Optional[Hasher] = None,
        schema: Optional[TransactionSchema] = None,
        provider: Optional[JsonRpcProvider] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the NearClient

        Args:
            rpc_url: Node RPC endpoint URL (e.g., "https://rpc.testnet.near.org")
            account_id: Account that signs and pays for transactions
            private_key: Secret key string ``ed25519:<base58>`` (optional if signer provided)
            signer: Custom signer object (optional if private_key provided)
            retry_count: Attempts for transient RPC failures
            timeout: Timeout for RPC requests in seconds
            hasher: Digest implementation (SHA-256 by default)
            schema: Transaction encoding (current Borsh layout by default)
            provider: Pre-built provider (mostly for tests)
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If neither private_key nor signer is provided, or the URL is insecure
            ValidationError: If account_id is malformed
            SigningError: If private_key is malformed
        """
        if not private_key and signer is None:
            raise ValueError("Either private_key or signer must be provided")

        self.account_id = validate_account_id(account_id, "account_id")
        self.logger = logger or logging.getLogger(__name__)
        self.signer: Signer = signer if signer is not None else LocalSigner(private_key)
        self.hasher = hasher
        self.schema = schema
        self.provider = provider or JsonRpcProvider(
            rpc_url,
            retry_count=retry_count,
            timeout=timeout,
            logger=self.logger
        )
        self.rpc_url = self.provider.rpc_url

        # (sender, nonce) -> (transaction hash, result) for included transactions
        self._ledger: Dict[Tuple[str, int], Tuple[str, BroadcastResult]] = {}

    @classmethod
    def from_network(
        cls,
        network: str,
        account_id: str,
        private_key: Optional[str] = None,
        signer: Optional[Signer] = None,
        **kwargs
    ) -> "NearClient":
        """
        Create a client for a named network from ``networks.json``

        Raises:
            ValueError: If the network is unknown
        """
        return cls(
            rpc_url=NetworkConfig.get_rpc_url(network),
            account_id=account_id,
            private_key=private_key,
            signer=signer,
            **kwargs
        )

    @classmethod
    def from_config(cls, config: TransactionConfig, **kwargs) -> "NearClient":
        """
        Create a client from a TransactionConfig

        Raises:
            SigningError: If the config carries no private key
        """
        if config.private_key is None and "signer" not in kwargs:
            raise SigningError("No private key configured (set NEAR_PRIVATE_KEY)")
        return cls(
            rpc_url=config.resolve_rpc_url(),
            account_id=config.signer_id,
            private_key=config.private_key.get_secret_value() if config.private_key else None,
            retry_count=config.retry_count,
            timeout=config.timeout,
            **kwargs
        )

    @property
    def public_key(self) -> PublicKey:
        return self.signer.public_key

    def close(self) -> None:
        self.provider.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def fetch_access_key(self) -> AccessKeyInfo:
        """
        Fetch the current nonce and a recent block hash for this client's key

        Raises:
            NotFoundError: If the account has no such access key
            NetworkError: If the node cannot be reached
        """
        return self.provider.view_access_key(self.account_id, self.public_key)

    def build_transaction(
        self,
        receiver_id: str,
        actions: Sequence[Action],
        access_key: Optional[AccessKeyInfo] = None,
        nonce: Optional[int] = None
    ) -> Transaction:
        """
        Build an unsigned transaction

        Args:
            receiver_id: Account the actions apply to
            actions: Actions to execute in order
            access_key: Previously fetched access key (fetched now if omitted)
            nonce: Explicit nonce (defaults to access key nonce + 1)

        Returns:
            Transaction

        Raises:
            ValidationError: If inputs are malformed or the nonce was already used
        """
        if access_key is None:
            access_key = self.fetch_access_key()

        if nonce is None:
            nonce = access_key.next_nonce
        else:
            check_uint(nonce, U64_MAX, "nonce")
            if nonce <= access_key.nonce:
                raise ValidationError(
                    f"Nonce {nonce} is not greater than the access key nonce {access_key.nonce}"
                )

        return create_transaction(
            signer_id=self.account_id,
            public_key=self.public_key,
            receiver_id=receiver_id,
            nonce=nonce,
            actions=actions,
            block_hash=access_key.block_hash_bytes
        )

    def sign_transaction(self, transaction: Transaction) -> SignedTransaction:
        """
        Sign a transaction with this client's signer

        Raises:
            SigningError: If signing fails
        """
        try:
            return sign_transaction(transaction, self.signer, hasher=self.hasher, schema=self.schema)
        except SigningError:
            raise
        except (TypeError, ValueError) as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise SigningError(f"Failed to sign transaction: {e}") from e

    def broadcast(self, signed: SignedTransaction) -> BroadcastResult:
        """
        Submit a signed transaction and wait for its outcome

        Resubmitting a transaction that was already included returns the
        recorded result without touching the network.

        Returns:
            BroadcastResult

        Raises:
            ValidationError: If another transaction already used the same
                (sender, nonce)
            NetworkError: On transport failure
        """
        tx = signed.transaction
        key = (tx.signer_id, tx.nonce)
        tx_hash = transaction_hash(tx, hasher=self.hasher, schema=self.schema)

        recorded = self._ledger.get(key)
        if recorded is not None:
            recorded_hash, recorded_result = recorded
            if recorded_hash == tx_hash:
                self.logger.info(f"Transaction {tx_hash} already included, returning recorded result")
                return recorded_result
            raise ValidationError(
                f"Nonce {tx.nonce} of {tx.signer_id} was already used by transaction {recorded_hash}"
            )

        payload = signed.to_base64(self.schema)
        self.logger.info(
            f"Broadcasting transaction {tx_hash} "
            f"({tx.signer_id} -> {tx.receiver_id}, nonce={tx.nonce}, {len(tx.actions)} action(s))"
        )
        result = self.provider.broadcast_tx_commit(payload, transaction_hash=tx_hash)
        if result.transaction_hash is None:
            result = result.model_copy(update={"transaction_hash": tx_hash})

        if result.included:
            self._ledger[key] = (tx_hash, result)

        if result.is_success:
            self.logger.info(f"Transaction {tx_hash} committed")
        elif result.included:
            self.logger.warning(f"Transaction {tx_hash} failed on chain: {result.failure}")
        else:
            self.logger.warning(f"Transaction {tx_hash} rejected: {result.failure}")
        return result

    def send_transaction(self, receiver_id: str, actions: Sequence[Action]) -> BroadcastResult:
        """
        Run the full pipeline: fetch, build, sign, broadcast

        Raises:
            NotFoundError, NetworkError, ValidationError, SigningError
        """
        access_key = self.fetch_access_key()
        transaction = self.build_transaction(receiver_id, actions, access_key=access_key)
        signed = self.sign_transaction(transaction)
        return self.broadcast(signed)

    def function_call(
        self,
        receiver_id: str,
        method_name: str,
        args: Union[Mapping[str, Any], bytes, None] = None,
        gas: int = DEFAULT_GAS,
        deposit: int = 0
    ) -> BroadcastResult:
        action = FunctionCall(method_name=method_name, args=args if args is not None else {}, gas=gas, deposit=deposit)
        return self.send_transaction(receiver_id, [action])

    def transfer(self, receiver_id: str, amount: int) -> BroadcastResult:
        return self.send_transaction(receiver_id, [Transfer(deposit=amount)])

    def add_key(
        self,
        public_key: Union[PublicKey, str],
        access_key: AccessKey,
        receiver_id: Optional[str] = None
    ) -> BroadcastResult:
        """Attach ``public_key`` to an account (this client's account by default)"""
        action = AddKey(public_key=PublicKey.from_value(public_key), access_key=access_key)
        return self.send_transaction(receiver_id or self.account_id, [action])

    def transaction_status(self, transaction_hash: str) -> BroadcastResult:
        return self.provider.tx_status(transaction_hash, self.account_id)
