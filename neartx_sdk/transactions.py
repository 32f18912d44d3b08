"""
Transaction model, canonical encoding, hashing and signing.

The layout produced by ``TransactionSchema`` must match the chain's Borsh
schema byte for byte, otherwise the node rejects the signature:

    Transaction       = signer_id: string, public_key: PublicKey, nonce: u64,
                        receiver_id: string, block_hash: [u8; 32],
                        actions: Vec<Action>
    SignedTransaction = transaction: Transaction, signature: Signature
"""
import base64
import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from typing import (
    Any, ClassVar, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Type, Union
)

import base58

from .exceptions import SerializationError, SigningError, ValidationError
from .keys import (
    ED25519_PUBLIC_KEY_LENGTH, ED25519_SIGNATURE_LENGTH,
    KeyType, PublicKey, Signature, verify_signature
)
from .serializer import BorshDecoder, BorshEncoder, U64_MAX, U128_MAX

logger = logging.getLogger(__name__)

BLOCK_HASH_LENGTH = 32

# Account id grammar enforced by the chain
ACCOUNT_ID_REGEX = re.compile(r"^(([a-z\d]+[-_])*[a-z\d]+\.)*([a-z\d]+[-_])*[a-z\d]+$")
ACCOUNT_ID_MIN_LENGTH = 2
ACCOUNT_ID_MAX_LENGTH = 64


def validate_account_id(account_id: str, field_name: str = "account_id") -> str:
    """
    Check an account id against the chain's naming rules.

    Raises:
        ValidationError: If the id is malformed
    """
    if not isinstance(account_id, str) or not account_id:
        raise ValidationError(f"{field_name} must be a non-empty string")
    if not (ACCOUNT_ID_MIN_LENGTH <= len(account_id) <= ACCOUNT_ID_MAX_LENGTH):
        raise ValidationError(
            f"{field_name} must be {ACCOUNT_ID_MIN_LENGTH}-{ACCOUNT_ID_MAX_LENGTH} characters, "
            f"got {len(account_id)}"
        )
    if not ACCOUNT_ID_REGEX.match(account_id):
        raise ValidationError(f"{field_name} is not a valid account id: {account_id!r}")
    return account_id


def check_uint(value: Any, maximum: int, field_name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field_name} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValidationError(f"{field_name} must be non-negative, got {value}")
    if value > maximum:
        raise ValidationError(f"{field_name} overflows its width: {value} > {maximum}")


def _encode_public_key(encoder: BorshEncoder, public_key: PublicKey) -> None:
    encoder.encode_u8(int(public_key.key_type))
    encoder.encode_fixed_bytes(public_key.data, ED25519_PUBLIC_KEY_LENGTH)


def _decode_public_key(decoder: BorshDecoder) -> PublicKey:
    tag = decoder.decode_u8()
    try:
        key_type = KeyType(tag)
    except ValueError:
        raise SerializationError(f"Unknown key type tag: {tag}")
    return PublicKey(key_type, decoder.decode_fixed_bytes(ED25519_PUBLIC_KEY_LENGTH))


# ---------------------------------------------------------------------------
# Access key permissions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FunctionCallPermission:
    """Permission limited to calling ``method_names`` on ``receiver_id``."""
    receiver_id: str
    method_names: Tuple[str, ...] = ()
    allowance: Optional[int] = None

    PERMISSION_INDEX: ClassVar[int] = 0

    def validate(self) -> None:
        validate_account_id(self.receiver_id, "receiver_id")
        if self.allowance is not None:
            check_uint(self.allowance, U128_MAX, "allowance")

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_option(self.allowance, encoder.encode_u128)
        encoder.encode_string(self.receiver_id)
        encoder.encode_vector(list(self.method_names), encoder.encode_string)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "FunctionCallPermission":
        allowance = decoder.decode_option(decoder.decode_u128)
        receiver_id = decoder.decode_string()
        method_names = tuple(decoder.decode_vector(decoder.decode_string))
        return cls(receiver_id=receiver_id, method_names=method_names, allowance=allowance)


@dataclass(frozen=True)
class FullAccessPermission:
    """Unrestricted permission."""

    PERMISSION_INDEX: ClassVar[int] = 1

    def validate(self) -> None:
        pass

    def encode(self, encoder: BorshEncoder) -> None:
        pass

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "FullAccessPermission":
        return cls()


AccessKeyPermission = Union[FunctionCallPermission, FullAccessPermission]
_PERMISSIONS: Dict[int, Any] = {
    FunctionCallPermission.PERMISSION_INDEX: FunctionCallPermission,
    FullAccessPermission.PERMISSION_INDEX: FullAccessPermission,
}


@dataclass(frozen=True)
class AccessKey:
    """Access key record attached to a public key by ``AddKey``."""
    permission: AccessKeyPermission
    nonce: int = 0

    def validate(self) -> None:
        check_uint(self.nonce, U64_MAX, "access_key.nonce")
        self.permission.validate()

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_u64(self.nonce)
        encoder.encode_u8(self.permission.PERMISSION_INDEX)
        self.permission.encode(encoder)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "AccessKey":
        nonce = decoder.decode_u64()
        tag = decoder.decode_u8()
        if tag not in _PERMISSIONS:
            raise SerializationError(f"Unknown access key permission tag: {tag}")
        return cls(permission=_PERMISSIONS[tag].decode(decoder), nonce=nonce)


def full_access_key() -> AccessKey:
    return AccessKey(permission=FullAccessPermission())


def function_call_access_key(
    receiver_id: str,
    method_names: Sequence[str] = (),
    allowance: Optional[int] = None
) -> AccessKey:
    """Access key that may only call ``method_names`` (all methods if empty) on ``receiver_id``."""
    return AccessKey(
        permission=FunctionCallPermission(
            receiver_id=receiver_id,
            method_names=tuple(method_names),
            allowance=allowance
        )
    )


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------

class Action:
    """Base class for transaction actions. ``ACTION_INDEX`` is the Borsh enum tag."""

    ACTION_INDEX: ClassVar[int]

    def validate(self) -> None:
        pass

    def encode(self, encoder: BorshEncoder) -> None:
        raise NotImplementedError

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "Action":
        raise NotImplementedError


@dataclass(frozen=True)
class CreateAccount(Action):
    ACTION_INDEX: ClassVar[int] = 0

    def encode(self, encoder: BorshEncoder) -> None:
        pass

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "CreateAccount":
        return cls()


@dataclass(frozen=True)
class DeployContract(Action):
    code: bytes
    ACTION_INDEX: ClassVar[int] = 1

    def validate(self) -> None:
        if not isinstance(self.code, (bytes, bytearray)):
            raise ValidationError("code must be bytes")

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_bytes(bytes(self.code))

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "DeployContract":
        return cls(code=decoder.decode_bytes())


@dataclass(frozen=True)
class FunctionCall(Action):
    """
    Call ``method_name`` on the receiver contract.

    Mapping arguments are sent as compact JSON with key order preserved,
    raw bytes are sent as-is.
    """
    method_name: str
    args: Union[Mapping[str, Any], bytes] = field(default_factory=dict)
    gas: int = 0
    deposit: int = 0
    ACTION_INDEX: ClassVar[int] = 2

    @property
    def args_bytes(self) -> bytes:
        if isinstance(self.args, (bytes, bytearray)):
            return bytes(self.args)
        return json.dumps(
            self.args, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        ).encode("utf-8")

    def __hash__(self) -> int:
        # args may be a dict; hash its encoded form
        return hash((self.method_name, self.args_bytes, self.gas, self.deposit))

    def validate(self) -> None:
        if not isinstance(self.method_name, str) or not self.method_name:
            raise ValidationError("method_name must be a non-empty string")
        if not isinstance(self.args, (bytes, bytearray, Mapping)):
            raise ValidationError(f"args must be a mapping or bytes, got {type(self.args).__name__}")
        try:
            self.args_bytes
        except (TypeError, ValueError) as e:
            raise ValidationError(f"args are not JSON serializable: {e}") from e
        check_uint(self.gas, U64_MAX, "gas")
        check_uint(self.deposit, U128_MAX, "deposit")

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_string(self.method_name)
        encoder.encode_bytes(self.args_bytes)
        encoder.encode_u64(self.gas)
        encoder.encode_u128(self.deposit)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "FunctionCall":
        method_name = decoder.decode_string()
        args = decoder.decode_bytes()
        gas = decoder.decode_u64()
        deposit = decoder.decode_u128()
        return cls(method_name=method_name, args=args, gas=gas, deposit=deposit)


@dataclass(frozen=True)
class Transfer(Action):
    deposit: int
    ACTION_INDEX: ClassVar[int] = 3

    def validate(self) -> None:
        check_uint(self.deposit, U128_MAX, "deposit")

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_u128(self.deposit)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "Transfer":
        return cls(deposit=decoder.decode_u128())


@dataclass(frozen=True)
class Stake(Action):
    stake: int
    public_key: PublicKey
    ACTION_INDEX: ClassVar[int] = 4

    def validate(self) -> None:
        check_uint(self.stake, U128_MAX, "stake")

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_u128(self.stake)
        _encode_public_key(encoder, self.public_key)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "Stake":
        stake = decoder.decode_u128()
        return cls(stake=stake, public_key=_decode_public_key(decoder))


@dataclass(frozen=True)
class AddKey(Action):
    public_key: PublicKey
    access_key: AccessKey
    ACTION_INDEX: ClassVar[int] = 5

    def validate(self) -> None:
        self.access_key.validate()

    def encode(self, encoder: BorshEncoder) -> None:
        _encode_public_key(encoder, self.public_key)
        self.access_key.encode(encoder)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "AddKey":
        public_key = _decode_public_key(decoder)
        return cls(public_key=public_key, access_key=AccessKey.decode(decoder))


@dataclass(frozen=True)
class DeleteKey(Action):
    public_key: PublicKey
    ACTION_INDEX: ClassVar[int] = 6

    def encode(self, encoder: BorshEncoder) -> None:
        _encode_public_key(encoder, self.public_key)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "DeleteKey":
        return cls(public_key=_decode_public_key(decoder))


@dataclass(frozen=True)
class DeleteAccount(Action):
    beneficiary_id: str
    ACTION_INDEX: ClassVar[int] = 7

    def validate(self) -> None:
        validate_account_id(self.beneficiary_id, "beneficiary_id")

    def encode(self, encoder: BorshEncoder) -> None:
        encoder.encode_string(self.beneficiary_id)

    @classmethod
    def decode(cls, decoder: BorshDecoder) -> "DeleteAccount":
        return cls(beneficiary_id=decoder.decode_string())


ACTION_TYPES: Dict[int, Type[Action]] = {
    cls.ACTION_INDEX: cls
    for cls in (CreateAccount, DeployContract, FunctionCall, Transfer,
                Stake, AddKey, DeleteKey, DeleteAccount)
}


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Transaction:
    """Unsigned transaction. Build it with ``create_transaction``."""
    signer_id: str
    public_key: PublicKey
    nonce: int
    receiver_id: str
    block_hash: bytes
    actions: Tuple[Action, ...]


@dataclass(frozen=True)
class SignedTransaction:
    """Transaction plus the signature over its SHA-256 digest."""
    transaction: Transaction
    signature: Signature

    def encode(self, schema: Optional["TransactionSchema"] = None) -> bytes:
        return (schema or DEFAULT_SCHEMA).serialize_signed_transaction(self)

    def to_base64(self, schema: Optional["TransactionSchema"] = None) -> str:
        return base64.b64encode(self.encode(schema)).decode("ascii")

    @property
    def hash(self) -> str:
        """Transaction id as the chain computes it: base58 SHA-256 of the Borsh encoding."""
        return transaction_hash(self.transaction)

    @classmethod
    def decode(cls, data: bytes, schema: Optional["TransactionSchema"] = None) -> "SignedTransaction":
        return (schema or DEFAULT_SCHEMA).deserialize_signed_transaction(data)

    def verify(
        self,
        hasher: Optional["Hasher"] = None,
        schema: Optional["TransactionSchema"] = None
    ) -> bool:
        """Check the signature against the transaction's own public key."""
        digest = hash_transaction(self.transaction, hasher, schema)
        return verify_signature(self.transaction.public_key, digest, self.signature)


class TransactionSchema:
    """
    Borsh layout of transactions, versioned so an alternative layout can be
    swapped in if the chain's schema changes.
    """

    VERSION = 1

    def serialize_transaction(self, transaction: Transaction) -> bytes:
        encoder = BorshEncoder()
        self._encode_transaction(encoder, transaction)
        return encoder.to_bytes()

    def serialize_signed_transaction(self, signed: SignedTransaction) -> bytes:
        encoder = BorshEncoder()
        self._encode_transaction(encoder, signed.transaction)
        encoder.encode_u8(int(signed.signature.key_type))
        encoder.encode_fixed_bytes(signed.signature.data, ED25519_SIGNATURE_LENGTH)
        return encoder.to_bytes()

    def deserialize_transaction(self, data: bytes) -> Transaction:
        decoder = BorshDecoder(data)
        transaction = self._decode_transaction(decoder)
        self._ensure_consumed(decoder)
        return transaction

    def deserialize_signed_transaction(self, data: bytes) -> SignedTransaction:
        decoder = BorshDecoder(data)
        transaction = self._decode_transaction(decoder)
        tag = decoder.decode_u8()
        try:
            key_type = KeyType(tag)
        except ValueError:
            raise SerializationError(f"Unknown signature key type tag: {tag}")
        signature = Signature(key_type, decoder.decode_fixed_bytes(ED25519_SIGNATURE_LENGTH))
        self._ensure_consumed(decoder)
        return SignedTransaction(transaction=transaction, signature=signature)

    def _encode_transaction(self, encoder: BorshEncoder, tx: Transaction) -> None:
        encoder.encode_string(tx.signer_id)
        _encode_public_key(encoder, tx.public_key)
        encoder.encode_u64(tx.nonce)
        encoder.encode_string(tx.receiver_id)
        encoder.encode_fixed_bytes(tx.block_hash, BLOCK_HASH_LENGTH)
        encoder.encode_vector(list(tx.actions), lambda action: self._encode_action(encoder, action))

    def _encode_action(self, encoder: BorshEncoder, action: Action) -> None:
        encoder.encode_u8(action.ACTION_INDEX)
        action.encode(encoder)

    def _decode_transaction(self, decoder: BorshDecoder) -> Transaction:
        signer_id = decoder.decode_string()
        public_key = _decode_public_key(decoder)
        nonce = decoder.decode_u64()
        receiver_id = decoder.decode_string()
        block_hash = decoder.decode_fixed_bytes(BLOCK_HASH_LENGTH)
        actions = decoder.decode_vector(lambda: self._decode_action(decoder))
        return Transaction(
            signer_id=signer_id,
            public_key=public_key,
            nonce=nonce,
            receiver_id=receiver_id,
            block_hash=block_hash,
            actions=tuple(actions)
        )

    def _decode_action(self, decoder: BorshDecoder) -> Action:
        tag = decoder.decode_u8()
        if tag not in ACTION_TYPES:
            raise SerializationError(f"Unknown action tag: {tag}")
        return ACTION_TYPES[tag].decode(decoder)

    @staticmethod
    def _ensure_consumed(decoder: BorshDecoder) -> None:
        if not decoder.is_finished():
            raise SerializationError(f"{decoder.remaining_bytes()} trailing bytes after transaction")


class Hasher(Protocol):
    def digest(self, data: bytes) -> bytes:
        ...


class Sha256Hasher:
    """SHA-256, the digest the chain signs and uses as transaction id."""

    digest_size = 32

    def digest(self, data: bytes) -> bytes:
        return hashlib.sha256(data).digest()


DEFAULT_SCHEMA = TransactionSchema()
DEFAULT_HASHER = Sha256Hasher()


def _coerce_block_hash(block_hash: Union[bytes, str]) -> bytes:
    if isinstance(block_hash, str):
        try:
            block_hash = base58.b58decode(block_hash)
        except ValueError as e:
            raise ValidationError(f"block_hash is not valid base58: {e}") from e
    if not isinstance(block_hash, (bytes, bytearray)) or len(block_hash) != BLOCK_HASH_LENGTH:
        size = len(block_hash) if isinstance(block_hash, (bytes, bytearray)) else type(block_hash).__name__
        raise ValidationError(f"block_hash must be {BLOCK_HASH_LENGTH} bytes, got {size}")
    return bytes(block_hash)


def create_transaction(
    signer_id: str,
    public_key: Union[PublicKey, str],
    receiver_id: str,
    nonce: int,
    actions: Sequence[Action],
    block_hash: Union[bytes, str]
) -> Transaction:
    """
    Assemble an unsigned transaction.

    Args:
        signer_id: Account sending the transaction
        public_key: Public key of the access key that will sign
        receiver_id: Account the actions apply to
        nonce: Access key nonce to use (last used nonce + 1)
        actions: One or more actions, executed in order
        block_hash: Recent block hash, raw bytes or base58 string

    Returns:
        Transaction

    Raises:
        ValidationError: If any input is malformed or a numeric field overflows
    """
    validate_account_id(signer_id, "signer_id")
    validate_account_id(receiver_id, "receiver_id")
    check_uint(nonce, U64_MAX, "nonce")

    actions = list(actions or [])
    if not actions:
        raise ValidationError("Transaction must contain at least one action")
    for index, action in enumerate(actions):
        if not isinstance(action, Action):
            raise ValidationError(f"actions[{index}] is not an Action: {type(action).__name__}")
        action.validate()

    return Transaction(
        signer_id=signer_id,
        public_key=PublicKey.from_value(public_key),
        nonce=nonce,
        receiver_id=receiver_id,
        block_hash=_coerce_block_hash(block_hash),
        actions=tuple(actions)
    )


def serialize_transaction(transaction: Transaction, schema: Optional[TransactionSchema] = None) -> bytes:
    return (schema or DEFAULT_SCHEMA).serialize_transaction(transaction)


def hash_transaction(
    transaction: Transaction,
    hasher: Optional[Hasher] = None,
    schema: Optional[TransactionSchema] = None
) -> bytes:
    """Digest of the canonical encoding of ``transaction``"""
    return (hasher or DEFAULT_HASHER).digest(serialize_transaction(transaction, schema))


def transaction_hash(
    transaction: Transaction,
    hasher: Optional[Hasher] = None,
    schema: Optional[TransactionSchema] = None
) -> str:
    return base58.b58encode(hash_transaction(transaction, hasher, schema)).decode("ascii")


def sign_transaction(
    transaction: Transaction,
    signer: Any,
    hasher: Optional[Hasher] = None,
    schema: Optional[TransactionSchema] = None
) -> SignedTransaction:
    """
    Serialize, hash and sign a transaction.

    Args:
        transaction: Unsigned transaction
        signer: Object implementing the ``Signer`` protocol
        hasher: Digest implementation (SHA-256 by default)
        schema: Encoding schema (current Borsh layout by default)

    Returns:
        SignedTransaction

    Raises:
        SigningError: If the signer's key does not match the transaction's
            public key or the signer produces an invalid signature
    """
    if signer.public_key != transaction.public_key:
        raise SigningError(
            f"Signer key {signer.public_key} does not match transaction key {transaction.public_key}"
        )

    digest = hash_transaction(transaction, hasher, schema)
    signature = signer.sign(digest)
    if not isinstance(signature, Signature):
        raise SigningError(f"Signer returned {type(signature).__name__}, expected Signature")

    logger.debug(
        "Signed transaction nonce=%d signer=%s receiver=%s",
        transaction.nonce, transaction.signer_id, transaction.receiver_id
    )
    return SignedTransaction(transaction=transaction, signature=signature)
