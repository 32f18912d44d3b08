"""
Property-based tests for transaction encoding and signing.

These tests verify that properties hold true across many random inputs.
"""
import hashlib

from hypothesis import given, settings, strategies as st

from neartx_sdk.keys import KeyPair
from neartx_sdk.serializer import BorshDecoder, BorshEncoder, U64_MAX, U128_MAX
from neartx_sdk.signer.local import LocalSigner
from neartx_sdk.transactions import (
    FunctionCall, SignedTransaction, Transfer, create_transaction,
    hash_transaction, serialize_transaction, sign_transaction
)

# Account ids that satisfy the chain's naming rules
account_strategy = st.from_regex(r"[a-z0-9]{2,20}(\.[a-z0-9]{2,10}){0,2}", fullmatch=True)
seed_strategy = st.binary(min_size=32, max_size=32)
nonce_strategy = st.integers(min_value=0, max_value=U64_MAX)
gas_strategy = st.integers(min_value=0, max_value=U64_MAX)
deposit_strategy = st.integers(min_value=0, max_value=U128_MAX)
args_strategy = st.dictionaries(
    keys=st.text(min_size=1, max_size=20),
    values=st.one_of(st.text(max_size=50), st.integers(-10**6, 10**6), st.booleans()),
    max_size=5
)
method_strategy = st.text(
    min_size=1, max_size=30,
    alphabet=st.characters(whitelist_categories=("Ll", "Lu", "Nd"), whitelist_characters="_")
)


def _transaction(seed, signer_id, receiver_id, nonce, method, args, gas, deposit):
    return create_transaction(
        signer_id=signer_id,
        public_key=KeyPair.from_seed(seed).public_key,
        receiver_id=receiver_id,
        nonce=nonce,
        actions=[FunctionCall(method_name=method, args=args, gas=gas, deposit=deposit)],
        block_hash=hashlib.sha256(seed).digest()
    )


@settings(max_examples=50)
@given(
    seed=seed_strategy,
    signer_id=account_strategy,
    receiver_id=account_strategy,
    nonce=nonce_strategy,
    method=method_strategy,
    args=args_strategy,
    gas=gas_strategy,
    deposit=deposit_strategy
)
def test_encoding_is_deterministic_and_signature_verifies(
    seed, signer_id, receiver_id, nonce, method, args, gas, deposit
):
    tx = _transaction(seed, signer_id, receiver_id, nonce, method, args, gas, deposit)
    again = _transaction(seed, signer_id, receiver_id, nonce, method, args, gas, deposit)

    assert serialize_transaction(tx) == serialize_transaction(again)
    assert hash_transaction(tx) == hashlib.sha256(serialize_transaction(tx)).digest()

    signed = sign_transaction(tx, LocalSigner(KeyPair.from_seed(seed)))
    assert signed.verify()

    decoded = SignedTransaction.decode(signed.encode())
    assert decoded.encode() == signed.encode()
    assert decoded.transaction.nonce == nonce
    assert decoded.transaction.actions[0].gas == gas
    assert decoded.transaction.actions[0].deposit == deposit


@settings(max_examples=50)
@given(seed=seed_strategy, first=deposit_strategy, second=deposit_strategy)
def test_distinct_transactions_have_distinct_hashes(seed, first, second):
    public_key = KeyPair.from_seed(seed).public_key
    block_hash = bytes(32)

    def build(deposit):
        return create_transaction("a.test", public_key, "b.test", 1, [Transfer(deposit=deposit)], block_hash)

    if first == second:
        assert hash_transaction(build(first)) == hash_transaction(build(second))
    else:
        assert hash_transaction(build(first)) != hash_transaction(build(second))


@given(value=st.integers(min_value=0, max_value=U128_MAX))
def test_u128_round_trip(value):
    data = BorshEncoder().encode_u128(value).to_bytes()
    assert len(data) == 16
    assert BorshDecoder(data).decode_u128() == value


@given(text=st.text(max_size=200))
def test_string_length_prefix_counts_utf8_bytes(text):
    data = BorshEncoder().encode_string(text).to_bytes()
    encoded = text.encode("utf-8")
    assert int.from_bytes(data[:4], "little") == len(encoded)
    assert data[4:] == encoded
