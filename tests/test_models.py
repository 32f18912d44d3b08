"""
Tests for the result and access key models.
"""
import base64

import pytest
from pydantic import ValidationError as PydanticValidationError

from neartx_sdk.models import AccessKeyInfo, BroadcastResult, TxStatus

from tests.test_helpers import (
    RECENT_BLOCK_HASH, access_key_result, failure_outcome, invalid_nonce_error,
    success_outcome
)


def test_access_key_info():
    info = AccessKeyInfo.model_validate(access_key_result(nonce=3))
    assert info.next_nonce == 4
    assert info.block_hash_bytes == RECENT_BLOCK_HASH
    assert info.block_height == 123456


def test_access_key_negative_nonce():
    with pytest.raises(PydanticValidationError):
        AccessKeyInfo(nonce=-1, block_hash="x")


def test_success_value_decoded():
    result = BroadcastResult.from_outcome(success_outcome("H", b"42"))
    assert result.status == TxStatus.SUCCESS
    assert result.success_value == b"42"
    assert result.failure is None


def test_success_receipt_id_is_success():
    outcome = success_outcome("H")
    outcome["status"] = {"SuccessReceiptId": "R1"}
    result = BroadcastResult.from_outcome(outcome)
    assert result.is_success
    assert result.success_value is None


def test_failure_outcome():
    result = BroadcastResult.from_outcome(failure_outcome("H"))
    assert result.status == TxStatus.FAILURE
    assert result.included
    assert result.transaction_hash == "H"


def test_non_final_status_is_not_success():
    outcome = success_outcome("H")
    outcome["status"] = "Started"
    result = BroadcastResult.from_outcome(outcome)
    assert result.status == TxStatus.FAILURE
    assert result.failure == {"status": "Started"}


def test_hash_falls_back_to_transaction_hash():
    outcome = success_outcome("H")
    del outcome["transaction_outcome"]
    assert BroadcastResult.from_outcome(outcome).transaction_hash == "H"


def test_rejected():
    error = invalid_nonce_error()["error"]
    result = BroadcastResult.rejected(error, transaction_hash="H")
    assert not result.included
    assert result.failure == error["data"]
    assert result.payload == error


def test_rejected_without_data_keeps_error():
    error = {"name": "HANDLER_ERROR", "cause": {"name": "INVALID_TRANSACTION"}}
    assert BroadcastResult.rejected(error).failure == error


def test_json_dump():
    result = BroadcastResult.from_outcome(success_outcome("H", b"x"))
    dumped = result.model_dump(mode="json")
    assert dumped["status"] == "Success"
    assert dumped["payload"]["status"]["SuccessValue"] == base64.b64encode(b"x").decode("ascii")
