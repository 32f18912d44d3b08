"""
Pytest fixtures for the neartx SDK tests.
"""
import time

import pytest

from neartx_sdk import _rate_limited_log
from neartx_sdk.config import NetworkConfig
from neartx_sdk.signer.local import LocalSigner
from neartx_sdk.transactions import FunctionCall, create_transaction

from tests.test_helpers import (
    TEST_ACCOUNT, TEST_GAS, TEST_RECEIVER, ZERO_BLOCK_HASH, make_key_pair
)


# Make time.sleep instantaneous so retries don't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _reset_shared_state(monkeypatch):
    """Keep rate-limit caches, the network cache and env overrides from leaking between tests"""
    _rate_limited_log.reset_rate_limits()
    NetworkConfig._networks_cache = None
    for name in ("NEAR_RPC_URL", "NEAR_PRIVATE_KEY", "NEARTX_RPC_TIMEOUT", "NEARTX_ALLOW_INSECURE_RPC"):
        monkeypatch.delenv(name, raising=False)
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def key_pair():
    return make_key_pair()


@pytest.fixture
def signer(key_pair):
    return LocalSigner(key_pair)


@pytest.fixture
def claim_action():
    """The claim call used throughout the suite"""
    return FunctionCall(
        method_name="claim",
        args={"account_id": TEST_RECEIVER},
        gas=TEST_GAS,
        deposit=0
    )


@pytest.fixture
def sample_transaction(key_pair, claim_action):
    return create_transaction(
        signer_id=TEST_ACCOUNT,
        public_key=key_pair.public_key,
        receiver_id=TEST_ACCOUNT,
        nonce=5,
        actions=[claim_action],
        block_hash=ZERO_BLOCK_HASH
    )
