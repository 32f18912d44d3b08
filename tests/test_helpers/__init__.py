from .client_creator import (
    TEST_ACCOUNT, TEST_GAS, TEST_RECEIVER, TEST_RPC_URL, TEST_SEED,
    RECENT_BLOCK_HASH, RECENT_BLOCK_HASH_B58, ZERO_BLOCK_HASH, ZERO_BLOCK_HASH_B58,
    access_key_result, create_test_client, failure_outcome, invalid_nonce_error,
    rpc_error, rpc_result, success_outcome, make_key_pair
)
