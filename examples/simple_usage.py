#!/usr/bin/env python3
"""
Simple example of using the neartx SDK.
"""
import os
import json

from neartx_sdk import NearClient, NearTxError, NetworkConfig


def main():
    """
    Call ``claim`` on a contract account.

    This example shows how to:
    1. Initialize the client for a named network
    2. Send a function call (nonce and block hash are fetched automatically)
    3. Tell an on-chain failure apart from success
    """
    # Read configuration from environment
    NETWORK = os.environ.get("NEAR_NETWORK", "testnet")
    SENDER = os.environ.get("NEAR_ACCOUNT_ID")
    RECEIVER = os.environ.get("NEAR_RECEIVER_ID", SENDER)
    CLAIMANT = os.environ.get("NEAR_CLAIMANT_ID")
    PRIVATE_KEY = os.environ.get("NEAR_PRIVATE_KEY")

    # Verify configuration
    if not SENDER or not CLAIMANT:
        print("ERROR: NEAR_ACCOUNT_ID and NEAR_CLAIMANT_ID environment variables are required")
        return

    if not PRIVATE_KEY:
        print("ERROR: NEAR_PRIVATE_KEY environment variable is required")
        return

    with NearClient.from_network(NETWORK, SENDER, private_key=PRIVATE_KEY) as client:
        print(f"Sending from {SENDER} with key {client.public_key}")

        try:
            result = client.function_call(
                RECEIVER,
                "claim",
                {"account_id": CLAIMANT},
                gas=300_000_000_000_000
            )
        except NearTxError as e:
            print(f"Error sending transaction: {e}")
            return

    print(f"Transaction hash: {result.transaction_hash}")
    explorer_url = NetworkConfig.get_explorer_tx_url(NETWORK, result.transaction_hash)
    if explorer_url:
        print(f"Explorer: {explorer_url}")

    if result.is_success:
        print(f"Claimed successfully, return value: {result.success_value!r}")
    elif result.included:
        print(f"Transaction failed on chain: {json.dumps(result.failure, indent=2)}")
    else:
        print(f"Transaction rejected by the node: {json.dumps(result.failure, indent=2)}")


if __name__ == "__main__":
    main()
