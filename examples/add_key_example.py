#!/usr/bin/env python3
"""
Attach a function-call access key to an account.

The new key may only call the given methods on one contract, and spends at
most ``allowance`` yoctoNEAR on fees.
"""
import argparse
import os
import sys

from neartx_sdk import NearClient, NearTxError, function_call_access_key


def main():
    parser = argparse.ArgumentParser(description="Add a limited access key to an account")
    parser.add_argument("public_key", help="Key to add, e.g. ed25519:5TjY...")
    parser.add_argument("--account", required=True, help="Account that receives the key")
    parser.add_argument("--contract", required=True, help="Contract the key may call")
    parser.add_argument("--method", action="append", default=[], help="Allowed method (repeatable)")
    parser.add_argument("--allowance", type=int, default=None, help="Fee allowance in yoctoNEAR")
    parser.add_argument("--network", default="testnet")
    args = parser.parse_args()

    private_key = os.environ.get("NEAR_PRIVATE_KEY")
    if not private_key:
        print("ERROR: NEAR_PRIVATE_KEY environment variable is required")
        return 2

    access_key = function_call_access_key(args.contract, args.method, allowance=args.allowance)

    try:
        with NearClient.from_network(args.network, args.account, private_key=private_key) as client:
            result = client.add_key(args.public_key, access_key)
    except NearTxError as e:
        print(f"Error: {e}")
        return 1

    print(f"Transaction {result.transaction_hash}: {result.status.value}")
    return 0 if result.is_success else 1


if __name__ == "__main__":
    sys.exit(main())
