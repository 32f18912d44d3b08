"""
Command-line entry point: ``neartx send --config tx.json``.

Exit codes:
    0  transaction committed successfully
    1  transaction failed on chain or was rejected by the node
    2  invalid configuration, transaction inputs or key material
    3  RPC endpoint unreachable or timed out
    4  access key not found
"""
import argparse
import json
import logging
import sys
from typing import List, Optional

import pydantic

from .client import NearClient
from .config import TransactionConfig
from .exceptions import (
    NearTxError, NetworkError, NotFoundError, SigningError, ValidationError
)
from .transactions import FunctionCall

EXIT_SUCCESS = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2
EXIT_NETWORK = 3
EXIT_NOT_FOUND = 4

logger = logging.getLogger("neartx_sdk.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neartx",
        description="Sign and broadcast a NEAR transaction.")
    parser.add_argument(
        "--debug",
        help="Enable debug output",
        action="store_true"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    send = subparsers.add_parser("send", help="Send a function call transaction")
    send.add_argument(
        "--config",
        required=True,
        help="Path to a JSON transaction config"
    )
    send.add_argument(
        "--network",
        help="Override the network from the config"
    )
    send.add_argument(
        "--rpc-url",
        help="Override the RPC URL"
    )
    return parser


def _load_config(args: argparse.Namespace) -> TransactionConfig:
    config = TransactionConfig.from_file(args.config)
    overrides = {}
    if args.network:
        overrides["network"] = args.network
    if args.rpc_url:
        overrides["rpc_url"] = args.rpc_url
    if overrides:
        config = TransactionConfig.model_validate({
            **config.model_dump(exclude={"private_key"}),
            "private_key": config.private_key,
            **overrides
        })
    return config


def run_send(args: argparse.Namespace) -> int:
    try:
        config = _load_config(args)
    except (OSError, json.JSONDecodeError, pydantic.ValidationError, ValueError) as e:
        print(f"Invalid config: {e}", file=sys.stderr)
        return EXIT_INVALID

    action = FunctionCall(
        method_name=config.method_name,
        args=config.args,
        gas=config.gas,
        deposit=config.deposit
    )

    try:
        with NearClient.from_config(config) as client:
            result = client.send_transaction(config.receiver_id, [action])
    except NotFoundError as e:
        print(f"Access key not found: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except NetworkError as e:
        print(f"Network error: {e}", file=sys.stderr)
        return EXIT_NETWORK
    except (ValidationError, SigningError, ValueError) as e:
        print(f"Invalid transaction: {e}", file=sys.stderr)
        return EXIT_INVALID
    except NearTxError as e:
        print(f"RPC error: {e}", file=sys.stderr)
        return EXIT_NETWORK

    print(json.dumps(result.model_dump(mode="json"), indent=2))
    if not result.is_success:
        print(f"Transaction failed: {json.dumps(result.failure)}", file=sys.stderr)
        return EXIT_FAILURE
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )

    if args.command == "send":
        return run_send(args)
    parser.error(f"Unknown command: {args.command}")
    return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
