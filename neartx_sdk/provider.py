"""
JSON-RPC provider for NEAR nodes.

Wraps a ``requests`` session and maps node responses onto the SDK's error
taxonomy. Only two calls matter for the signing pipeline: the access key
``query`` and the commit-style ``broadcast_tx_commit``.
"""
import base64
import binascii
import itertools
import logging
import os
import time
import urllib.parse
from typing import Any, Dict, List, Optional, Union

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ._rate_limited_log import rate_limited_log
from .exceptions import NetworkError, NotFoundError, RpcError, ValidationError
from .keys import PublicKey
from .models import AccessKeyInfo, BroadcastResult

logger = logging.getLogger(__name__)

NOT_FOUND_CAUSES = {"UNKNOWN_ACCESS_KEY", "UNKNOWN_ACCOUNT"}
VALIDATION_NAMES = {"REQUEST_VALIDATION_ERROR", "PARSE_ERROR"}
TIMEOUT_CAUSES = {"TIMEOUT_ERROR"}
REJECTED_CAUSES = {"INVALID_TRANSACTION"}


def validate_rpc_url(url: str) -> None:
    """
    Require https for remote endpoints.

    Raises:
        ValueError: If the URL is malformed or uses plain http for a
            non-local host and ``NEARTX_ALLOW_INSECURE_RPC`` is not set
    """
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise ValueError(f"Invalid RPC URL: {url!r}")
    is_local = parsed.hostname in ("localhost", "127.0.0.1", "::1")
    if parsed.scheme != "https" and not is_local:
        if os.environ.get("NEARTX_ALLOW_INSECURE_RPC") != "1":
            raise ValueError(
                f"rpc_url must use https:// for security (got: {parsed.scheme}://). "
                "Set NEARTX_ALLOW_INSECURE_RPC=1 to allow http for development."
            )


def _error_names(error: Dict[str, Any]):
    cause = error.get("cause") if isinstance(error.get("cause"), dict) else {}
    return error.get("name"), cause.get("name")


class JsonRpcProvider:
    """
    Blocking JSON-RPC client.

    Connection failures are retried by the transport adapter; HTTP 5xx and
    node-side timeouts are retried here with exponential backoff. Resending
    the same request is safe for both calls this SDK makes: queries are
    read-only and a signed transaction is identified by its hash.
    """

    def __init__(
        self,
        rpc_url: str,
        retry_count: int = 3,
        backoff_factor: float = 0.5,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the provider

        Args:
            rpc_url: Node RPC endpoint (e.g. "https://rpc.testnet.near.org")
            retry_count: Attempts for transient failures
            backoff_factor: Base delay in seconds, doubled on every retry
            timeout: Timeout for each HTTP request in seconds
            session: Optional pre-configured session
            logger: Optional logger instance

        Raises:
            ValueError: If the URL is not acceptable
        """
        validate_rpc_url(rpc_url)
        self.rpc_url = rpc_url
        self.retry_count = max(1, retry_count)
        self.backoff_factor = backoff_factor
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)
        self._ids = itertools.count(1)

        if session is None:
            session = requests.Session()
            retries = Retry(
                total=retry_count,
                connect=retry_count,
                read=0,
                status=0,
                backoff_factor=backoff_factor,
                allowed_methods=["POST"],
                raise_on_status=False
            )
            session.mount("http://", HTTPAdapter(max_retries=retries))
            session.mount("https://", HTTPAdapter(max_retries=retries))
        self.session = session

    def close(self) -> None:
        self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def _backoff(self, attempt: int, reason: str) -> None:
        wait_time = self.backoff_factor * (2 ** (attempt - 1))
        rate_limited_log(
            f"Retrying {self.rpc_url} due to {reason}",
            level="warning",
            logger_instance=self.logger
        )
        self.logger.debug(f"Sleeping {wait_time}s before retry {attempt}")
        time.sleep(wait_time)

    def send_json_rpc(self, method: str, params: Union[List[Any], Dict[str, Any]]) -> Any:
        """
        Call a JSON-RPC method and return its ``result``.

        Args:
            method: RPC method name
            params: Positional or named parameters

        Returns:
            The ``result`` member of the response

        Raises:
            NetworkError: On transport failure, 5xx, or node timeout after retries
            NotFoundError: If the node reports an unknown account or access key
            ValidationError: If the node cannot parse the request
            RpcError: For any other error object
        """
        request_id = next(self._ids)
        body = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params}
        attempt = 0

        while True:
            attempt += 1
            try:
                response = self.session.post(self.rpc_url, json=body, timeout=self.timeout)
            except requests.Timeout as e:
                if attempt < self.retry_count:
                    self._backoff(attempt, f"request timeout: {e}")
                    continue
                self.logger.error(f"RPC {method} timed out: {e}")
                raise NetworkError(f"RPC request timed out: {e}") from e
            except requests.RequestException as e:
                self.logger.error(f"RPC {method} request failed: {e}")
                raise NetworkError(f"RPC endpoint unreachable: {e}") from e

            if response.status_code >= 500:
                if attempt < self.retry_count:
                    self._backoff(attempt, f"server error: {response.status_code}")
                    continue
                raise NetworkError(
                    f"RPC endpoint returned HTTP {response.status_code} after {attempt} attempts"
                )

            try:
                payload = response.json()
            except ValueError as e:
                raise RpcError(
                    f"Invalid JSON-RPC response (HTTP {response.status_code}): {e}"
                ) from e

            if not isinstance(payload, dict):
                raise RpcError(f"Invalid JSON-RPC response: {payload!r}")

            error = payload.get("error")
            if error is None:
                if "result" not in payload:
                    raise RpcError(f"JSON-RPC response has neither result nor error: {payload}")
                return payload["result"]

            if not isinstance(error, dict):
                error = {"message": str(error)}

            _, cause = _error_names(error)
            if cause in TIMEOUT_CAUSES or response.status_code == 408:
                if attempt < self.retry_count:
                    self._backoff(attempt, "node timeout")
                    continue
                raise NetworkError(f"Node timed out processing {method}: {error.get('message', error)}")

            self._raise_for_error(method, error)

    def _raise_for_error(self, method: str, error: Dict[str, Any]) -> None:
        name, cause = _error_names(error)
        detail = f"{method}: {name}/{cause} {error.get('data') or error.get('message') or ''}".strip()

        if cause in NOT_FOUND_CAUSES:
            raise NotFoundError(detail)
        if name in VALIDATION_NAMES or cause in VALIDATION_NAMES or error.get("code") == -32700:
            raise ValidationError(detail)
        raise RpcError(detail, name=name, cause=cause, data=error)

    def query(self, path: str, data: str = "") -> Dict[str, Any]:
        """Legacy path-style ``query`` (e.g. ``access_key/<account>/<key>``)"""
        return self.send_json_rpc("query", [path, data])

    def view_access_key(self, account_id: str, public_key: Union[PublicKey, str]) -> AccessKeyInfo:
        """
        Fetch the nonce and a recent block hash for an access key.

        Raises:
            NotFoundError: If the account has no such key
            NetworkError: If the node cannot be reached
        """
        key = PublicKey.from_value(public_key).to_string()
        result = self.query(f"access_key/{account_id}/{key}")

        # Older nodes report a missing key inside an otherwise successful result
        if isinstance(result, dict) and "error" in result:
            raise NotFoundError(f"Access key {key} not found for {account_id}: {result['error']}")
        if not isinstance(result, dict) or "nonce" not in result or "block_hash" not in result:
            raise RpcError(f"Unexpected access key response: {result!r}")

        info = AccessKeyInfo.model_validate(result)
        self.logger.debug(f"Access key {account_id}/{key} nonce={info.nonce} block={info.block_hash}")
        return info

    def block(self, finality: str = "final") -> Dict[str, Any]:
        return self.send_json_rpc("block", {"finality": finality})

    def broadcast_tx_commit(self, signed_tx_base64: str, transaction_hash: Optional[str] = None) -> BroadcastResult:
        """
        Submit a signed transaction and wait for its execution outcome.

        Args:
            signed_tx_base64: Base64 of the Borsh-encoded signed transaction
            transaction_hash: Hash to report if the node rejects the transaction

        Returns:
            BroadcastResult (an on-chain failure or a rejection is a value,
            not an exception)

        Raises:
            ValidationError: If the payload is not valid base64
            NetworkError: On transport failure or node timeout after retries
        """
        if not isinstance(signed_tx_base64, str) or not signed_tx_base64:
            raise ValidationError("Signed transaction payload must be a non-empty base64 string")
        try:
            base64.b64decode(signed_tx_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(f"Signed transaction payload is not valid base64: {e}") from e

        self.logger.debug(f"Broadcasting signed transaction [{len(signed_tx_base64)} chars]")
        try:
            outcome = self.send_json_rpc("broadcast_tx_commit", [signed_tx_base64])
        except RpcError as e:
            error_data = e.data.get("data")
            if e.cause in REJECTED_CAUSES or (isinstance(error_data, dict) and "TxExecutionError" in error_data):
                self.logger.info(f"Transaction rejected by node: {e.data.get('data') or e.cause}")
                return BroadcastResult.rejected(e.data, transaction_hash=transaction_hash)
            raise

        if not isinstance(outcome, dict):
            raise RpcError(f"Unexpected broadcast response: {outcome!r}")
        return BroadcastResult.from_outcome(outcome)

    def tx_status(self, transaction_hash: str, sender_id: str) -> BroadcastResult:
        """
        Look up the final outcome of an earlier transaction.

        Raises:
            RpcError: If the node does not know the transaction
        """
        outcome = self.send_json_rpc("tx", [transaction_hash, sender_id])
        if not isinstance(outcome, dict):
            raise RpcError(f"Unexpected tx status response: {outcome!r}")
        return BroadcastResult.from_outcome(outcome)
