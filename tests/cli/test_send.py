"""
Tests for the ``neartx send`` command.
"""
import json

import pytest
import requests

from neartx_sdk import cli

from tests.test_helpers import (
    TEST_ACCOUNT, TEST_RECEIVER, TEST_RPC_URL, access_key_result,
    failure_outcome, invalid_nonce_error, make_key_pair, rpc_error,
    rpc_result, success_outcome
)


@pytest.fixture
def config_file(tmp_path, monkeypatch):
    monkeypatch.setenv("NEAR_PRIVATE_KEY", make_key_pair().to_string())
    path = tmp_path / "tx.json"
    path.write_text(json.dumps({
        "rpc_url": TEST_RPC_URL,
        "signer_id": TEST_ACCOUNT,
        "receiver_id": TEST_RECEIVER,
        "method_name": "claim",
        "args": {"account_id": TEST_RECEIVER},
    }))
    return path


def _node(broadcast_response):
    def respond(request, context):
        body = request.json()
        if body["method"] == "query":
            return rpc_result(access_key_result())
        return broadcast_response
    return respond


def test_success(config_file, requests_mock, capsys):
    requests_mock.post(TEST_RPC_URL, json=_node(rpc_result(success_outcome("HashOk"))))

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_SUCCESS

    output = json.loads(capsys.readouterr().out)
    assert output["status"] == "Success"
    assert output["transaction_hash"] == "HashOk"
    assert output["included"] is True


def test_on_chain_failure(config_file, requests_mock, capsys):
    requests_mock.post(TEST_RPC_URL, json=_node(rpc_result(failure_outcome())))

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_FAILURE
    assert "Transaction failed" in capsys.readouterr().err


def test_rejected_by_node(config_file, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=_node(invalid_nonce_error()))

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_FAILURE


def test_access_key_not_found(config_file, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_error("HANDLER_ERROR", "UNKNOWN_ACCESS_KEY"))

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_NOT_FOUND


def test_network_unreachable(config_file, requests_mock, capsys):
    requests_mock.post(TEST_RPC_URL, exc=requests.ConnectionError("refused"))

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_NETWORK
    assert "Network error" in capsys.readouterr().err


def test_unexpected_rpc_error(config_file, requests_mock):
    requests_mock.post(TEST_RPC_URL, json=rpc_error("HANDLER_ERROR", "INTERNAL_ERROR"))

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_NETWORK


def test_missing_private_key(config_file, monkeypatch, requests_mock):
    monkeypatch.delenv("NEAR_PRIVATE_KEY")

    assert cli.main(["send", "--config", str(config_file)]) == cli.EXIT_INVALID
    assert requests_mock.call_count == 0


def test_missing_config(tmp_path):
    assert cli.main(["send", "--config", str(tmp_path / "nope.json")]) == cli.EXIT_INVALID


def test_invalid_config(tmp_path, capsys):
    path = tmp_path / "tx.json"
    path.write_text(json.dumps({"signer_id": "Bad Account", "receiver_id": TEST_RECEIVER, "method_name": "claim"}))

    assert cli.main(["send", "--config", str(path)]) == cli.EXIT_INVALID
    assert "Invalid config" in capsys.readouterr().err


def test_rpc_url_override(config_file, requests_mock):
    override = "https://other.example.com"
    requests_mock.post(override, json=_node(rpc_result(success_outcome())))

    assert cli.main(["send", "--config", str(config_file), "--rpc-url", override]) == cli.EXIT_SUCCESS
    assert requests_mock.last_request.url.startswith(override)


def test_override_keeps_private_key(config_file):
    args = cli.build_parser().parse_args(["send", "--config", str(config_file), "--network", "mainnet"])

    config = cli._load_config(args)

    assert config.network == "mainnet"
    assert config.private_key.get_secret_value() == make_key_pair().to_string()


def test_command_required():
    with pytest.raises(SystemExit):
        cli.main([])
