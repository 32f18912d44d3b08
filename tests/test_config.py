"""
Tests for NetworkConfig and TransactionConfig.
"""
import json
from unittest.mock import patch

import pydantic
import pytest

from neartx_sdk.config import DEFAULT_GAS, NetworkConfig, TransactionConfig
from neartx_sdk.serializer import U64_MAX, U128_MAX

from tests.test_helpers import TEST_ACCOUNT, TEST_RECEIVER, make_key_pair

# Sample network configuration
MOCK_NETWORKS = {
    "test-network": {
        "networkId": "test-network",
        "rpc": "https://test.example.com",
        "explorer": "https://explorer.example.com/"
    },
    "quiet-network": {
        "networkId": "quiet-network",
        "rpc": "https://quiet.example.com",
        "explorer": None
    }
}


class TestNetworkConfig:
    """Test NetworkConfig class."""

    def test_packaged_networks(self):
        networks = NetworkConfig.load_networks()
        assert {"mainnet", "testnet", "localnet"} <= set(networks)
        assert networks["testnet"]["rpc"] == "https://rpc.testnet.near.org"

    def test_load_networks_cached(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS

        with patch("importlib.resources.files") as mock_files:
            result = NetworkConfig.load_networks()
            mock_files.assert_not_called()

        assert result == MOCK_NETWORKS

    def test_get_network_not_found(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS

        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("non-existent-network")

        assert "test-network" in str(exc_info.value)

    def test_get_rpc_url_default(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_rpc_url("test-network") == "https://test.example.com"

    def test_get_rpc_url_env_override(self, monkeypatch):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        monkeypatch.setenv("NEAR_RPC_URL", "https://override.example.com")
        assert NetworkConfig.get_rpc_url("test-network") == "https://override.example.com"

    def test_explorer_tx_url(self):
        NetworkConfig._networks_cache = MOCK_NETWORKS
        assert NetworkConfig.get_explorer_tx_url("test-network", "Abc") == "https://explorer.example.com/txns/Abc"
        assert NetworkConfig.get_explorer_tx_url("quiet-network", "Abc") is None


def _config(**overrides):
    data = {
        "signer_id": TEST_ACCOUNT,
        "receiver_id": TEST_RECEIVER,
        "method_name": "claim",
        "args": {"account_id": TEST_RECEIVER},
    }
    data.update(overrides)
    return TransactionConfig(**data)


class TestTransactionConfig:

    def test_defaults(self):
        config = _config()
        assert config.network == "testnet"
        assert config.gas == DEFAULT_GAS
        assert config.deposit == 0
        assert config.private_key is None
        assert config.timeout == 30
        assert config.resolve_rpc_url() == "https://rpc.testnet.near.org"

    def test_private_key_from_env_is_secret(self, monkeypatch):
        secret = make_key_pair().to_string()
        monkeypatch.setenv("NEAR_PRIVATE_KEY", secret)

        config = _config()

        assert config.private_key.get_secret_value() == secret
        assert secret not in repr(config)
        assert secret not in str(config.model_dump())

    def test_timeout_from_env(self, monkeypatch):
        monkeypatch.setenv("NEARTX_RPC_TIMEOUT", "7")
        assert _config().timeout == 7

    def test_explicit_rpc_url_wins(self):
        assert _config(rpc_url="https://node.example.com").resolve_rpc_url() == "https://node.example.com"

    @pytest.mark.parametrize("overrides", [
        {"signer_id": "Bad Account"},
        {"receiver_id": ""},
        {"method_name": ""},
        {"gas": U64_MAX + 1},
        {"gas": -1},
        {"deposit": U128_MAX + 1},
        {"timeout": 0},
        {"retry_count": 0},
        {"network": "devnet"},
    ])
    def test_invalid(self, overrides):
        with pytest.raises(pydantic.ValidationError):
            _config(**overrides)

    def test_unknown_network_allowed_with_rpc_url(self):
        config = _config(network="devnet", rpc_url="https://node.example.com")
        assert config.resolve_rpc_url() == "https://node.example.com"

    def test_from_file(self, tmp_path):
        path = tmp_path / "tx.json"
        path.write_text(json.dumps({
            "signer_id": TEST_ACCOUNT,
            "receiver_id": TEST_RECEIVER,
            "method_name": "claim",
            "args": {"account_id": TEST_RECEIVER},
            "deposit": 10**24,
        }))

        config = TransactionConfig.from_file(path)

        assert config.deposit == 10**24
        assert config.args == {"account_id": TEST_RECEIVER}

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            TransactionConfig.from_file(tmp_path / "missing.json")
