"""
Configuration for the neartx SDK.

``NetworkConfig`` reads the packaged network table; ``TransactionConfig``
holds everything one signing run needs (accounts, call parameters, key).
"""
import importlib.resources
import json
import logging
import os
from pathlib import Path
from typing import Any, ClassVar, Dict, Optional, Union

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from .serializer import U64_MAX, U128_MAX
from .transactions import validate_account_id

logger = logging.getLogger(__name__)

DEFAULT_GAS = 300_000_000_000_000  # 300 Tgas
DEFAULT_TIMEOUT = 30


class NetworkConfig:
    """Lookup of known networks (``networks.json`` shipped with the package)"""

    _networks_cache: ClassVar[Optional[Dict[str, Dict[str, Any]]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load the network table, cached after the first call.

        Returns:
            Mapping of network name to its settings
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("neartx_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get one network's settings.

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network}'. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str) -> str:
        """RPC URL for ``network``; ``NEAR_RPC_URL`` overrides the table"""
        override = os.environ.get("NEAR_RPC_URL")
        if override:
            return override
        return cls.get_network(network)["rpc"]

    @classmethod
    def get_explorer_tx_url(cls, network: str, transaction_hash: str) -> Optional[str]:
        explorer = cls.get_network(network).get("explorer")
        if not explorer:
            return None
        return f"{explorer.rstrip('/')}/txns/{transaction_hash}"


def _env_private_key() -> Optional[SecretStr]:
    value = os.environ.get("NEAR_PRIVATE_KEY")
    return SecretStr(value) if value else None


def _env_timeout() -> int:
    return int(os.environ.get("NEARTX_RPC_TIMEOUT", str(DEFAULT_TIMEOUT)))


class TransactionConfig(BaseModel):
    """
    Inputs for a single function-call transaction.

    The private key defaults to ``NEAR_PRIVATE_KEY`` and is kept as a
    ``SecretStr`` so it never shows up in reprs or logs.
    """
    network: str = "testnet"
    rpc_url: Optional[str] = None
    signer_id: str
    receiver_id: str
    method_name: str
    args: Dict[str, Any] = Field(default_factory=dict)
    gas: int = DEFAULT_GAS
    deposit: int = 0
    private_key: Optional[SecretStr] = Field(default_factory=_env_private_key)
    timeout: int = Field(default_factory=_env_timeout, gt=0)
    retry_count: int = Field(3, ge=1)

    @field_validator("signer_id", "receiver_id")
    @classmethod
    def _check_account_id(cls, value: str, info) -> str:
        return validate_account_id(value, info.field_name)

    @field_validator("method_name")
    @classmethod
    def _check_method_name(cls, value: str) -> str:
        if not value:
            raise ValueError("method_name must not be empty")
        return value

    @field_validator("gas")
    @classmethod
    def _check_gas(cls, value: int) -> int:
        if not (0 <= value <= U64_MAX):
            raise ValueError(f"gas must fit in u64, got {value}")
        return value

    @field_validator("deposit")
    @classmethod
    def _check_deposit(cls, value: int) -> int:
        if not (0 <= value <= U128_MAX):
            raise ValueError(f"deposit must fit in u128, got {value}")
        return value

    @model_validator(mode="after")
    def _check_network(self) -> "TransactionConfig":
        if self.rpc_url is None:
            NetworkConfig.get_network(self.network)
        return self

    def resolve_rpc_url(self) -> str:
        return self.rpc_url or NetworkConfig.get_rpc_url(self.network)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "TransactionConfig":
        """
        Load a config from a JSON file.

        Raises:
            FileNotFoundError: If the file does not exist
            pydantic.ValidationError: If the contents are invalid
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        logger.debug(f"Loaded transaction config from {path}")
        return cls.model_validate(data)
