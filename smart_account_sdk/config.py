"""
Network and deployment configuration for the Smart Account SDK.

Contract addresses are per-deployment configuration. They are bundled for
known networks in ``networks.json`` and can be overridden per field through
environment variables named ``<NETWORK>_<FIELD>``, e.g.
``ABSTRACT_TESTNET_BATCH_CALLER_ADDRESS``.
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import ConfigurationError
from .models import DEFAULT_GAS_PER_PUBDATA, Address

logger = logging.getLogger(__name__)

DEFAULT_SIGN_MESSAGE_DETAILS = "You are signing a hash of your transaction"


def _env_prefix(network_name: str) -> str:
    return network_name.upper().replace("-", "_")


class NetworkConfig:
    """Access to the bundled network definitions."""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load network definitions from the bundled networks.json.

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("smart_account_sdk").joinpath("networks.json")
            with resource.open("r", encoding="utf-8") as f:
                cls._networks_cache = json.load(f)
            logger.debug("Loaded %d network definitions", len(cls._networks_cache))
        return cls._networks_cache

    @classmethod
    def get_network(cls, network_name: str) -> Dict[str, Any]:
        """
        Raises:
            ValueError: If the network is not defined
        """
        networks = cls.load_networks()
        if network_name not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network '{network_name}'. Available networks: {available}")
        return networks[network_name]

    @classmethod
    def get_rpc_url(cls, network_name: str, override: Optional[str] = None) -> str:
        """
        Resolve the RPC URL: explicit override, then ``<NETWORK>_RPC_URL``, then the file.
        """
        if override:
            return override
        env_url = os.environ.get(f"{_env_prefix(network_name)}_RPC_URL")
        if env_url:
            return env_url
        return cls.get_network(network_name)["rpc"]

    @classmethod
    def get_chain_id(cls, network_name: str) -> int:
        return int(cls.get_network(network_name)["chainId"])

    @classmethod
    def get_contract_address(cls, network_name: str, key: str, env_suffix: str) -> Optional[str]:
        """Look up a contract address, preferring the ``<NETWORK>_<SUFFIX>`` env var."""
        env_value = os.environ.get(f"{_env_prefix(network_name)}_{env_suffix}")
        if env_value:
            return env_value
        return cls.get_network(network_name).get(key)


class DeploymentConfig(BaseModel):
    """
    Addresses and chain parameters for one smart-account deployment.

    Passed explicitly into every pipeline component; nothing in the pipeline
    reads module-level address constants.
    """
    model_config = ConfigDict(frozen=True)

    chain_id: int = Field(..., gt=0)
    factory_address: Address
    validator_address: Address
    batch_caller_address: Optional[Address] = None
    rpc_url: Optional[str] = None
    gas_per_pubdata: int = Field(DEFAULT_GAS_PER_PUBDATA, gt=0)
    sign_message_details: str = DEFAULT_SIGN_MESSAGE_DETAILS

    @classmethod
    def from_network(cls, network_name: str, **overrides: Any) -> "DeploymentConfig":
        """
        Build a configuration from a bundled network definition.

        Args:
            network_name: Name of a network in networks.json
            **overrides: Field values that take precedence over file and env

        Raises:
            ValueError: If the network is unknown
            ConfigurationError: If the factory or validator address is missing
        """
        values: Dict[str, Any] = {
            "chain_id": NetworkConfig.get_chain_id(network_name),
            "rpc_url": NetworkConfig.get_rpc_url(network_name, overrides.pop("rpc_url", None)),
            "factory_address": NetworkConfig.get_contract_address(
                network_name, "accountFactory", "FACTORY_ADDRESS"
            ),
            "validator_address": NetworkConfig.get_contract_address(
                network_name, "validator", "VALIDATOR_ADDRESS"
            ),
            "batch_caller_address": NetworkConfig.get_contract_address(
                network_name, "batchCaller", "BATCH_CALLER_ADDRESS"
            ),
        }
        values.update(overrides)

        for required in ("factory_address", "validator_address"):
            if not values.get(required):
                raise ConfigurationError(f"Network '{network_name}' has no {required} configured")
        return cls(**values)

    def require_batch_caller(self) -> str:
        """
        Raises:
            ConfigurationError: If no batch caller contract is configured
        """
        if not self.batch_caller_address:
            raise ConfigurationError(
                "Batching calls requires a batch caller contract; set batch_caller_address"
            )
        return self.batch_caller_address
