"""
Pytest fixtures for the Smart Account SDK tests.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from smart_account_sdk._rate_limited_log import reset_rate_limits
from smart_account_sdk.config import DeploymentConfig, NetworkConfig
from smart_account_sdk.models import SmartAccountIdentity
from smart_account_sdk.signer import LocalSigner
from smart_account_sdk.utils import compute_salt, normalize_address

# Well-known development key, never holds funds
TEST_PRIV_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
OWNER = normalize_address("0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266")

TEST_CHAIN_ID = 11124
TEST_RPC_URL = "https://rpc.example.com"
FACTORY = normalize_address("0x00a24Fe53755256c07E6e36Ffff1Efa53F9f7C06")
VALIDATOR = normalize_address("0xF42488Ef821f39858AB71a70F8C1485a2A45AE7A")
BATCH_CALLER = normalize_address("0x4444444444444444444444444444444444444444")
SMART_ACCOUNT = normalize_address("0x1111111111111111111111111111111111111111")
RECIPIENT = normalize_address("0x2222222222222222222222222222222222222222")
TOKEN = normalize_address("0x3333333333333333333333333333333333333333")

TEST_TX_HASH = bytes.fromhex("ab" * 32)
ESTIMATED_GAS = 500_000
ESTIMATED_MAX_FEE = 25_000_000
ESTIMATED_PRIORITY_FEE = 100
DEPLOYED_CODE = bytes.fromhex("6080604052")


class AwaitableValue:
    """Stands in for awaitable properties such as ``AsyncWeb3.eth.chain_id``."""

    def __init__(self, value):
        self.value = value

    def __await__(self):
        async def _resolve():
            if isinstance(self.value, BaseException):
                raise self.value
            return self.value
        return _resolve().__await__()


def make_identity(owner=OWNER, derived=SMART_ACCOUNT):
    return SmartAccountIdentity(owner_address=owner, salt=compute_salt(owner), derived_address=derived)


def rpc_responder(gas=ESTIMATED_GAS, max_fee=ESTIMATED_MAX_FEE, priority=ESTIMATED_PRIORITY_FEE):
    """Fake provider.make_request answering the zkSync estimation methods."""

    async def _make_request(method, params):
        if method == "eth_estimateGas":
            return {"jsonrpc": "2.0", "id": 1, "result": hex(gas)}
        if method == "zks_estimateFee":
            return {
                "jsonrpc": "2.0",
                "id": 1,
                "result": {
                    "gas_limit": hex(gas),
                    "gas_per_pubdata_limit": hex(50_000),
                    "max_fee_per_gas": hex(max_fee),
                    "max_priority_fee_per_gas": hex(priority),
                },
            }
        return {"jsonrpc": "2.0", "id": 1, "error": {"code": -32601, "message": f"unknown method {method}"}}

    return _make_request


@pytest.fixture(autouse=True)
def _reset_shared_state():
    """Clear module-level caches so tests stay independent."""
    reset_rate_limits()
    NetworkConfig._networks_cache = None
    yield
    reset_rate_limits()
    NetworkConfig._networks_cache = None


@pytest.fixture
def config():
    return DeploymentConfig(
        chain_id=TEST_CHAIN_ID,
        factory_address=FACTORY,
        validator_address=VALIDATOR,
        batch_caller_address=BATCH_CALLER,
        rpc_url=TEST_RPC_URL,
    )


@pytest.fixture
def config_without_batch_caller(config):
    return config.model_copy(update={"batch_caller_address": None})


@pytest.fixture
def identity():
    return make_identity()


@pytest.fixture
def local_signer():
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def mock_w3():
    """
    AsyncWeb3 stand-in with an undeployed account and healthy RPC answers.

    Tests flip individual behaviours (deployed code, failing reads) by
    reassigning the AsyncMocks.
    """
    w3 = MagicMock()
    w3.eth.chain_id = AwaitableValue(TEST_CHAIN_ID)
    w3.eth.get_code = AsyncMock(return_value=b"")
    w3.eth.get_transaction_count = AsyncMock(return_value=3)
    w3.eth.send_raw_transaction = AsyncMock(return_value=TEST_TX_HASH)
    w3.eth.wait_for_transaction_receipt = AsyncMock(return_value={
        "transactionHash": TEST_TX_HASH,
        "blockNumber": 42,
        "blockHash": bytes.fromhex("cd" * 32),
        "status": 1,
        "gasUsed": 210_000,
        "from": SMART_ACCOUNT,
        "to": RECIPIENT,
        "logs": [],
    })
    w3.provider.make_request = AsyncMock(side_effect=rpc_responder())

    factory = w3.eth.contract.return_value
    factory.functions.getAddressForSalt.return_value.call = AsyncMock(return_value=SMART_ACCOUNT)
    return w3
