"""
ABI encoding for smart account, factory and batch caller calls.
"""
import logging
from typing import List, Sequence, Tuple

from eth_abi import decode, encode
from eth_utils import function_signature_to_4byte_selector

from .config import DeploymentConfig
from .models import Call
from .utils import normalize_address

logger = logging.getLogger(__name__)

CALL_TUPLE = "(address,bool,uint256,bytes)"

BATCH_CALL_SIGNATURE = f"batchCall({CALL_TUPLE}[])"
INITIALIZE_SIGNATURE = f"initialize(address,address,bytes[],{CALL_TUPLE})"
DEPLOY_ACCOUNT_SIGNATURE = "deployAccount(bytes32,bytes)"

BATCH_CALL_SELECTOR = function_signature_to_4byte_selector(BATCH_CALL_SIGNATURE)
INITIALIZE_SELECTOR = function_signature_to_4byte_selector(INITIALIZE_SIGNATURE)
DEPLOY_ACCOUNT_SELECTOR = function_signature_to_4byte_selector(DEPLOY_ACCOUNT_SIGNATURE)

# ABI for the account factory contract
ACCOUNT_FACTORY_ABI = [
    {
        "inputs": [
            {"internalType": "bytes32", "name": "salt", "type": "bytes32"}
        ],
        "name": "getAddressForSalt",
        "outputs": [{"internalType": "address", "name": "", "type": "address"}],
        "stateMutability": "view",
        "type": "function"
    },
    {
        "inputs": [
            {"internalType": "bytes32", "name": "salt", "type": "bytes32"},
            {"internalType": "bytes", "name": "initializer", "type": "bytes"}
        ],
        "name": "deployAccount",
        "outputs": [{"internalType": "address", "name": "accountAddress", "type": "address"}],
        "stateMutability": "payable",
        "type": "function"
    }
]


def _strict(call: Call) -> Call:
    # A failing sub-call always aborts the whole batch
    if call.allow_failure:
        return call.model_copy(update={"allow_failure": False})
    return call


class CallEncoder:
    """Encodes calls into call data for the account, factory and batch caller."""

    def __init__(self, config: DeploymentConfig):
        self.config = config

    def encode_single(self, call: Call) -> bytes:
        """Call data for invoking ``call.target`` directly: the caller's own ABI encoding."""
        return bytes(call.call_data)

    def encode_batch(self, calls: Sequence[Call]) -> bytes:
        """
        Encode ``batchCall(calls)`` for the batch caller contract.

        Raises:
            ValueError: If ``calls`` is empty
        """
        if not calls:
            raise ValueError("No calls provided")
        tuples = [_strict(call).as_abi_tuple() for call in calls]
        return BATCH_CALL_SELECTOR + encode([f"{CALL_TUPLE}[]"], [tuples])

    def inner_call(self, calls: Sequence[Call]) -> Call:
        """
        The call the account executes during initialization.

        A single call is embedded as-is; several calls are wrapped in one
        ``batchCall`` to the batch caller, funded with their total value.
        """
        if not calls:
            raise ValueError("No calls provided")
        if len(calls) == 1:
            return _strict(calls[0])
        return Call(
            target=self.config.require_batch_caller(),
            allow_failure=False,
            value=sum(call.value for call in calls),
            call_data=self.encode_batch(calls),
        )

    def encode_initializer(self, owner_address: str, validator_address: str, inner_call: Call) -> bytes:
        """Encode ``initialize(owner, validator, [], initCall)`` for the smart account."""
        args = [
            normalize_address(owner_address),
            normalize_address(validator_address),
            [],
            _strict(inner_call).as_abi_tuple(),
        ]
        return INITIALIZE_SELECTOR + encode(["address", "address", "bytes[]", CALL_TUPLE], args)

    def encode_deploy_account(self, salt: bytes, initializer: bytes) -> bytes:
        """Encode ``deployAccount(salt, initializer)`` for the account factory."""
        if len(salt) != 32:
            raise ValueError(f"Salt must be 32 bytes, got {len(salt)}")
        return DEPLOY_ACCOUNT_SELECTOR + encode(["bytes32", "bytes"], [salt, initializer])


def _split_selector(data: bytes, selector: bytes, name: str) -> bytes:
    if data[:4] != selector:
        raise ValueError(f"Call data is not a {name} call")
    return data[4:]


def decode_batch(data: bytes) -> List[Call]:
    """Decode ``batchCall`` call data back into calls."""
    (tuples,) = decode([f"{CALL_TUPLE}[]"], _split_selector(data, BATCH_CALL_SELECTOR, "batchCall"))
    return [
        Call(target=target, allow_failure=allow_failure, value=value, call_data=call_data)
        for target, allow_failure, value, call_data in tuples
    ]


def decode_initializer(data: bytes) -> Tuple[str, str, List[bytes], Call]:
    """Decode ``initialize`` call data into (owner, validator, modules, init_call)."""
    owner, validator, modules, (target, allow_failure, value, call_data) = decode(
        ["address", "address", "bytes[]", CALL_TUPLE],
        _split_selector(data, INITIALIZE_SELECTOR, "initialize"),
    )
    init_call = Call(target=target, allow_failure=allow_failure, value=value, call_data=call_data)
    return normalize_address(owner), normalize_address(validator), list(modules), init_call


def decode_deploy_account(data: bytes) -> Tuple[bytes, bytes]:
    """Decode ``deployAccount`` call data into (salt, initializer)."""
    salt, initializer = decode(
        ["bytes32", "bytes"], _split_selector(data, DEPLOY_ACCOUNT_SELECTOR, "deployAccount")
    )
    return salt, initializer
