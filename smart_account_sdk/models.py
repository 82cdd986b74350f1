"""
Data models for the Smart Account SDK.

A transaction request moves through a fixed chain of immutable values:
``TransactionIntent -> ShapedTransaction -> PreparedTransaction ->
SignedTransaction``. Each stage returns a new model; nothing is mutated in
place, so concurrent flows never share state.
"""
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, TypeAdapter, model_validator

from .exceptions import InvalidEip712TransactionError
from .utils import normalize_address, to_bytes

DEFAULT_GAS_PER_PUBDATA = 50_000
EIP712_TX_TYPE = 0x71  # 113

Address = Annotated[str, BeforeValidator(normalize_address)]
HexData = Annotated[bytes, BeforeValidator(to_bytes)]
UInt256 = Annotated[int, Field(ge=0, lt=2**256)]


def _to_bytes32(value: Any) -> bytes:
    data = to_bytes(value)
    if len(data) != 32:
        raise ValueError(f"Expected 32 bytes, got {len(data)}")
    return data


Bytes32 = Annotated[bytes, BeforeValidator(_to_bytes32)]


class DeploymentState(str, Enum):
    """Whether bytecode exists at a smart account address."""
    UNDEPLOYED = "undeployed"
    DEPLOYED = "deployed"


class SenderKind(str, Enum):
    """Which key authenticates a transaction on-chain."""
    SMART_ACCOUNT = "smart_account"
    OWNER = "owner"


class Call(BaseModel):
    """One atomic sub-invocation, laid out like the batch caller's Call struct."""
    model_config = ConfigDict(frozen=True)

    target: Address
    allow_failure: bool = False
    value: UInt256 = 0
    call_data: HexData = b""

    def as_abi_tuple(self) -> Tuple[str, bool, int, bytes]:
        return (self.target, self.allow_failure, self.value, self.call_data)


class SmartAccountIdentity(BaseModel):
    """An owner key and the counterfactual account address derived from it."""
    model_config = ConfigDict(frozen=True)

    owner_address: Address
    salt: Bytes32
    derived_address: Address


class _IntentBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    calls: Tuple[Call, ...] = Field(..., min_length=1)
    gas: Optional[int] = Field(None, gt=0)
    nonce: Optional[int] = Field(None, ge=0)
    max_fee_per_gas: Optional[int] = Field(None, ge=0)
    max_priority_fee_per_gas: Optional[int] = Field(None, ge=0)

    @property
    def total_value(self) -> int:
        return sum(call.value for call in self.calls)

    @property
    def is_batch(self) -> bool:
        return len(self.calls) > 1


class Eip712Intent(_IntentBase):
    """Intent to send one call (or an atomic batch) from a smart account."""
    type: Literal["eip712"] = "eip712"
    paymaster: Optional[Address] = None
    paymaster_input: Optional[HexData] = None

    @model_validator(mode="after")
    def _check_paymaster_pair(self) -> "Eip712Intent":
        if (self.paymaster is None) != (self.paymaster_input is None):
            raise ValueError("paymaster and paymaster_input must be provided together")
        return self


class LegacyIntent(_IntentBase):
    """A plain (non EIP-712) transaction request. Not accepted by the pipeline."""
    type: Literal["legacy"] = "legacy"


TransactionIntent = Annotated[Union[Eip712Intent, LegacyIntent], Field(discriminator="type")]

_intent_adapter = TypeAdapter(TransactionIntent)


def parse_intent(data: Mapping[str, Any]) -> Union[Eip712Intent, LegacyIntent]:
    """Build a TransactionIntent from a plain mapping, dispatching on ``type``."""
    payload = dict(data)
    payload.setdefault("type", "eip712")
    return _intent_adapter.validate_python(payload)


class ShapedTransaction(BaseModel):
    """Transaction skeleton: who sends what, to where, before fees and nonce."""
    model_config = ConfigDict(frozen=True)

    type: Literal["eip712"] = "eip712"
    deployment_state: DeploymentState
    sender: Address
    sender_kind: SenderKind
    to: Address
    data: HexData = b""
    value: UInt256 = 0
    paymaster: Optional[Address] = None
    paymaster_input: Optional[HexData] = None
    gas_per_pubdata: int = DEFAULT_GAS_PER_PUBDATA
    factory_deps: Tuple[HexData, ...] = ()

    def prepare(
        self,
        *,
        gas: int,
        nonce: int,
        max_fee_per_gas: int,
        max_priority_fee_per_gas: int,
        chain_id: int,
    ) -> "PreparedTransaction":
        return PreparedTransaction(
            **self.model_dump(),
            gas=gas,
            nonce=nonce,
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            chain_id=chain_id,
        )


class PreparedTransaction(ShapedTransaction):
    """Shaped transaction with gas, nonce, fees and chain id resolved."""
    gas: int = Field(..., ge=0)
    nonce: int = Field(..., ge=0)
    max_fee_per_gas: int = Field(..., ge=0)
    max_priority_fee_per_gas: int = Field(..., ge=0)
    chain_id: int = Field(..., gt=0)

    def with_signature(self, custom_signature: bytes) -> "SignedTransaction":
        return SignedTransaction(**self.model_dump(), custom_signature=custom_signature)


class SignedTransaction(PreparedTransaction):
    """The final envelope: a prepared transaction plus its custom signature."""
    custom_signature: HexData

    def serialize(self) -> bytes:
        from .serialization import serialize_transaction
        return serialize_transaction(self)


class TxReceipt(BaseModel):
    """Transaction receipt from the blockchain"""
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]]


_EIP712_MARKERS = ("customSignature", "paymaster", "paymasterInput", "factoryDeps")


def is_eip712_transaction(transaction: Mapping[str, Any]) -> bool:
    """
    Check a loosely-typed transaction mapping for the EIP-712 markers.

    A mapping qualifies when ``type`` is ``"eip712"`` or it carries a truthy
    ``customSignature``, ``paymaster``, ``paymasterInput`` or ``factoryDeps``,
    or an integer ``gasPerPubdata``.
    """
    if transaction.get("type") == "eip712":
        return True
    if any(transaction.get(marker) for marker in _EIP712_MARKERS):
        return True
    gas_per_pubdata = transaction.get("gasPerPubdata")
    return isinstance(gas_per_pubdata, int) and not isinstance(gas_per_pubdata, bool)


def assert_eip712_request(transaction: Mapping[str, Any]) -> None:
    """
    Raises:
        InvalidEip712TransactionError: If the mapping lacks every EIP-712 marker
    """
    if not is_eip712_transaction(transaction):
        raise InvalidEip712TransactionError()
