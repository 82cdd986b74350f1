"""
EIP-712 transaction hashing and the two-layer smart account signature.

A smart-account transaction is signed in two layers:

1. The chain's ``Transaction`` struct is hashed under the zkSync domain
   (``name="zkSync", version="2", chainId``).
2. That digest is wrapped in a ``SignMessage{details, hash}`` struct under a
   validator-scoped domain (``verifyingContract = validator``) and the signer
   signs the wrapper. Signer backends that only offer human-readable
   typed-data signing can handle this; the validator contract re-derives the
   inner digest on-chain.

The resulting raw signature is ABI-encoded together with the validator
address and an empty hook-data list as ``(bytes, address, bytes[])``.

Transactions sent by the owner key itself (an account's deploying
transaction) are signed directly over the ``Transaction`` struct and the
raw 65-byte signature is used as the custom signature.
"""
import hashlib
import logging
from typing import Any, Dict, List, Optional, Tuple

from eth_abi import decode, encode
from eth_account.messages import encode_typed_data
from eth_utils import keccak

from .config import DEFAULT_SIGN_MESSAGE_DETAILS, DeploymentConfig
from .exceptions import (
    AccountNotFoundError,
    InvalidEip712TransactionError,
    SignerRejectedError,
    SmartAccountError,
)
from .models import EIP712_TX_TYPE, PreparedTransaction, SenderKind, SignedTransaction
from .signer import Signer
from .utils import normalize_address, short_hex

logger = logging.getLogger(__name__)

ZKSYNC_DOMAIN_NAME = "zkSync"
ZKSYNC_DOMAIN_VERSION = "2"

CUSTOM_SIGNATURE_TYPES = ["bytes", "address", "bytes[]"]

TRANSACTION_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
    ],
    "Transaction": [
        {"name": "txType", "type": "uint256"},
        {"name": "from", "type": "uint256"},
        {"name": "to", "type": "uint256"},
        {"name": "gasLimit", "type": "uint256"},
        {"name": "gasPerPubdataByteLimit", "type": "uint256"},
        {"name": "maxFeePerGas", "type": "uint256"},
        {"name": "maxPriorityFeePerGas", "type": "uint256"},
        {"name": "paymaster", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "value", "type": "uint256"},
        {"name": "data", "type": "bytes"},
        {"name": "factoryDeps", "type": "bytes32[]"},
        {"name": "paymasterInput", "type": "bytes"},
    ],
}

SIGN_MESSAGE_TYPES = {
    "EIP712Domain": [
        {"name": "name", "type": "string"},
        {"name": "version", "type": "string"},
        {"name": "chainId", "type": "uint256"},
        {"name": "verifyingContract", "type": "address"},
    ],
    "SignMessage": [
        {"name": "details", "type": "string"},
        {"name": "hash", "type": "bytes32"},
    ],
}


def _address_as_uint(address: Optional[str]) -> int:
    return int(address, 16) if address else 0


def hash_bytecode(bytecode: bytes) -> bytes:
    """
    Versioned zkSync bytecode hash, as committed in the typed data's ``factoryDeps``.

    Layout: ``0x01 0x00 || uint16 length in 32-byte words || sha256(bytecode)[4:]``.

    Raises:
        ValueError: If the bytecode is not an odd number of 32-byte words
    """
    bytecode = bytes(bytecode)
    if len(bytecode) % 32:
        raise ValueError(f"Bytecode length must be a multiple of 32 bytes, got {len(bytecode)}")
    words = len(bytecode) // 32
    if words >= 2**16:
        raise ValueError(f"Bytecode is too long: {words} words")
    if words % 2 == 0:
        raise ValueError(f"Bytecode must contain an odd number of words, got {words}")
    return bytes([1, 0]) + words.to_bytes(2, "big") + hashlib.sha256(bytecode).digest()[4:]


def transaction_typed_data(prepared: PreparedTransaction) -> Dict[str, Any]:
    """Build the full EIP-712 message for the chain's Transaction struct."""
    return {
        "types": TRANSACTION_TYPES,
        "primaryType": "Transaction",
        "domain": {
            "name": ZKSYNC_DOMAIN_NAME,
            "version": ZKSYNC_DOMAIN_VERSION,
            "chainId": prepared.chain_id,
        },
        "message": {
            "txType": EIP712_TX_TYPE,
            "from": _address_as_uint(prepared.sender),
            "to": _address_as_uint(prepared.to),
            "gasLimit": prepared.gas,
            "gasPerPubdataByteLimit": prepared.gas_per_pubdata,
            "maxFeePerGas": prepared.max_fee_per_gas,
            "maxPriorityFeePerGas": prepared.max_priority_fee_per_gas,
            "paymaster": _address_as_uint(prepared.paymaster),
            "nonce": prepared.nonce,
            "value": prepared.value,
            "data": bytes(prepared.data),
            "factoryDeps": [hash_bytecode(dep) for dep in prepared.factory_deps],
            "paymasterInput": bytes(prepared.paymaster_input or b""),
        },
    }


def typed_data_digest(typed_data: Dict[str, Any]) -> bytes:
    """keccak256(0x19 0x01 || domainSeparator || hashStruct(message))"""
    signable = encode_typed_data(full_message=typed_data)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def transaction_digest(prepared: PreparedTransaction) -> bytes:
    """The EIP-712 digest of a prepared transaction."""
    return typed_data_digest(transaction_typed_data(prepared))


def sign_message_typed_data(
    digest: bytes,
    chain_id: int,
    validator_address: str,
    details: str = DEFAULT_SIGN_MESSAGE_DETAILS,
) -> Dict[str, Any]:
    """Wrap a transaction digest in the validator-scoped SignMessage struct."""
    if len(digest) != 32:
        raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")
    return {
        "types": SIGN_MESSAGE_TYPES,
        "primaryType": "SignMessage",
        "domain": {
            "name": ZKSYNC_DOMAIN_NAME,
            "version": ZKSYNC_DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": normalize_address(validator_address),
        },
        "message": {
            "details": details,
            "hash": bytes(digest),
        },
    }


def encode_custom_signature(raw_signature: bytes, validator_address: str) -> bytes:
    """ABI-encode ``(rawSignature, validator, [])``."""
    return encode(CUSTOM_SIGNATURE_TYPES, [bytes(raw_signature), normalize_address(validator_address), []])


def decode_custom_signature(custom_signature: bytes) -> Tuple[bytes, str, List[bytes]]:
    """Decode a smart account custom signature into (raw, validator, hook_data)."""
    raw, validator, hook_data = decode(CUSTOM_SIGNATURE_TYPES, bytes(custom_signature))
    return raw, normalize_address(validator), list(hook_data)


class Eip712Signer:
    """Produces the custom signature for prepared EIP-712 transactions."""

    def __init__(self, config: DeploymentConfig, logger: Optional[logging.Logger] = None):
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    async def _request_signature(self, signer: Signer, typed_data: Dict[str, Any]) -> bytes:
        try:
            return bytes(await signer.sign_typed_data(typed_data))
        except SmartAccountError:
            raise
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            raise SignerRejectedError(f"Failed to sign transaction: {e}", cause=e) from e

    async def sign(
        self,
        prepared: PreparedTransaction,
        signer: Optional[Signer],
        validator_address: Optional[str] = None,
    ) -> SignedTransaction:
        """
        Sign a prepared transaction.

        Args:
            prepared: Transaction with gas, nonce, fees and chain id resolved
            signer: Signer capability for the owner key
            validator_address: Validator that verifies the signature (defaults to config)

        Returns:
            SignedTransaction carrying the custom signature

        Raises:
            AccountNotFoundError: If no signer is bound, or it does not match an owner sender
            InvalidEip712TransactionError: If ``prepared`` is not an EIP-712 transaction
            SignerRejectedError: If the signer declines or fails
        """
        if signer is None:
            raise AccountNotFoundError()
        if not isinstance(prepared, PreparedTransaction) or prepared.type != "eip712":
            raise InvalidEip712TransactionError(stage="sign")

        tx_typed_data = transaction_typed_data(prepared)

        if prepared.sender_kind is SenderKind.OWNER:
            if normalize_address(signer.address) != prepared.sender:
                raise AccountNotFoundError(
                    f"Signer {signer.address} cannot sign for sender {prepared.sender}"
                )
            custom_signature = await self._request_signature(signer, tx_typed_data)
        else:
            validator = normalize_address(validator_address or self.config.validator_address)
            digest = typed_data_digest(tx_typed_data)
            wrapper = sign_message_typed_data(
                digest, prepared.chain_id, validator, self.config.sign_message_details
            )
            raw_signature = await self._request_signature(signer, wrapper)
            custom_signature = encode_custom_signature(raw_signature, validator)
            self.logger.debug(f"Signed transaction digest {short_hex(digest)} via validator {validator}")

        return prepared.with_signature(custom_signature)
