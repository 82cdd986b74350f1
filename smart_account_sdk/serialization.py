"""
Canonical encoding of zkSync EIP-712 (type 0x71) transaction envelopes.

Layout: ``0x71 || rlp([nonce, maxPriorityFeePerGas, maxFeePerGas, gasLimit,
to, value, data, chainId, '', '', chainId, from, gasPerPubdata,
factoryDeps, customSignature, paymasterParams])`` where ``paymasterParams``
is ``[paymaster, paymasterInput]`` or an empty list.
"""
from typing import Any, Dict

import rlp
from eth_utils import big_endian_to_int, to_checksum_address

from .models import EIP712_TX_TYPE, SignedTransaction
from .utils import address_to_bytes, to_bytes

TX_TYPE_PREFIX = bytes([EIP712_TX_TYPE])


def serialize_transaction(signed: SignedTransaction) -> bytes:
    """
    Serialize a signed transaction for ``eth_sendRawTransaction``.
    """
    if signed.paymaster is not None:
        paymaster_params = [address_to_bytes(signed.paymaster), bytes(signed.paymaster_input or b"")]
    else:
        paymaster_params = []

    fields = [
        signed.nonce,
        signed.max_priority_fee_per_gas,
        signed.max_fee_per_gas,
        signed.gas,
        address_to_bytes(signed.to),
        signed.value,
        bytes(signed.data),
        signed.chain_id,
        b"",
        b"",
        signed.chain_id,
        address_to_bytes(signed.sender),
        signed.gas_per_pubdata,
        [bytes(dep) for dep in signed.factory_deps],
        bytes(signed.custom_signature),
        paymaster_params,
    ]
    return TX_TYPE_PREFIX + rlp.encode(fields)


def deserialize_transaction(raw: Any) -> Dict[str, Any]:
    """
    Parse a serialized type 0x71 envelope back into its fields.

    Raises:
        ValueError: If the payload is not a type 0x71 envelope
    """
    data = to_bytes(raw)
    if not data or data[0] != EIP712_TX_TYPE:
        raise ValueError("Not an EIP-712 (type 0x71) transaction")

    items = rlp.decode(data[1:])
    if len(items) != 16:
        raise ValueError(f"Expected 16 envelope fields, got {len(items)}")

    (nonce, max_priority, max_fee, gas, to, value, call_data, chain_id,
     _r, _s, chain_id_again, sender, gas_per_pubdata, factory_deps,
     custom_signature, paymaster_params) = items

    if big_endian_to_int(chain_id) != big_endian_to_int(chain_id_again):
        raise ValueError("Envelope carries two different chain ids")

    paymaster = paymaster_input = None
    if paymaster_params:
        paymaster = to_checksum_address(paymaster_params[0])
        paymaster_input = bytes(paymaster_params[1])

    return {
        "nonce": big_endian_to_int(nonce),
        "max_priority_fee_per_gas": big_endian_to_int(max_priority),
        "max_fee_per_gas": big_endian_to_int(max_fee),
        "gas": big_endian_to_int(gas),
        "to": to_checksum_address(to),
        "value": big_endian_to_int(value),
        "data": bytes(call_data),
        "chain_id": big_endian_to_int(chain_id),
        "sender": to_checksum_address(sender),
        "gas_per_pubdata": big_endian_to_int(gas_per_pubdata),
        "factory_deps": [bytes(dep) for dep in factory_deps],
        "custom_signature": bytes(custom_signature),
        "paymaster": paymaster,
        "paymaster_input": paymaster_input,
    }
