"""
Broadcasting of signed transaction envelopes.
"""
import logging
from typing import Any, Mapping, Optional, Union

from web3 import AsyncWeb3
from web3.exceptions import TimeExhausted

from .exceptions import BroadcastFailedError, ChainMismatchError, ReceiptError
from .models import SignedTransaction, TxReceipt
from .utils import to_bytes, to_hex


def _hash_to_hex(tx_hash: Union[bytes, str]) -> str:
    if isinstance(tx_hash, (bytes, bytearray)):
        return to_hex(tx_hash)
    return tx_hash if tx_hash.startswith("0x") else "0x" + tx_hash


class Submitter:
    """Sends signed envelopes and waits for their receipts."""

    def __init__(self, w3: AsyncWeb3, logger: Optional[logging.Logger] = None):
        self.w3 = w3
        self.logger = logger or logging.getLogger(__name__)

    async def assert_chain_id(self, expected_chain_id: int) -> None:
        """
        Raises:
            ChainMismatchError: If the connected node reports another chain
            BroadcastFailedError: If the chain id cannot be read
        """
        try:
            actual_chain_id = await self.w3.eth.chain_id
        except Exception as e:
            self.logger.error(f"Failed to read chain ID: {e}")
            raise BroadcastFailedError(f"Failed to validate chain ID: {e}", cause=e) from e

        if actual_chain_id != expected_chain_id:
            self.logger.error(
                f"Chain ID mismatch: expected {expected_chain_id}, connected to {actual_chain_id}"
            )
            raise ChainMismatchError(expected_chain_id, actual_chain_id)

    async def submit(self, signed: SignedTransaction) -> str:
        """
        Serialize and broadcast a signed transaction.

        Args:
            signed: The fully signed envelope

        Returns:
            Transaction hash as a 0x-prefixed hex string

        Raises:
            ChainMismatchError: If the node is on a different chain than the transaction
            BroadcastFailedError: If the node rejects the raw transaction
        """
        await self.assert_chain_id(signed.chain_id)

        raw = signed.serialize()
        try:
            tx_hash = await self.w3.eth.send_raw_transaction(raw)
        except Exception as e:
            self.logger.error(f"Failed to send transaction: {e}")
            raise BroadcastFailedError(f"Failed to send transaction: {e}", cause=e) from e

        tx_hash_hex = _hash_to_hex(tx_hash)
        self.logger.info(f"Transaction sent: {tx_hash_hex}")
        return tx_hash_hex

    async def wait_for_receipt(
        self,
        tx_hash: Union[str, bytes],
        timeout: float = 120,
        poll_interval: float = 0.1,
    ) -> TxReceipt:
        """
        Wait for a broadcast transaction to be mined.

        Raises:
            ReceiptError: If no receipt arrives in time, the node fails while polling,
                or the transaction reverted
        """
        tx_hash_hex = _hash_to_hex(tx_hash)
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                to_bytes(tx_hash_hex), timeout=timeout, poll_latency=poll_interval
            )
        except TimeExhausted as e:
            self.logger.warning(f"No receipt for {tx_hash_hex} after {timeout}s")
            raise ReceiptError(
                f"Transaction {tx_hash_hex} was broadcast but no receipt arrived within {timeout}s",
                tx_hash=tx_hash_hex,
                cause=e,
            ) from e
        except Exception as e:
            self.logger.error(f"Failed to fetch receipt for {tx_hash_hex}: {e}")
            raise ReceiptError(
                f"Transaction {tx_hash_hex} was broadcast but its receipt could not be fetched: {e}",
                tx_hash=tx_hash_hex,
                cause=e,
            ) from e

        converted = self._convert_receipt(receipt)
        if converted.status != 1:
            self.logger.error(f"Transaction {tx_hash_hex} reverted in block {converted.block_number}")
            raise ReceiptError(f"Transaction {tx_hash_hex} reverted", tx_hash=tx_hash_hex)
        return converted

    def _convert_receipt(self, web3_receipt: Mapping[str, Any]) -> TxReceipt:
        """
        Convert Web3 receipt to our TxReceipt model
        """
        receipt_dict = dict(web3_receipt)

        # Convert bytes to hex strings
        for key, value in list(receipt_dict.items()):
            if isinstance(value, bytes):
                receipt_dict[key] = to_hex(value)

        receipt_dict["logs"] = [dict(log) for log in receipt_dict.get("logs", [])]
        return TxReceipt.model_validate(receipt_dict)
