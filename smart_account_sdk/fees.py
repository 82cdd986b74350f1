"""
Gas, nonce and fee resolution for shaped transactions.
"""
import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from web3 import AsyncWeb3
from web3.types import RPCEndpoint

from .config import DeploymentConfig
from .exceptions import EstimationError, FeeTooLowError
from .models import PreparedTransaction, ShapedTransaction
from .utils import normalize_address, to_hex

logger = logging.getLogger(__name__)


def _parse_quantity(value: Any) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


def estimate_request(shaped: ShapedTransaction, sender: Optional[str] = None) -> Dict[str, Any]:
    """
    Render a shaped transaction as a zkSync JSON-RPC call object.

    Used for both ``eth_estimateGas`` and ``zks_estimateFee``.
    """
    meta: Dict[str, Any] = {
        "gasPerPubdata": hex(shaped.gas_per_pubdata),
        "factoryDeps": [list(dep) for dep in shaped.factory_deps],
    }
    if shaped.paymaster is not None:
        meta["paymasterParams"] = {
            "paymaster": shaped.paymaster,
            "paymasterInput": list(shaped.paymaster_input or b""),
        }
    return {
        "from": sender or shaped.sender,
        "to": shaped.to,
        "data": to_hex(shaped.data),
        "value": hex(shaped.value),
        "eip712Meta": meta,
    }


class FeeAndNonceResolver:
    """Fills in gas, nonce and EIP-1559 fee fields from chain state."""

    def __init__(self, w3: AsyncWeb3, config: DeploymentConfig, logger: Optional[logging.Logger] = None):
        self.w3 = w3
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

    async def _rpc(self, method: str, params: list) -> Any:
        response = await self.w3.provider.make_request(RPCEndpoint(method), params)
        if response.get("error"):
            error = response["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise EstimationError(f"{method} failed: {message}", stage="resolve")
        return response["result"]

    async def get_nonce(self, address: str) -> int:
        """Read the pending nonce so back-to-back submissions do not collide."""
        try:
            return await self.w3.eth.get_transaction_count(normalize_address(address), "pending")
        except Exception as e:
            self.logger.error(f"Nonce lookup for {address} failed: {e}")
            raise EstimationError(f"Failed to read nonce for {address}: {e}", cause=e) from e

    async def estimate_gas(self, shaped: ShapedTransaction, sender: Optional[str] = None) -> int:
        try:
            result = await self._rpc("eth_estimateGas", [estimate_request(shaped, sender)])
        except EstimationError:
            raise
        except Exception as e:
            self.logger.error(f"Gas estimation failed: {e}")
            raise EstimationError(f"Gas estimation failed: {e}", cause=e) from e
        gas = _parse_quantity(result)
        self.logger.debug(f"Estimated gas: {gas}")
        return gas

    async def estimate_fee(self, shaped: ShapedTransaction, sender: Optional[str] = None) -> Tuple[int, int]:
        """
        Returns:
            (max_fee_per_gas, max_priority_fee_per_gas) from ``zks_estimateFee``
        """
        try:
            result = await self._rpc("zks_estimateFee", [estimate_request(shaped, sender)])
            max_fee = _parse_quantity(result["max_fee_per_gas"])
            max_priority = _parse_quantity(result["max_priority_fee_per_gas"])
        except EstimationError:
            raise
        except Exception as e:
            self.logger.error(f"Fee estimation failed: {e}")
            raise EstimationError(f"Fee estimation failed: {e}", cause=e) from e
        self.logger.debug(f"Estimated fees: maxFeePerGas={max_fee}, maxPriorityFeePerGas={max_priority}")
        return max_fee, max_priority

    async def resolve(
        self,
        shaped: ShapedTransaction,
        account_address: Optional[str] = None,
        *,
        gas: Optional[int] = None,
        nonce: Optional[int] = None,
        max_fee_per_gas: Optional[int] = None,
        max_priority_fee_per_gas: Optional[int] = None,
    ) -> PreparedTransaction:
        """
        Resolve the missing gas, nonce and fee fields of a shaped transaction.

        Caller-supplied values are kept; only missing ones are read. The
        reads are independent and run concurrently.

        Args:
            shaped: The shaped transaction
            account_address: Address whose nonce is consumed (defaults to the sender)
            gas: Gas limit override
            nonce: Nonce override
            max_fee_per_gas: Fee cap override
            max_priority_fee_per_gas: Priority fee override

        Returns:
            PreparedTransaction for the configured chain

        Raises:
            FeeTooLowError: If ``max_fee_per_gas`` is below the estimated priority fee
            EstimationError: If any chain read fails
        """
        sender = normalize_address(account_address or shaped.sender)
        needs_fees = max_fee_per_gas is None or max_priority_fee_per_gas is None

        async def _skip(value):
            return value

        nonce_value, gas_value, fees = await asyncio.gather(
            self.get_nonce(sender) if nonce is None else _skip(nonce),
            self.estimate_gas(shaped, sender) if gas is None else _skip(gas),
            self.estimate_fee(shaped, sender) if needs_fees else _skip(None),
        )

        if fees is not None:
            estimated_max_fee, estimated_priority = fees
            if (
                max_priority_fee_per_gas is None
                and max_fee_per_gas is not None
                and max_fee_per_gas < estimated_priority
            ):
                raise FeeTooLowError(max_fee_per_gas, estimated_priority)
            if max_priority_fee_per_gas is None:
                max_priority_fee_per_gas = estimated_priority
            if max_fee_per_gas is None:
                max_fee_per_gas = max(estimated_max_fee, max_priority_fee_per_gas)

        prepared = shaped.prepare(
            gas=gas_value,
            nonce=nonce_value,
            max_fee_per_gas=max_fee_per_gas,
            max_priority_fee_per_gas=max_priority_fee_per_gas,
            chain_id=self.config.chain_id,
        )
        self.logger.debug(
            f"Prepared transaction for {sender}: nonce={prepared.nonce}, gas={prepared.gas}, "
            f"maxFeePerGas={prepared.max_fee_per_gas}"
        )
        return prepared
