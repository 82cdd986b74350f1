"""
Exceptions for the Smart Account SDK.

Every error carries the pipeline ``stage`` it was raised from and the
underlying ``cause`` (if any). The class attribute ``broadcast`` tells the
caller whether a transaction may already be pending on-chain: when it is
False nothing reached the network and the request can be safely retried;
when it is True the caller must check the transaction status first.
"""
from typing import Optional


class SmartAccountError(Exception):
    """Base exception for all Smart Account SDK errors."""

    broadcast = False
    default_stage = "pipeline"

    def __init__(
        self,
        message: str,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.stage = stage or self.default_stage
        self.cause = cause
        super().__init__(message)


class MalformedAddressError(SmartAccountError, ValueError):
    """Raised when a value is not a 20-byte account address."""

    default_stage = "input"


class ConfigurationError(SmartAccountError):
    """Raised when the deployment configuration lacks a required contract."""

    default_stage = "config"


class AccountNotFoundError(SmartAccountError):
    """Raised when no signer account is bound to the client."""

    default_stage = "sign"

    def __init__(self, message: Optional[str] = None, stage: Optional[str] = None):
        super().__init__(
            message
            or (
                "Could not find an Account to execute with this Action. "
                "Please provide a signer when creating the client."
            ),
            stage=stage,
        )


class InvalidEip712TransactionError(SmartAccountError):
    """Raised when a transaction is not recognisable as an EIP-712 transaction."""

    default_stage = "validate"

    def __init__(
        self,
        message: Optional[str] = None,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            message
            or "\n".join([
                "Transaction is not an EIP712 transaction.",
                "",
                "Transaction must:",
                '  - include `type: "eip712"`',
                "  - include one of the following: `customSignature`, `paymaster`, "
                "`paymasterInput`, `gasPerPubdata`, `factoryDeps`",
            ]),
            stage=stage,
            cause=cause,
        )


class ChainMismatchError(SmartAccountError):
    """Raised when the transaction targets a different chain than the RPC node."""

    default_stage = "submit"

    def __init__(self, expected_chain_id: int, actual_chain_id: int, stage: Optional[str] = None):
        self.expected_chain_id = expected_chain_id
        self.actual_chain_id = actual_chain_id
        super().__init__(
            f"Chain ID mismatch: transaction is for chain {expected_chain_id} "
            f"but the connected node reports chain {actual_chain_id}",
            stage=stage,
        )


class FeeTooLowError(SmartAccountError):
    """Raised when a caller-supplied maxFeePerGas is below the estimated priority fee."""

    default_stage = "resolve"

    def __init__(self, max_fee_per_gas: int, max_priority_fee_per_gas: int):
        self.max_fee_per_gas = max_fee_per_gas
        self.max_priority_fee_per_gas = max_priority_fee_per_gas
        gwei = max_priority_fee_per_gas / 10**9
        super().__init__(
            f"`maxFeePerGas` cannot be less than the `maxPriorityFeePerGas` ({gwei:g} gwei)."
        )


class DeploymentProbeFailedError(SmartAccountError):
    """Raised when the bytecode probe for an account address fails."""

    default_stage = "probe"


class ContractReadError(SmartAccountError):
    """Raised when a read-only contract call fails."""

    default_stage = "derive"


class EstimationError(SmartAccountError):
    """Raised when gas, fee or nonce estimation fails."""

    default_stage = "resolve"


class SignerRejectedError(SmartAccountError):
    """Raised when the signer declines or fails to produce a signature."""

    default_stage = "sign"


class BroadcastFailedError(SmartAccountError):
    """Raised when the node refuses the raw transaction."""

    default_stage = "submit"


class ReceiptError(SmartAccountError):
    """Raised after broadcast when the receipt is missing or reports failure."""

    broadcast = True
    default_stage = "receipt"

    def __init__(
        self,
        message: str,
        tx_hash: str,
        stage: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ):
        self.tx_hash = tx_hash
        super().__init__(message, stage=stage, cause=cause)
