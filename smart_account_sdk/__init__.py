"""
Smart Account SDK - build, sign and submit zkSync-style smart account transactions.
"""
from .version import __version__
from .client import SmartAccountClient
from .config import DeploymentConfig, NetworkConfig
from .address import AddressDeriver
from .deployment import DeploymentOracle
from .encoding import CallEncoder
from .builder import TransactionBuilder
from .fees import FeeAndNonceResolver
from .eip712 import Eip712Signer
from .submitter import Submitter
from .serialization import serialize_transaction, deserialize_transaction
from .signer import Signer, LocalSigner, JsonRpcSigner
from .utils import compute_salt, normalize_address
from .models import (
    Call,
    DeploymentState,
    Eip712Intent,
    LegacyIntent,
    PreparedTransaction,
    SenderKind,
    ShapedTransaction,
    SignedTransaction,
    SmartAccountIdentity,
    TransactionIntent,
    TxReceipt,
    parse_intent,
)
from .exceptions import (
    SmartAccountError,
    MalformedAddressError,
    ConfigurationError,
    AccountNotFoundError,
    InvalidEip712TransactionError,
    ChainMismatchError,
    FeeTooLowError,
    DeploymentProbeFailedError,
    ContractReadError,
    EstimationError,
    SignerRejectedError,
    BroadcastFailedError,
    ReceiptError,
)

__all__ = [
    "__version__",
    "SmartAccountClient",
    "DeploymentConfig",
    "NetworkConfig",
    "AddressDeriver",
    "DeploymentOracle",
    "CallEncoder",
    "TransactionBuilder",
    "FeeAndNonceResolver",
    "Eip712Signer",
    "Submitter",
    "serialize_transaction",
    "deserialize_transaction",
    "Signer",
    "LocalSigner",
    "JsonRpcSigner",
    "compute_salt",
    "normalize_address",
    "Call",
    "DeploymentState",
    "Eip712Intent",
    "LegacyIntent",
    "PreparedTransaction",
    "SenderKind",
    "ShapedTransaction",
    "SignedTransaction",
    "SmartAccountIdentity",
    "TransactionIntent",
    "TxReceipt",
    "parse_intent",
    "SmartAccountError",
    "MalformedAddressError",
    "ConfigurationError",
    "AccountNotFoundError",
    "InvalidEip712TransactionError",
    "ChainMismatchError",
    "FeeTooLowError",
    "DeploymentProbeFailedError",
    "ContractReadError",
    "EstimationError",
    "SignerRejectedError",
    "BroadcastFailedError",
    "ReceiptError",
]
