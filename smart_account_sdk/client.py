"""
SmartAccountClient - Main client for sending transactions from a smart account.
"""
import logging
import urllib.parse
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Union

from pydantic import ValidationError
from web3 import AsyncHTTPProvider, AsyncWeb3

from .address import AddressDeriver
from .builder import TransactionBuilder
from .config import DeploymentConfig
from .deployment import DeploymentOracle
from .eip712 import Eip712Signer
from .encoding import CallEncoder
from .exceptions import AccountNotFoundError, InvalidEip712TransactionError, SmartAccountError
from .fees import FeeAndNonceResolver
from .models import (
    Call,
    DeploymentState,
    Eip712Intent,
    LegacyIntent,
    SignedTransaction,
    SmartAccountIdentity,
    TxReceipt,
    assert_eip712_request,
    parse_intent,
)
from .signer import LocalSigner, Signer
from .submitter import Submitter
from .utils import BytesLike, normalize_address

# Request keys accepted from loosely-typed transaction mappings, by intent field
_INTENT_KEYS = {
    "calls": "calls",
    "gas": "gas",
    "nonce": "nonce",
    "max_fee_per_gas": "max_fee_per_gas",
    "maxFeePerGas": "max_fee_per_gas",
    "max_priority_fee_per_gas": "max_priority_fee_per_gas",
    "maxPriorityFeePerGas": "max_priority_fee_per_gas",
    "paymaster": "paymaster",
    "paymaster_input": "paymaster_input",
    "paymasterInput": "paymaster_input",
}


def _validate_url(url_name: str, url: str) -> None:
    parsed = urllib.parse.urlparse(url)
    host = parsed.netloc.split(':')[0]
    if parsed.scheme != 'https' and host not in ('localhost', '127.0.0.1'):
        raise ValueError(f"{url_name} must use https:// for security (got: {parsed.scheme}://)")


class SmartAccountClient:
    """
    Client for a counterfactual smart account.

    Every transaction runs the same pipeline:
    1. Derive the account address for the owner key
    2. Probe whether the account is deployed (fresh for every transaction)
    3. Shape the call either as a plain account call or as a deploy-and-call
       through the factory
    4. Resolve nonce, gas and fees
    5. Sign the EIP-712 transaction
    6. Broadcast the serialized envelope

    To use this client, you'll need:
    - A zkSync-compatible RPC endpoint
    - A DeploymentConfig with the factory and validator addresses
    - Either a private key or a Signer for the owner key
    """

    def __init__(
        self,
        config: DeploymentConfig,
        signer: Optional[Signer] = None,
        priv_key: Optional[str] = None,
        rpc_url: Optional[str] = None,
        w3: Optional[AsyncWeb3] = None,
        strict_probe: bool = False,
        logger: Optional[logging.Logger] = None,
    ):
        """
        Initialize the SmartAccountClient

        Args:
            config: Deployment addresses and chain parameters
            signer: Signer for the owner key (optional if priv_key provided)
            priv_key: Owner private key (optional if signer provided)
            rpc_url: RPC endpoint (defaults to config.rpc_url)
            w3: Pre-built AsyncWeb3 instance, used instead of rpc_url
            strict_probe: Fail the transaction when the deployment probe errors
                instead of treating the account as undeployed
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If no RPC endpoint is available or it doesn't use https
                (unless it is localhost/127.0.0.1)
        """
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.strict_probe = strict_probe

        if signer is None and priv_key:
            signer = LocalSigner(priv_key)
        self.signer = signer

        if w3 is None:
            rpc_url = rpc_url or config.rpc_url
            if not rpc_url:
                raise ValueError("rpc_url must be provided either directly or through the config")
            _validate_url("rpc_url", rpc_url)
            w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
        self.rpc_url = rpc_url
        self.w3 = w3

        self.encoder = CallEncoder(config)
        self.deriver = AddressDeriver(w3, config, logger=self.logger)
        self.oracle = DeploymentOracle(w3, logger=self.logger)
        self.builder = TransactionBuilder(config, encoder=self.encoder)
        self.resolver = FeeAndNonceResolver(w3, config, logger=self.logger)
        self.eip712_signer = Eip712Signer(config, logger=self.logger)
        self.submitter = Submitter(w3, logger=self.logger)

    @classmethod
    def from_network(
        cls,
        network: str,
        signer: Optional[Signer] = None,
        priv_key: Optional[str] = None,
        rpc_url: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        **config_overrides: Any,
    ) -> "SmartAccountClient":
        """
        Create a client for a network defined in networks.json

        Args:
            network: Network name (e.g., "abstract-testnet")
            signer: Signer for the owner key (optional if priv_key provided)
            priv_key: Owner private key (optional if signer provided)
            rpc_url: Optional RPC URL override
            logger: Optional logger instance
            **config_overrides: DeploymentConfig fields, e.g. batch_caller_address

        Raises:
            ValueError: If the network is unknown
            ConfigurationError: If the network lacks the factory or validator address
        """
        if rpc_url:
            config_overrides["rpc_url"] = rpc_url
        config = DeploymentConfig.from_network(network, **config_overrides)
        return cls(config, signer=signer, priv_key=priv_key, logger=logger)

    @property
    def address(self) -> str:
        """
        Get the owner (signer) address

        Raises:
            AccountNotFoundError: If no signer is available
        """
        return self._require_signer().address

    def _require_signer(self) -> Signer:
        if self.signer is None:
            raise AccountNotFoundError()
        return self.signer

    async def get_identity(self, owner_address: Optional[str] = None) -> SmartAccountIdentity:
        """Derive the smart account identity for an owner (defaults to the signer)."""
        return await self.deriver.derive(owner_address or self.address)

    async def get_address(self, owner_address: Optional[str] = None) -> str:
        """
        Get the smart account address for an owner (defaults to the signer)

        Raises:
            ContractReadError: If the factory cannot be queried
        """
        identity = await self.get_identity(owner_address)
        return identity.derived_address

    async def is_deployed(self, owner_address: Optional[str] = None) -> bool:
        """Whether the owner's smart account has bytecode on-chain."""
        return await self.oracle.is_deployed(await self.get_address(owner_address))

    async def assert_chain_id(self) -> None:
        """
        Verify that the RPC endpoint is on the configured chain

        Raises:
            ChainMismatchError: If the chain IDs don't match
        """
        await self.submitter.assert_chain_id(self.config.chain_id)

    async def build_signed_transaction(
        self,
        intent: Union[Eip712Intent, LegacyIntent],
        deployment_state: Optional[DeploymentState] = None,
    ) -> SignedTransaction:
        """
        Run the pipeline up to and including signing.

        Args:
            intent: The calls to execute
            deployment_state: Force a deployment state instead of probing

        Raises:
            InvalidEip712TransactionError: If the intent is not an EIP-712 intent
            AccountNotFoundError: If no signer is bound
        """
        if not isinstance(intent, Eip712Intent):
            raise InvalidEip712TransactionError()
        signer = self._require_signer()

        identity = await self.get_identity()
        if deployment_state is None:
            deployment_state = await self.oracle.probe(identity.derived_address, strict=self.strict_probe)

        shaped = self.builder.shape(intent, deployment_state, identity)
        prepared = await self.resolver.resolve(
            shaped,
            gas=intent.gas,
            nonce=intent.nonce,
            max_fee_per_gas=intent.max_fee_per_gas,
            max_priority_fee_per_gas=intent.max_priority_fee_per_gas,
        )
        signed = await self.eip712_signer.sign(prepared, signer)
        self.logger.debug(
            f"Signed {deployment_state.value} transaction from {signed.sender} "
            f"(nonce {signed.nonce})"
        )
        return signed

    async def execute(
        self,
        intent: Union[Eip712Intent, LegacyIntent],
        deployment_state: Optional[DeploymentState] = None,
    ) -> str:
        """
        Run the full pipeline and broadcast.

        Returns:
            Transaction hash as a 0x-prefixed hex string
        """
        signed = await self.build_signed_transaction(intent, deployment_state)
        return await self.submitter.submit(signed)

    async def send_transaction(
        self,
        to: Optional[str] = None,
        data: BytesLike = b"",
        value: int = 0,
        *,
        call: Optional[Call] = None,
        paymaster: Optional[str] = None,
        paymaster_input: Optional[BytesLike] = None,
        **fees: Optional[int],
    ) -> str:
        """
        Send a single call from the smart account

        Args:
            to: Call target (ignored when ``call`` is given)
            data: ABI-encoded call data
            value: Wei to send with the call
            call: Pre-built Call
            paymaster: Optional paymaster contract
            paymaster_input: Paymaster input (required with paymaster)
            **fees: gas, nonce, max_fee_per_gas, max_priority_fee_per_gas overrides

        Returns:
            Transaction hash
        """
        if call is None:
            if to is None:
                raise ValueError("Either to or call must be provided")
            call = Call(target=to, value=value, call_data=data)
        intent = Eip712Intent(
            calls=(call,), paymaster=paymaster, paymaster_input=paymaster_input, **fees
        )
        return await self.execute(intent)

    async def send_transaction_batch(
        self,
        calls: Sequence[Union[Call, Mapping[str, Any]]],
        *,
        paymaster: Optional[str] = None,
        paymaster_input: Optional[BytesLike] = None,
        **fees: Optional[int],
    ) -> str:
        """
        Send several calls atomically through the batch caller

        Raises:
            ValueError: If ``calls`` is empty
            ConfigurationError: If no batch caller is configured
        """
        if not calls:
            raise ValueError("No calls provided")
        intent = Eip712Intent(
            calls=tuple(c if isinstance(c, Call) else Call(**c) for c in calls),
            paymaster=paymaster,
            paymaster_input=paymaster_input,
            **fees,
        )
        return await self.execute(intent)

    async def write_contract(
        self,
        address: str,
        abi: Sequence[Dict[str, Any]],
        function_name: str,
        args: Iterable[Any] = (),
        value: int = 0,
        *,
        paymaster: Optional[str] = None,
        paymaster_input: Optional[BytesLike] = None,
        **fees: Optional[int],
    ) -> str:
        """
        Call a contract function from the smart account

        Args:
            address: Contract address
            abi: Contract ABI
            function_name: Function to call
            args: Function arguments
            value: Wei to send
        """
        contract = self.w3.eth.contract(address=normalize_address(address), abi=abi)
        data = contract.encode_abi(function_name, args=list(args))
        return await self.send_transaction(
            address, data, value, paymaster=paymaster, paymaster_input=paymaster_input, **fees
        )

    async def deploy_account(
        self,
        init_call_data: BytesLike = b"",
        init_value: int = 0,
        paymaster: Optional[str] = None,
        paymaster_input: Optional[BytesLike] = None,
    ) -> str:
        """
        Deploy the smart account with an initial call to the batch caller

        Args:
            init_call_data: Call data for the batch caller during initialization
            init_value: Wei forwarded with the initial call

        Raises:
            ConfigurationError: If no batch caller is configured
            SmartAccountError: If the account is already deployed
        """
        identity = await self.get_identity()
        state = await self.oracle.probe(identity.derived_address, strict=self.strict_probe)
        if state is DeploymentState.DEPLOYED:
            raise SmartAccountError(
                f"Smart account {identity.derived_address} is already deployed", stage="shape"
            )

        init_call = Call(
            target=self.config.require_batch_caller(),
            value=init_value,
            call_data=init_call_data,
        )
        intent = Eip712Intent(calls=(init_call,), paymaster=paymaster, paymaster_input=paymaster_input)
        self.logger.info(f"Deploying smart account {identity.derived_address}")
        return await self.execute(intent, deployment_state=DeploymentState.UNDEPLOYED)

    async def sign_transaction(
        self,
        transaction: Union[Eip712Intent, LegacyIntent, Mapping[str, Any]],
    ) -> bytes:
        """
        Sign a transaction without broadcasting it

        Args:
            transaction: An intent, or a mapping carrying ``calls`` and the
                EIP-712 markers (``type: "eip712"``, ``paymaster``, ...)

        Returns:
            The serialized type 0x71 envelope

        Raises:
            InvalidEip712TransactionError: If the request is not an EIP-712 transaction
                or its fields do not validate
        """
        if isinstance(transaction, Mapping):
            assert_eip712_request(transaction)
            payload = {field: transaction[key] for key, field in _INTENT_KEYS.items() if key in transaction}
            try:
                intent = parse_intent(payload)
            except ValidationError as e:
                raise InvalidEip712TransactionError(
                    f"Invalid EIP712 transaction request: {e}", stage="validate", cause=e
                ) from e
        else:
            intent = transaction
        signed = await self.build_signed_transaction(intent)
        return signed.serialize()

    async def wait_for_receipt(
        self,
        tx_hash: Union[str, bytes],
        timeout: float = 120,
        poll_interval: float = 0.1,
    ) -> TxReceipt:
        """
        Wait for a transaction receipt

        Raises:
            ReceiptError: On timeout or a reverted transaction
        """
        return await self.submitter.wait_for_receipt(tx_hash, timeout=timeout, poll_interval=poll_interval)
