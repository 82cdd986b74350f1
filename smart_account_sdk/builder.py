"""
Transaction shaping: turns an intent into the on-chain target, data and value.

An undeployed (counterfactual) account cannot receive a plain call, so its
first transaction deploys it through the factory and runs the intended call
from the initializer. Every later transaction takes the plain path.
"""
import logging
from typing import Optional

from .config import DeploymentConfig
from .encoding import CallEncoder
from .exceptions import InvalidEip712TransactionError
from .models import (
    DeploymentState,
    Eip712Intent,
    SenderKind,
    ShapedTransaction,
    SmartAccountIdentity,
)

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """Shapes intents into transaction skeletons for either deployment state."""

    def __init__(self, config: DeploymentConfig, encoder: Optional[CallEncoder] = None):
        self.config = config
        self.encoder = encoder or CallEncoder(config)

    def shape(
        self,
        intent: Eip712Intent,
        deployment_state: DeploymentState,
        identity: SmartAccountIdentity,
        validator_address: Optional[str] = None,
    ) -> ShapedTransaction:
        """
        Shape an intent for the given deployment state.

        Args:
            intent: The calls to execute and optional paymaster
            deployment_state: Fresh result of the deployment probe
            identity: Owner, salt and derived account address
            validator_address: Validator installed on deployment (defaults to config)

        Returns:
            ShapedTransaction targeting the account's call (deployed) or the factory (undeployed)

        Raises:
            InvalidEip712TransactionError: If the intent is not an EIP-712 intent
            ConfigurationError: If a batch is requested without a batch caller
        """
        if not isinstance(intent, Eip712Intent):
            raise InvalidEip712TransactionError(stage="shape")

        validator = validator_address or self.config.validator_address
        calls = intent.calls
        value = intent.total_value

        if deployment_state is DeploymentState.DEPLOYED:
            if intent.is_batch:
                to = self.config.require_batch_caller()
                data = self.encoder.encode_batch(calls)
            else:
                to = calls[0].target
                data = self.encoder.encode_single(calls[0])
            sender = identity.derived_address
            sender_kind = SenderKind.SMART_ACCOUNT
        elif deployment_state is DeploymentState.UNDEPLOYED:
            initializer = self.encoder.encode_initializer(
                identity.owner_address, validator, self.encoder.inner_call(calls)
            )
            to = self.config.factory_address
            data = self.encoder.encode_deploy_account(identity.salt, initializer)
            # The counterfactual account has no code yet; the owner key sends its deployment
            sender = identity.owner_address
            sender_kind = SenderKind.OWNER
        else:
            raise ValueError(f"Unknown deployment state: {deployment_state!r}")

        logger.debug(
            f"Shaped {deployment_state.value} transaction: {len(calls)} call(s), "
            f"to={to}, value={value}, sender={sender}"
        )
        return ShapedTransaction(
            deployment_state=deployment_state,
            sender=sender,
            sender_kind=sender_kind,
            to=to,
            data=data,
            value=value,
            paymaster=intent.paymaster,
            paymaster_input=intent.paymaster_input,
            gas_per_pubdata=self.config.gas_per_pubdata,
        )
