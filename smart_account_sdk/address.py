"""
Deterministic smart account address derivation.

The address formula belongs to the on-chain factory; the client only
computes the salt and asks the factory's ``getAddressForSalt`` view.
"""
import logging
from typing import Optional, Union

from web3 import AsyncWeb3

from .config import DeploymentConfig
from .encoding import ACCOUNT_FACTORY_ABI
from .exceptions import ContractReadError
from .models import SmartAccountIdentity
from .utils import ZERO_ADDRESS, compute_salt, normalize_address, short_hex

logger = logging.getLogger(__name__)


class AddressDeriver:
    """Resolves the counterfactual account address for an owner key."""

    def __init__(self, w3: AsyncWeb3, config: DeploymentConfig, logger: Optional[logging.Logger] = None):
        self.w3 = w3
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.factory = w3.eth.contract(address=config.factory_address, abi=ACCOUNT_FACTORY_ABI)

    async def derive(self, owner_address: Union[str, bytes]) -> SmartAccountIdentity:
        """
        Derive the smart account identity for an owner.

        Args:
            owner_address: The initial owner (K1 signer) address

        Returns:
            SmartAccountIdentity with salt = keccak256(owner) and the factory-reported address

        Raises:
            MalformedAddressError: If the owner address is not 20 bytes
            ContractReadError: If the factory read fails or returns no address
        """
        owner = normalize_address(owner_address)
        salt = compute_salt(owner)

        try:
            derived = await self.factory.functions.getAddressForSalt(salt).call()
        except Exception as e:
            self.logger.error(f"getAddressForSalt failed for owner {owner}: {e}")
            raise ContractReadError(
                f"Failed to read account address from factory {self.config.factory_address}: {e}",
                stage="derive",
                cause=e,
            ) from e

        derived = normalize_address(derived)
        if derived == ZERO_ADDRESS:
            raise ContractReadError(
                f"Factory {self.config.factory_address} returned the zero address for salt {short_hex(salt)}",
                stage="derive",
            )

        self.logger.debug(f"Derived smart account {derived} for owner {owner}")
        return SmartAccountIdentity(owner_address=owner, salt=salt, derived_address=derived)
