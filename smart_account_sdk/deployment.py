"""
Deployment probe for smart account addresses.

The result is never cached: deployment is driven by other parties'
transactions and has to be re-read for every transaction.
"""
import logging
from typing import Optional

from web3 import AsyncWeb3

from ._rate_limited_log import rate_limited_log
from .exceptions import DeploymentProbeFailedError
from .models import DeploymentState
from .utils import normalize_address


class DeploymentOracle:
    """Classifies an address as deployed or undeployed by checking for bytecode."""

    def __init__(self, w3: AsyncWeb3, logger: Optional[logging.Logger] = None):
        self.w3 = w3
        self.logger = logger or logging.getLogger(__name__)

    async def probe(self, address: str, strict: bool = False) -> DeploymentState:
        """
        Read the bytecode at ``address``.

        Args:
            address: Account address to check
            strict: Raise on read failure instead of reporting UNDEPLOYED

        Returns:
            DeploymentState.DEPLOYED if bytecode is present, else UNDEPLOYED

        Raises:
            DeploymentProbeFailedError: If the read fails and ``strict`` is set
        """
        address = normalize_address(address)
        try:
            code = await self.w3.eth.get_code(address)
        except Exception as e:
            if strict:
                self.logger.error(f"Bytecode probe for {address} failed: {e}")
                raise DeploymentProbeFailedError(
                    f"Could not read bytecode at {address}: {e}", stage="probe", cause=e
                ) from e
            rate_limited_log(
                f"Bytecode probe for {address} failed, treating as undeployed "
                f"(unconfirmed): {type(e).__name__}: {e}",
                level="warning",
                logger_instance=self.logger,
            )
            return DeploymentState.UNDEPLOYED

        deployed = code is not None and len(bytes(code)) > 0
        self.logger.debug(f"Account {address} deployed={deployed}")
        return DeploymentState.DEPLOYED if deployed else DeploymentState.UNDEPLOYED

    async def is_deployed(self, address: str) -> bool:
        """True if bytecode exists at ``address``; read errors count as not deployed."""
        return await self.probe(address) is DeploymentState.DEPLOYED
