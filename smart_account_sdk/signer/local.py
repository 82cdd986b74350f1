"""
In-process signer backed by an eth-account private key.
"""
import logging
from typing import Any, Dict

from eth_account import Account
from eth_account.signers.local import LocalAccount

logger = logging.getLogger(__name__)


class LocalSigner:
    """Signs with a private key held in memory."""

    def __init__(self, private_key: str):
        """
        Args:
            private_key: Hex-encoded secp256k1 private key
        """
        self._account: LocalAccount = Account.from_key(private_key)
        self.address = self._account.address

    async def sign_hash(self, digest: bytes) -> bytes:
        if len(digest) != 32:
            raise ValueError(f"Digest must be 32 bytes, got {len(digest)}")
        signed = self._account.unsafe_sign_hash(digest)
        return bytes(signed.signature)

    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> bytes:
        signed = self._account.sign_typed_data(full_message=typed_data)
        logger.debug(f"Signed {typed_data.get('primaryType')} typed data as {self.address}")
        return bytes(signed.signature)
