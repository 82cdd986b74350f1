"""
Signer capability for the Smart Account SDK.

The pipeline only needs something that can sign a 32-byte digest or an
EIP-712 typed-data object. How the key is custodied is up to the adapter.
"""
from typing import Any, Dict, Protocol, runtime_checkable

__all__ = ["Signer", "LocalSigner", "JsonRpcSigner"]


@runtime_checkable
class Signer(Protocol):
    """Protocol for signer backends"""
    address: str

    async def sign_hash(self, digest: bytes) -> bytes:
        """Sign a raw 32-byte digest and return the 65-byte signature"""
        ...

    async def sign_typed_data(self, typed_data: Dict[str, Any]) -> bytes:
        """Sign a full EIP-712 message (types, domain, primaryType, message)"""
        ...


from .local import LocalSigner  # noqa: E402
from .json_rpc import JsonRpcSigner  # noqa: E402
