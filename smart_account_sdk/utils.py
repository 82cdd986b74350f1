"""
Utility functions for the Smart Account SDK.
"""
from typing import Union

from eth_utils import decode_hex, is_hex_address, keccak, to_checksum_address

from .exceptions import MalformedAddressError

BytesLike = Union[bytes, bytearray, str]

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def normalize_address(value: Union[str, bytes]) -> str:
    """
    Validate an account address and return its EIP-55 checksum form.

    Args:
        value: 0x-prefixed hex string or raw 20 bytes

    Returns:
        Checksummed address string

    Raises:
        MalformedAddressError: If the value is not exactly 20 bytes
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 20:
            raise MalformedAddressError(
                f"Address must be 20 bytes, got {len(value)} bytes"
            )
        return to_checksum_address(bytes(value))

    if not isinstance(value, str):
        raise MalformedAddressError(
            f"Address must be a hex string or bytes, got {type(value).__name__}"
        )

    candidate = value if value.startswith(("0x", "0X")) else "0x" + value
    if not is_hex_address(candidate):
        raise MalformedAddressError(f"Invalid address: {value!r}")
    return to_checksum_address(candidate)


def address_to_bytes(address: str) -> bytes:
    """Convert an address to its 20 raw bytes."""
    return bytes.fromhex(normalize_address(address)[2:])


def to_bytes(value: BytesLike) -> bytes:
    """
    Convert a hex string or bytes-like value to bytes.

    Raises:
        ValueError: If a string value is not valid hex or has an odd number of digits
    """
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return decode_hex(value)
        except ValueError as e:
            raise ValueError(f"Invalid hex data: {value!r}") from e
    raise ValueError(f"Expected bytes or hex string, got {type(value).__name__}")


def to_hex(value: bytes) -> str:
    """Render bytes as a 0x-prefixed hex string."""
    return "0x" + bytes(value).hex()


def compute_salt(owner_address: Union[str, bytes]) -> bytes:
    """
    Compute the account salt for an owner: keccak256 of the owner's 20 address bytes.

    Raises:
        MalformedAddressError: If the owner address is malformed
    """
    return keccak(address_to_bytes(normalize_address(owner_address)))


def short_hex(value: Union[str, bytes], keep: int = 10) -> str:
    """Truncate a hex value for logging."""
    text = to_hex(value) if isinstance(value, (bytes, bytearray)) else str(value)
    return text if len(text) <= keep else f"{text[:keep]}…"
