"""
Tests for address and byte helpers.
"""
import pytest
from eth_utils import keccak
from hypothesis import given, settings, strategies as st
from pydantic import ValidationError

from smart_account_sdk.exceptions import MalformedAddressError, SmartAccountError
from smart_account_sdk.models import Call
from smart_account_sdk.utils import (
    address_to_bytes,
    compute_salt,
    normalize_address,
    short_hex,
    to_bytes,
    to_hex,
)
from conftest import OWNER


def test_normalize_address_checksums_lowercase():
    assert normalize_address(OWNER.lower()) == OWNER


def test_normalize_address_accepts_missing_prefix():
    assert normalize_address(OWNER[2:].lower()) == OWNER


def test_normalize_address_accepts_raw_bytes():
    assert normalize_address(bytes.fromhex(OWNER[2:])) == OWNER


@pytest.mark.parametrize("bad", [
    "0x1234",
    "0x" + "zz" * 20,
    "0x" + "11" * 21,
    b"\x11" * 19,
    b"\x11" * 32,
    12345,
    None,
])
def test_normalize_address_rejects_malformed(bad):
    with pytest.raises(MalformedAddressError) as exc_info:
        normalize_address(bad)
    # Also a ValueError so plain validation code can catch it
    assert isinstance(exc_info.value, ValueError)
    assert isinstance(exc_info.value, SmartAccountError)
    assert exc_info.value.stage == "input"


def test_compute_salt_is_keccak_of_address_bytes():
    assert compute_salt(OWNER) == keccak(bytes.fromhex(OWNER[2:]))
    assert len(compute_salt(OWNER)) == 32


def test_compute_salt_ignores_address_casing():
    assert compute_salt(OWNER.lower()) == compute_salt(OWNER)


def test_compute_salt_rejects_malformed_owner():
    with pytest.raises(MalformedAddressError):
        compute_salt("0xdeadbeef")


@settings(max_examples=50)
@given(raw=st.binary(min_size=20, max_size=20))
def test_salt_is_deterministic_per_owner(raw):
    owner = normalize_address(raw)
    assert compute_salt(owner) == compute_salt(raw)
    assert address_to_bytes(owner) == raw


def test_to_bytes_variants():
    assert to_bytes("0x0102") == b"\x01\x02"
    assert to_bytes("0102") == b"\x01\x02"
    assert to_bytes(bytearray(b"\x01")) == b"\x01"
    assert to_bytes("0x") == b""


def test_to_bytes_rejects_non_hex():
    with pytest.raises(ValueError):
        to_bytes("0xnothex")
    with pytest.raises(ValueError):
        to_bytes(42)


@pytest.mark.parametrize("odd", ["0x123", "123", "0x8c5a344"])
def test_to_bytes_rejects_odd_length_hex(odd):
    with pytest.raises(ValueError, match="Invalid hex data"):
        to_bytes(odd)


def test_call_rejects_odd_length_call_data():
    with pytest.raises(ValidationError):
        Call(target=OWNER, call_data="0x123")


def test_to_hex_and_short_hex():
    assert to_hex(b"\xab\xcd") == "0xabcd"
    assert short_hex(b"\x00" * 32) == "0x00000000…"
    assert short_hex("0x1234") == "0x1234"
