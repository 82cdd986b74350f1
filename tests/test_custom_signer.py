"""
Tests for the signer adapters.
"""
import json

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from smart_account_sdk.exceptions import SignerRejectedError
from smart_account_sdk.signer import JsonRpcSigner, LocalSigner, Signer
from smart_account_sdk.utils import to_hex
from conftest import OWNER, TEST_CHAIN_ID, TEST_PRIV_KEY, VALIDATOR

WALLET_URL = "https://wallet.example.com/rpc"
FAKE_SIGNATURE = "0x" + "11" * 65

TYPED_DATA = {
    "types": {
        "EIP712Domain": [
            {"name": "name", "type": "string"},
            {"name": "version", "type": "string"},
            {"name": "chainId", "type": "uint256"},
            {"name": "verifyingContract", "type": "address"},
        ],
        "SignMessage": [
            {"name": "details", "type": "string"},
            {"name": "hash", "type": "bytes32"},
        ],
    },
    "primaryType": "SignMessage",
    "domain": {"name": "zkSync", "version": "2", "chainId": TEST_CHAIN_ID, "verifyingContract": VALIDATOR},
    "message": {"details": "You are signing a hash of your transaction", "hash": b"\x42" * 32},
}


def test_local_signer_address():
    assert LocalSigner(TEST_PRIV_KEY).address == OWNER


def test_signers_satisfy_protocol():
    assert isinstance(LocalSigner(TEST_PRIV_KEY), Signer)
    assert isinstance(JsonRpcSigner(WALLET_URL, OWNER), Signer)


@pytest.mark.asyncio
async def test_local_signer_sign_hash(local_signer):
    digest = b"\x07" * 32
    signature = await local_signer.sign_hash(digest)
    assert len(signature) == 65
    assert Account._recover_hash(digest, signature=signature) == OWNER


@pytest.mark.asyncio
async def test_local_signer_rejects_short_digest(local_signer):
    with pytest.raises(ValueError):
        await local_signer.sign_hash(b"\x07" * 31)


@pytest.mark.asyncio
async def test_local_signer_sign_typed_data(local_signer):
    signature = await local_signer.sign_typed_data(TYPED_DATA)
    recovered = Account.recover_message(encode_typed_data(full_message=TYPED_DATA), signature=signature)
    assert recovered == OWNER


def test_json_rpc_signer_requires_https():
    with pytest.raises(ValueError, match="https"):
        JsonRpcSigner("http://wallet.example.com", OWNER)
    # Local development wallets are allowed over plain http
    JsonRpcSigner("http://localhost:8545", OWNER)
    JsonRpcSigner("http://127.0.0.1:8545", OWNER)


@pytest.mark.asyncio
async def test_json_rpc_sign_typed_data(requests_mock):
    requests_mock.post(WALLET_URL, json={"jsonrpc": "2.0", "id": 1, "result": FAKE_SIGNATURE})
    signer = JsonRpcSigner(WALLET_URL, OWNER.lower())

    signature = await signer.sign_typed_data(TYPED_DATA)

    assert to_hex(signature) == FAKE_SIGNATURE
    body = requests_mock.last_request.json()
    assert body["method"] == "eth_signTypedData_v4"
    assert body["params"][0] == OWNER
    sent = json.loads(body["params"][1])
    assert sent["primaryType"] == "SignMessage"
    assert sent["domain"]["chainId"] == TEST_CHAIN_ID
    assert sent["message"]["hash"] == "0x" + "42" * 32


@pytest.mark.asyncio
async def test_json_rpc_large_integers_sent_as_strings(requests_mock):
    requests_mock.post(WALLET_URL, json={"jsonrpc": "2.0", "id": 1, "result": FAKE_SIGNATURE})
    signer = JsonRpcSigner(WALLET_URL, OWNER)
    big = {**TYPED_DATA, "message": {**TYPED_DATA["message"], "amount": 2**200}}

    await signer.sign_typed_data(big)

    sent = json.loads(requests_mock.last_request.json()["params"][1])
    assert sent["message"]["amount"] == str(2**200)


@pytest.mark.asyncio
async def test_json_rpc_sign_hash(requests_mock):
    requests_mock.post(WALLET_URL, json={"jsonrpc": "2.0", "id": 1, "result": FAKE_SIGNATURE})
    signer = JsonRpcSigner(WALLET_URL, OWNER)

    await signer.sign_hash(b"\x09" * 32)

    body = requests_mock.last_request.json()
    assert body["method"] == "eth_sign"
    assert body["params"] == [OWNER, "0x" + "09" * 32]


@pytest.mark.asyncio
async def test_json_rpc_user_rejection(requests_mock):
    requests_mock.post(WALLET_URL, json={
        "jsonrpc": "2.0", "id": 1, "error": {"code": 4001, "message": "User denied message signature"},
    })
    signer = JsonRpcSigner(WALLET_URL, OWNER)

    with pytest.raises(SignerRejectedError, match="User rejected") as exc_info:
        await signer.sign_typed_data(TYPED_DATA)
    assert exc_info.value.stage == "sign"


@pytest.mark.asyncio
async def test_json_rpc_other_error(requests_mock):
    requests_mock.post(WALLET_URL, json={
        "jsonrpc": "2.0", "id": 1, "error": {"code": -32603, "message": "Internal error"},
    })
    signer = JsonRpcSigner(WALLET_URL, OWNER)

    with pytest.raises(SignerRejectedError, match="Internal error"):
        await signer.sign_typed_data(TYPED_DATA)


@pytest.mark.asyncio
async def test_json_rpc_http_failure(requests_mock):
    requests_mock.post(WALLET_URL, status_code=502)
    signer = JsonRpcSigner(WALLET_URL, OWNER)

    with pytest.raises(SignerRejectedError) as exc_info:
        await signer.sign_typed_data(TYPED_DATA)
    assert exc_info.value.cause is not None


@pytest.mark.asyncio
async def test_json_rpc_invalid_json(requests_mock):
    requests_mock.post(WALLET_URL, text="<html>gateway</html>")
    signer = JsonRpcSigner(WALLET_URL, OWNER)

    with pytest.raises(SignerRejectedError):
        await signer.sign_typed_data(TYPED_DATA)


@pytest.mark.asyncio
async def test_json_rpc_missing_result(requests_mock):
    requests_mock.post(WALLET_URL, json={"jsonrpc": "2.0", "id": 1})
    signer = JsonRpcSigner(WALLET_URL, OWNER)

    with pytest.raises(SignerRejectedError, match="Missing result"):
        await signer.sign_typed_data(TYPED_DATA)
