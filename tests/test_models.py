"""
Tests for the transaction data models.
"""
import pytest
from pydantic import ValidationError

from smart_account_sdk.exceptions import InvalidEip712TransactionError
from smart_account_sdk.models import (
    Call,
    DeploymentState,
    Eip712Intent,
    LegacyIntent,
    SenderKind,
    ShapedTransaction,
    assert_eip712_request,
    is_eip712_transaction,
    parse_intent,
)
from conftest import FACTORY, OWNER, RECIPIENT, TEST_CHAIN_ID


def test_call_normalizes_fields():
    call = Call(target=RECIPIENT.lower(), value=5, call_data="0xdeadbeef")
    assert call.target == RECIPIENT
    assert call.call_data == bytes.fromhex("deadbeef")
    assert call.allow_failure is False
    assert call.as_abi_tuple() == (RECIPIENT, False, 5, bytes.fromhex("deadbeef"))


def test_call_rejects_negative_value():
    with pytest.raises(ValidationError):
        Call(target=RECIPIENT, value=-1)


def test_call_rejects_malformed_target():
    with pytest.raises(ValidationError):
        Call(target="0x1234")


def test_intent_requires_at_least_one_call():
    with pytest.raises(ValidationError):
        Eip712Intent(calls=())


def test_intent_total_value_and_batch_flag():
    intent = Eip712Intent(calls=(Call(target=RECIPIENT, value=2), Call(target=FACTORY, value=3)))
    assert intent.total_value == 5
    assert intent.is_batch is True
    assert Eip712Intent(calls=(Call(target=RECIPIENT),)).is_batch is False


def test_intent_paymaster_fields_come_together():
    with pytest.raises(ValidationError):
        Eip712Intent(calls=(Call(target=RECIPIENT),), paymaster=FACTORY)
    intent = Eip712Intent(calls=(Call(target=RECIPIENT),), paymaster=FACTORY, paymaster_input="0x")
    assert intent.paymaster == FACTORY
    assert intent.paymaster_input == b""


def test_intent_is_immutable():
    intent = Eip712Intent(calls=(Call(target=RECIPIENT),))
    with pytest.raises(ValidationError):
        intent.gas = 10


def test_parse_intent_defaults_to_eip712():
    intent = parse_intent({"calls": [{"target": RECIPIENT, "value": 1}]})
    assert isinstance(intent, Eip712Intent)
    assert intent.calls[0].value == 1


def test_parse_intent_dispatches_on_type():
    intent = parse_intent({"type": "legacy", "calls": [{"target": RECIPIENT}]})
    assert isinstance(intent, LegacyIntent)


def test_parse_intent_rejects_unknown_type():
    with pytest.raises(ValidationError):
        parse_intent({"type": "eip1559", "calls": [{"target": RECIPIENT}]})


def test_stage_transitions_create_new_values():
    shaped = ShapedTransaction(
        deployment_state=DeploymentState.UNDEPLOYED,
        sender=OWNER,
        sender_kind=SenderKind.OWNER,
        to=FACTORY,
        data=b"\x01",
        value=7,
    )
    prepared = shaped.prepare(
        gas=100, nonce=1, max_fee_per_gas=10, max_priority_fee_per_gas=1, chain_id=TEST_CHAIN_ID
    )
    signed = prepared.with_signature(b"\x02" * 65)

    assert prepared.to == shaped.to and prepared.value == 7
    assert prepared.deployment_state is DeploymentState.UNDEPLOYED
    assert signed.custom_signature == b"\x02" * 65
    assert signed.nonce == 1
    assert not hasattr(shaped, "nonce")


@pytest.mark.parametrize("transaction", [
    {"type": "eip712"},
    {"customSignature": "0x01"},
    {"paymaster": FACTORY},
    {"paymasterInput": "0x1234"},
    {"factoryDeps": ["0x" + "00" * 32]},
    {"gasPerPubdata": 50_000},
    {"gasPerPubdata": 0},
])
def test_eip712_markers_recognised(transaction):
    assert is_eip712_transaction(transaction) is True
    assert_eip712_request(transaction)


@pytest.mark.parametrize("transaction", [
    {},
    {"type": "legacy"},
    {"type": "eip1559", "to": RECIPIENT},
    {"factoryDeps": []},
    {"paymaster": None},
    {"gasPerPubdata": "50000"},
    {"gasPerPubdata": True},
])
def test_missing_markers_rejected(transaction):
    assert is_eip712_transaction(transaction) is False
    with pytest.raises(InvalidEip712TransactionError) as exc_info:
        assert_eip712_request(transaction)
    message = str(exc_info.value)
    assert "Transaction is not an EIP712 transaction." in message
    assert "`customSignature`" in message and "`factoryDeps`" in message
