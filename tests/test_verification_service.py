"""Tests for ownership verification orchestration."""

import asyncio

import pytest

from havenox.domain.errors import (
    InvalidAddressError,
    MissingFieldsError,
    RpcFailure,
    SignatureInvalidError,
    ValidationError,
)
from havenox.services.verification import VerificationService
from tests.conftest import FakeLedgerClient


def test_verify_returns_verified_for_valid_signature() -> None:
    ledger = FakeLedgerClient()
    service = VerificationService(ledger)

    result = asyncio.run(service.verify("kaspa:abc", "sig", "m"))

    assert result.status == "verified"
    assert result.address == "kaspa:abc"
    assert ledger.calls == ["validateAddresses", "messageVerify"]


@pytest.mark.parametrize(
    ("address", "signature", "message"),
    [("", "sig", "m"), ("kaspa:abc", None, "m"), ("kaspa:abc", "sig", "")],
)
def test_missing_fields_fail_before_any_rpc(address, signature, message) -> None:  # type: ignore[no-untyped-def]
    ledger = FakeLedgerClient()
    service = VerificationService(ledger)

    with pytest.raises(MissingFieldsError) as excinfo:
        asyncio.run(service.verify(address, signature, message))

    assert isinstance(excinfo.value, ValidationError)
    assert ledger.calls == []


def test_invalid_address_short_circuits_signature_check() -> None:
    ledger = FakeLedgerClient(address_valid=False)
    service = VerificationService(ledger)

    with pytest.raises(InvalidAddressError):
        asyncio.run(service.verify("kaspa:bad", "sig", "m"))

    assert ledger.calls == ["validateAddresses"]


def test_rejected_signature_raises_signature_invalid() -> None:
    service = VerificationService(FakeLedgerClient(signature_valid=False))

    with pytest.raises(SignatureInvalidError):
        asyncio.run(service.verify("kaspa:abc", "forged", "m"))


def test_empty_validation_entries_are_treated_as_invalid() -> None:
    class EmptyLedger(FakeLedgerClient):
        async def validate_address(self, address: str) -> dict[str, object]:
            return {}

    with pytest.raises(InvalidAddressError):
        asyncio.run(VerificationService(EmptyLedger()).verify("kaspa:abc", "s", "m"))


def test_rpc_failure_propagates() -> None:
    service = VerificationService(FakeLedgerClient(unavailable=True))

    with pytest.raises(RpcFailure):
        asyncio.run(service.verify("kaspa:abc", "sig", "m"))
