"""Ownership verification against the Kaspa node."""

from dataclasses import dataclass

from havenox.adapters.kaspa_rpc_client import LedgerClient
from havenox.domain.errors import (
    InvalidAddressError,
    MissingFieldsError,
    SignatureInvalidError,
)


@dataclass(frozen=True)
class VerificationResult:
    """Outcome of a successful verification."""

    address: str
    status: str = "verified"


@dataclass
class VerificationService:
    """Orchestrates address validation and message verification calls."""

    ledger_client: LedgerClient

    async def verify(
        self, address: str | None, signature: str | None, message: str | None
    ) -> VerificationResult:
        """Verify that ``signature`` over ``message`` was produced by ``address``."""
        if not address or not signature or not message:
            raise MissingFieldsError("Missing fields")
        validation = await self.ledger_client.validate_address(address)
        if not _first_entry_valid(validation):
            raise InvalidAddressError("Invalid Kaspa address")
        verdict = await self.ledger_client.verify_message(
            address=address, signature=signature, message=message
        )
        if verdict.get("isValid") is not True:
            raise SignatureInvalidError("Signature verification failed")
        return VerificationResult(address=address)


def _first_entry_valid(validation: dict[str, object]) -> bool:
    entries = validation.get("entries")
    if not isinstance(entries, list) or not entries:
        return False
    entry = entries[0]
    return isinstance(entry, dict) and entry.get("isValid") is True
