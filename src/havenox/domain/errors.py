"""Error taxonomy shared by services and the API layer."""


class HavenoxError(Exception):
    """Base class for application errors."""


class ValidationError(HavenoxError):
    """Raised when caller input is missing or malformed."""


class MissingFieldsError(ValidationError):
    """Raised when a required request field is absent."""


class InvalidAddressError(ValidationError):
    """Raised when the ledger node reports an address as invalid."""


class SignatureInvalidError(HavenoxError):
    """Raised when the ledger node rejects a signed message."""


class NotFoundError(HavenoxError):
    """Raised when a tent id is unknown."""


class ConflictError(HavenoxError):
    """Raised when a write targets a stale tent version."""


class NotificationError(HavenoxError):
    """Raised when outbound invitation delivery fails."""


class RpcFailure(HavenoxError):
    """Raised after every ledger endpoint and retry has been exhausted."""

    def __init__(self, last_error: Exception | None) -> None:
        detail = str(last_error) if last_error is not None else "no attempts made"
        super().__init__(f"Kaspa RPC failed: {detail}")
        self.last_error = last_error
