"""Domain error taxonomy."""


class PrintapicError(Exception):
    """Base class for errors with a machine-checkable kind."""

    kind = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.__class__.__doc__ or self.kind)

    @property
    def message(self) -> str:
        return str(self)


class Unauthenticated(PrintapicError):
    """Missing or invalid credentials."""

    kind = "unauthenticated"


class Forbidden(PrintapicError):
    """The resource belongs to another user."""

    kind = "forbidden"


class NotFound(PrintapicError):
    """The requested resource does not exist."""

    kind = "not_found"


class InvalidRequest(PrintapicError):
    """Missing or malformed request fields."""

    kind = "invalid_request"


class UnsupportedOperation(PrintapicError):
    """The requested operation or instruction is not supported."""

    kind = "unsupported_operation"


class InsufficientFunds(PrintapicError):
    """Not enough tokens for this operation."""

    kind = "insufficient_funds"


class InvalidTransition(PrintapicError):
    """The edit is not in the expected state."""

    kind = "invalid_transition"


class CapacityExceeded(PrintapicError):
    """Too many edits are waiting to be processed."""

    kind = "capacity_exceeded"


class ProviderError(PrintapicError):
    """The image provider rejected or failed the request."""

    kind = "provider_error"


class ProviderTimeout(ProviderError):
    """The image provider did not finish in time."""

    kind = "provider_timeout"


class StoreError(PrintapicError):
    """The record store failed."""

    kind = "store_error"
