from enum import Enum


class ErrorKind(str, Enum):
    """Categories of business rule violations."""
    INSUFFICIENT_BALANCE = "insufficient_balance"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INVALID_AMOUNT = "invalid_amount"
    GENERAL_ERROR = "general_error"


class AccountError(Exception):
    """Raised by the account service when a request breaks a business rule.

    The ``kind`` tells the API layer which status to answer with; callers
    should switch on it rather than subclass this exception.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.GENERAL_ERROR):
        super().__init__(message)
        self.message = message
        self.kind = kind

    def __repr__(self) -> str:
        return f"AccountError(kind={self.kind.value!r}, message={self.message!r})"
