"""
Typed failures raised by the splitting engine.

Each class carries the HTTP status the transport layer maps it to; the
services themselves never build responses.
"""


class SplitLedgerError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(SplitLedgerError):
    """Malformed or incomplete input. Caller-correctable, never retried."""
    status_code = 400


class NotFoundError(SplitLedgerError):
    status_code = 404


class AuthenticationError(SplitLedgerError):
    """No usable access token on the request."""
    status_code = 401


class AuthorizationError(SplitLedgerError):
    status_code = 403


class ConflictError(SplitLedgerError):
    """The request clashes with the current state of the split.

    `retryable` is set when the clash came from a concurrent writer, in which
    case resubmitting the same request may succeed.
    """
    status_code = 409

    def __init__(self, detail: str, retryable: bool = False):
        super().__init__(detail)
        self.retryable = retryable


class InvariantError(SplitLedgerError):
    """A persisted split broke an invariant that upstream validation should
    have guaranteed. Server fault, not a user input problem."""
    status_code = 500
