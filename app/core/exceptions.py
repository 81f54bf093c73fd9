# app/core/exceptions.py
"""
Failure kinds raised by the jar store and the ledger.

Every ledger error carries a ``kind`` so the HTTP layer (and any other
caller) can tell the five cases apart without string matching.
"""


class LedgerError(Exception):
    kind = "ledger_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LedgerError):
    """Malformed input; the caller can fix it and try again."""
    kind = "validation_error"


class NotFoundError(LedgerError):
    """A referenced jar or transaction does not exist."""
    kind = "not_found"


class InsufficientFundsError(LedgerError):
    """A withdrawal or transfer would drive a jar balance negative."""
    kind = "insufficient_funds"

    def __init__(self, message: str, jar_id=None, balance=None, requested=None):
        super().__init__(message)
        self.jar_id = jar_id
        self.balance = balance
        self.requested = requested


class ConflictError(LedgerError):
    """The operation would break a referential or integrity constraint."""
    kind = "conflict"


class TransientStoreError(LedgerError):
    """Infrastructure hiccup; nothing was changed and the call may be retried."""
    kind = "transient_store_failure"
