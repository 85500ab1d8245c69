"""
Domain errors raised by the services.

Routers translate these into HTTP status codes. Nothing here
is retried automatically: every error surfaces to the caller.
"""


class MoneyFlowError(Exception):
    """Base class for all service-level errors."""


class ValidationError(MoneyFlowError, ValueError):
    """Input the ledger cannot accept, such as a negative amount."""


class NotFoundError(MoneyFlowError):
    """A referenced entity does not exist."""


class InconsistentStateError(MoneyFlowError):
    """
    The stored balance chain does not add up.

    Raised by the ledger audit. The ledger is never corrected
    automatically: this needs manual reconciliation.
    """
