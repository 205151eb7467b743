"""
Error taxonomy for the identity store.

Lookup failures and aggregate rollbacks are raised as the exceptions
below. Store faults (connectivity, constraint, syntax) are SQLAlchemy's
own exceptions and reach the caller unchanged; ``StoreFault`` names their
common base for ``except`` clauses.
"""

from typing import Any

from sqlalchemy.exc import SQLAlchemyError


StoreFault = SQLAlchemyError


class IdentityStoreError(Exception):
    """Base exception for the identity store"""
    pass


class NotFound(IdentityStoreError):
    """Raised when a lookup expecting exactly one row matched none"""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} not found: {key}")


class AmbiguousResult(IdentityStoreError):
    """Raised when a lookup expecting exactly one row matched several"""

    def __init__(self, entity: str, key: Any):
        self.entity = entity
        self.key = key
        super().__init__(f"More than one {entity} matched: {key}")


class WriteRejected(IdentityStoreError):
    """Raised inside an aggregate operation when a write affected no rows"""
    pass


class InactiveTransactionError(IdentityStoreError):
    """Raised when a call is scoped to a transaction that already ended"""
    pass


class TransactionMismatchError(IdentityStoreError):
    """Raised when a supplied transaction belongs to a different connection"""
    pass
