"""
Async data-access layer for users, roles and role assignments.

Writes to users are guarded by a store-assigned concurrency token so
concurrent writers cannot silently overwrite each other.
"""

from identity_store.core.exceptions import (
    AmbiguousResult,
    IdentityStoreError,
    InactiveTransactionError,
    NotFound,
    StoreFault,
    TransactionMismatchError,
    WriteRejected,
)
from identity_store.models import NameProjection, Role, User, UserRole
from identity_store.repositories import IdentityRepository
from identity_store.services import IdentityContext

__all__ = [
    "IdentityRepository",
    "IdentityContext",
    "Role",
    "User",
    "UserRole",
    "NameProjection",
    "IdentityStoreError",
    "NotFound",
    "AmbiguousResult",
    "WriteRejected",
    "InactiveTransactionError",
    "StoreFault",
    "TransactionMismatchError",
]
