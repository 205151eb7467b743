"""
User entity.

Carries the store-assigned concurrency token used by the repository's
optimistic update protocol.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
from uuid import UUID, uuid4

from identity_store.models.role import Role


@dataclass
class User:
    """
    A user account.

    Attributes:
        username: Login name
        email: Contact address
        password_hash: Output of the configured password hasher
        user_id: Client-generated UUID identity, assigned at construction
        deactivated_on: When the account was deactivated (UTC), if ever
        gdpr_signed_on: When the GDPR agreement was accepted (UTC), if ever
        concurrency_token: Row version as last read or written by this
            process. Not a constructor argument: only the repository sets
            it, from the value the store reports after a read or write.
        roles: Roles loaded by the joined read. A transient projection,
            not a source of truth; empty for every other read path.
    """

    username: str
    email: str
    password_hash: str
    user_id: UUID = field(default_factory=uuid4)
    deactivated_on: Optional[datetime] = None
    gdpr_signed_on: Optional[datetime] = None
    concurrency_token: Optional[str] = field(default=None, init=False)
    roles: List[Role] = field(default_factory=list, compare=False)
