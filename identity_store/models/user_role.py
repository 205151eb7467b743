"""
UserRole association and read-model projections.
"""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class UserRole:
    """Links a user to a role. Has no identity of its own."""

    user_id: UUID
    role_id: UUID


@dataclass(frozen=True)
class NameProjection:
    """
    Narrow read model over users: identity and display name only.

    Returned by ``get_all_name_projections``; decoupled from the full
    User shape.
    """

    id: UUID
    name: str
