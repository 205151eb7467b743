"""
Row-to-entity mapping for the identity repository.

Each mapper takes a SQLAlchemy ``Row`` whose column labels match the
statement table and builds the target entity explicitly.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from identity_store.models import NameProjection, Role, User, UserRole


def _to_uuid(value) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def _to_datetime(value) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(value)


def row_to_role(row) -> Role:
    return Role(type=row.type, role_id=_to_uuid(row.role_id))


def row_to_user(row) -> User:
    """
    Build a User from a ``users`` row, including its concurrency token.

    ``roles`` is left empty; only the joined read populates it.
    """
    user = User(
        username=row.username,
        email=row.email,
        password_hash=row.password_hash,
        user_id=_to_uuid(row.user_id),
        deactivated_on=_to_datetime(row.deactivated_on),
        gdpr_signed_on=_to_datetime(row.gdpr_signed_on),
    )
    user.concurrency_token = str(row.concurrency_token)
    return user


def row_to_user_role(row) -> UserRole:
    return UserRole(user_id=_to_uuid(row.user_id), role_id=_to_uuid(row.role_id))


def row_to_name_projection(row) -> NameProjection:
    return NameProjection(id=_to_uuid(row.id), name=row.name)


def split_user_role_row(row) -> Tuple[User, Role]:
    """Split one users-join-roles row into its User and Role halves."""
    return row_to_user(row), Role(type=row.role_type, role_id=_to_uuid(row.role_id))


def group_roles_by_user(pairs: Iterable[Tuple[User, Role]]) -> List[User]:
    """
    Fold (User, Role) pairs into one User per identity.

    Users come back in first-seen order and each user's ``roles`` keeps
    the order the rows arrived in. The first row's copy of the user wins.
    """
    users: dict = {}
    for user, role in pairs:
        owner = users.setdefault(user.user_id, user)
        owner.roles.append(role)
    return list(users.values())
