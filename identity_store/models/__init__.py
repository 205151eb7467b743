"""
Entity models and table layout for the identity store.

Import models from this module; the table objects live in
``identity_store.models.schema``.
"""

from identity_store.models.role import Role
from identity_store.models.user import User
from identity_store.models.user_role import NameProjection, UserRole
from identity_store.models.schema import (
    metadata,
    users_table,
    roles_table,
    user_roles_table,
    create_schema,
    drop_schema,
)

__all__ = [
    # Entities
    "Role",
    "User",
    "UserRole",
    "NameProjection",
    # Schema
    "metadata",
    "users_table",
    "roles_table",
    "user_roles_table",
    "create_schema",
    "drop_schema",
]
