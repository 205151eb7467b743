"""
Persisted table layout for users, roles and role assignments.

Tables are declared with SQLAlchemy Core so development databases and
tests can be bootstrapped with ``create_all``. Production schemas are
managed outside this package; the repository never builds queries from
these objects and relies only on the column names declared here.

Ids and timestamps are TEXT (UUID strings, ISO-8601 strings) so the same
statements run unchanged on SQLite and PostgreSQL.
"""

from sqlalchemy import Column, ForeignKey, MetaData, String, Table


metadata = MetaData()


users_table = Table(
    "users",
    metadata,
    Column("user_id", String(36), primary_key=True, doc="UUID primary key"),
    Column("username", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("password_hash", String(255), nullable=False),
    Column("deactivated_on", String, nullable=True, doc="UTC ISO timestamp"),
    Column("gdpr_signed_on", String, nullable=True, doc="UTC ISO timestamp"),
    Column(
        "concurrency_token",
        String(64),
        nullable=False,
        doc="Store-assigned row version, replaced on every write"
    ),
)


roles_table = Table(
    "roles",
    metadata,
    Column("role_id", String(36), primary_key=True, doc="UUID primary key"),
    Column("type", String(255), nullable=False),
)


# No uniqueness constraint: duplicate (user_id, role_id) pairs are allowed
user_roles_table = Table(
    "user_roles",
    metadata,
    Column("user_id", String(36), ForeignKey("users.user_id"), nullable=False),
    Column("role_id", String(36), ForeignKey("roles.role_id"), nullable=False),
)


async def create_schema(connection) -> None:
    """
    Create all identity tables on an AsyncConnection.

    Example:
        async with engine.begin() as conn:
            await create_schema(conn)
    """
    await connection.run_sync(metadata.create_all)


async def drop_schema(connection) -> None:
    """Drop all identity tables on an AsyncConnection."""
    await connection.run_sync(metadata.drop_all)
