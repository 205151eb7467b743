"""
Identity repository for user, role and role-assignment data access.

Provides typed CRUD and a joined user-with-roles read over parameterized
SQL. The repository is stateless: every method receives the caller's
AsyncConnection and, optionally, an AsyncTransaction to scope the call
to. It never opens, commits or closes anything itself.
"""

from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import insert
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncTransaction

from identity_store.core.exceptions import (
    AmbiguousResult,
    InactiveTransactionError,
    NotFound,
    TransactionMismatchError,
)
from identity_store.core.logging_config import get_logger, log_with_context
from identity_store.models import NameProjection, Role, User, UserRole, user_roles_table
from identity_store.repositories.concurrency import (
    execute_versioned_write,
    user_write_params,
)
from identity_store.repositories.mapping import (
    group_roles_by_user,
    row_to_name_projection,
    row_to_role,
    row_to_user,
    row_to_user_role,
    split_user_role_row,
)
from identity_store.repositories.statements import get_statements

logger = get_logger(__name__)


def _scope(
    connection: AsyncConnection,
    transaction: Optional[AsyncTransaction],
) -> AsyncConnection:
    """Pick the connection a call runs on, honouring a supplied transaction."""
    if transaction is None:
        return connection
    if not transaction.is_active:
        raise InactiveTransactionError(
            "Cannot run a repository call in a transaction that has already ended"
        )
    if transaction.connection is not connection:
        raise TransactionMismatchError(
            "The supplied transaction was begun on a different connection"
        )
    return transaction.connection


def _exactly_one(rows: Sequence, entity: str, key: UUID):
    if not rows:
        raise NotFound(entity, key)
    if len(rows) > 1:
        log_with_context(
            logger,
            "warning",
            f"{entity} lookup matched more than one row",
            entity=entity,
            key=str(key),
            rows=len(rows),
        )
        raise AmbiguousResult(entity, key)
    return rows[0]


class IdentityRepository:
    """
    Repository for users, roles and user-role assignments.

    Holds no state between calls, so one instance can be shared by any
    number of concurrent callers, each with its own connection.

    Every method takes ``connection`` and an optional ``transaction``.
    When a transaction is supplied the call runs on that transaction's
    connection and its writes stay invisible to other connections until
    the transaction commits.

    Store faults (constraint violations, duplicate keys, lost
    connections) propagate unchanged as SQLAlchemy exceptions.
    """

    # --- Users ---

    async def get_user_by_id(
        self,
        user_id: UUID,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> User:
        """
        Retrieve a user by id, including its current concurrency token.

        Raises:
            NotFound: If no user has this id
            AmbiguousResult: If more than one row matched (integrity fault)
        """
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(
            statements["user_get_by_id"], {"user_id": str(user_id)}
        )
        return row_to_user(_exactly_one(result.all(), "User", user_id))

    async def get_user_with_roles_by_id(
        self,
        user_id: UUID,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> User:
        """
        Retrieve a user together with its assigned roles.

        Runs one inner join across user_roles, users and roles and folds
        the rows into a single User whose ``roles`` follow result order.

        Raises:
            NotFound: If the user does not exist OR has no role
                assignments. The join is inner, so the two cases are
                indistinguishable here; use get_user_by_id to tell them
                apart.
            AmbiguousResult: If rows for more than one user came back

        Example:
            >>> user = await repo.get_user_with_roles_by_id(user_id, conn)
            >>> [role.type for role in user.roles]
            ['Admin', 'Auditor']
        """
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(
            statements["user_get_by_id_with_roles"], {"user_id": str(user_id)}
        )
        users = group_roles_by_user(split_user_role_row(row) for row in result.all())
        return _exactly_one(users, "User", user_id)

    async def get_all_users(
        self,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> List[User]:
        """Return every user in store-defined order. ``roles`` stay empty."""
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(statements["user_get_all"])
        return [row_to_user(row) for row in result.all()]

    async def insert_user(
        self,
        user: User,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> bool:
        """
        Insert a user whose ``user_id`` is already assigned.

        On success the store-assigned concurrency token is written back
        into ``user.concurrency_token``.

        Returns:
            True if the row was written, False if the store reported no row

        Raises:
            IntegrityError: On duplicate ``user_id`` (store fault, not False)
        """
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        token = await execute_versioned_write(
            conn, statements["user_insert"], user_write_params(user)
        )
        if token is None:
            return False

        user.concurrency_token = token
        log_with_context(
            logger,
            "debug",
            "User inserted",
            operation="insert_user",
            user_id=str(user.user_id),
            rows_affected=1,
        )
        return True

    async def update_user(
        self,
        user: User,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> bool:
        """
        Update a user under optimistic concurrency control.

        The UPDATE only matches when both the id and the concurrency token
        the caller holds still match the stored row. On success every
        mutable column is written and the new token is assigned to
        ``user.concurrency_token``.

        Args:
            user: User carrying the token from its last read or write

        Returns:
            True if the row was updated.
            False if another writer changed the row since this caller last
            read it (or the row no longer exists). The caller's token is
            left as it was; reload and retry, or abort.

        Example:
            >>> user = await repo.get_user_by_id(user_id, conn)
            >>> user.email = "new@example.com"
            >>> if not await repo.update_user(user, conn):
            ...     user = await repo.get_user_by_id(user_id, conn)  # stale, reload

        Note:
            A user that was never read or inserted has no token and can
            never match; the call returns False without touching the store.
        """
        if user.concurrency_token is None:
            log_with_context(
                logger,
                "info",
                "User update skipped: no concurrency token held",
                operation="update_user",
                user_id=str(user.user_id),
            )
            return False

        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        token = await execute_versioned_write(
            conn,
            statements["user_update"],
            user_write_params(user, expected_token=user.concurrency_token),
        )
        if token is None:
            log_with_context(
                logger,
                "info",
                "User update rejected: concurrency token no longer matches",
                operation="update_user",
                user_id=str(user.user_id),
                rows_affected=0,
            )
            return False

        user.concurrency_token = token
        log_with_context(
            logger,
            "debug",
            "User updated",
            operation="update_user",
            user_id=str(user.user_id),
            rows_affected=1,
        )
        return True

    async def get_all_name_projections(
        self,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> List[NameProjection]:
        """Return (id, name) pairs for every user."""
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(statements["user_name_projection_get_all"])
        return [row_to_name_projection(row) for row in result.all()]

    # --- Roles ---

    async def get_role_by_id(
        self,
        role_id: UUID,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> Role:
        """
        Retrieve a role by id.

        Raises:
            NotFound: If no role has this id
            AmbiguousResult: If more than one row matched
        """
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(
            statements["role_get_by_id"], {"role_id": str(role_id)}
        )
        return row_to_role(_exactly_one(result.all(), "Role", role_id))

    async def insert_role(
        self,
        role: Role,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> bool:
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(
            statements["role_insert"],
            {"role_id": str(role.role_id), "type": role.type},
        )
        log_with_context(
            logger,
            "debug",
            "Role inserted",
            operation="insert_role",
            role_id=str(role.role_id),
            rows_affected=result.rowcount,
        )
        return result.rowcount > 0

    async def get_all_roles(
        self,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> List[Role]:
        """Return every role in store-defined order."""
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(statements["role_get_all"])
        return [row_to_role(row) for row in result.all()]

    # --- User roles ---

    async def get_all_user_roles(
        self,
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> List[UserRole]:
        conn = _scope(connection, transaction)
        statements = get_statements(conn.dialect.name)
        result = await conn.execute(statements["user_role_get_all"])
        return [row_to_user_role(row) for row in result.all()]

    async def insert_user_roles(
        self,
        user_roles: Sequence[UserRole],
        connection: AsyncConnection,
        transaction: Optional[AsyncTransaction] = None
    ) -> bool:
        """
        Insert a batch of role assignments as one multi-row INSERT.

        The batch is a single statement, so it lands whole or fails whole
        with a store fault (e.g. an unknown role id under the foreign key).

        Returns:
            True only if the store reports every row of the batch written.
            An empty batch writes nothing and returns False.
        """
        if not user_roles:
            return False

        conn = _scope(connection, transaction)
        statement = insert(user_roles_table).values([
            {"user_id": str(link.user_id), "role_id": str(link.role_id)}
            for link in user_roles
        ])
        result = await conn.execute(statement)

        if result.rowcount != len(user_roles):
            log_with_context(
                logger,
                "warning",
                "User role batch only partially written",
                operation="insert_user_roles",
                batch_size=len(user_roles),
                rows_affected=result.rowcount,
            )
            return False

        log_with_context(
            logger,
            "debug",
            "User roles inserted",
            operation="insert_user_roles",
            batch_size=len(user_roles),
            rows_affected=result.rowcount,
        )
        return True
