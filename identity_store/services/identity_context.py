"""
Identity context: aggregate operations spanning several repository calls.

Each aggregate operation runs inside one transaction on the context's
connection and ends in exactly one of two states: committed (every row
persisted) or rolled back (nothing persisted). No partial state is
visible outside the transaction boundary.
"""

from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncConnection

from identity_store.core.exceptions import WriteRejected
from identity_store.core.logging_config import get_logger, log_with_context
from identity_store.models import User, UserRole
from identity_store.repositories import IdentityRepository

logger = get_logger(__name__)


def generate_password_hash(password: str) -> str:
    """
    Placeholder password hasher.

    Returns the password unchanged. Real hashing is supplied by the
    embedding application through ``IdentityContext(password_hasher=...)``.
    """
    return password


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class IdentityContext:
    """
    Aggregate operations over users and their role assignments.

    Attributes:
        connection: AsyncConnection the context runs on. It must not be
            inside a transaction when an aggregate operation starts.
        repository: IdentityRepository used for every statement
        password_hasher: Callable turning a plain password into the
            stored hash
        clock: Callable returning the current UTC time
    """

    def __init__(
        self,
        connection: AsyncConnection,
        repository: Optional[IdentityRepository] = None,
        password_hasher: Optional[Callable[[str], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.connection = connection
        self.repository = repository or IdentityRepository()
        self.password_hasher = password_hasher or generate_password_hash
        self.clock = clock or utc_now

    async def create_user(
        self,
        email: str,
        password: str,
        gdpr_accepted: bool,
        role_ids: Sequence[UUID],
    ) -> User:
        """
        Create a user and its role assignments atomically.

        Args:
            email: Email address, also used as the username
            password: Plain password, hashed with ``password_hasher``
            gdpr_accepted: Stamp ``gdpr_signed_on`` with the current time
            role_ids: Roles to assign; may be empty

        Returns:
            The new User, carrying the store-assigned concurrency token

        Raises:
            WriteRejected: If a write reported no rows affected
            IntegrityError: If a write violated a constraint (e.g. unknown
                role id)
            InvalidRequestError: If the connection is already inside a
                transaction

        Note:
            Any exception rolls the whole operation back before it
            propagates.

        Example:
            >>> async with engine.connect() as conn:
            ...     ctx = IdentityContext(conn)
            ...     user = await ctx.create_user(
            ...         "neo@example.com", "secret", True, [admin.role_id]
            ...     )
        """
        user = User(
            username=email,
            email=email,
            password_hash=self.password_hasher(password),
            gdpr_signed_on=self.clock() if gdpr_accepted else None,
        )
        assignments = [UserRole(user_id=user.user_id, role_id=role_id) for role_id in role_ids]

        try:
            async with self.connection.begin() as transaction:
                if not await self.repository.insert_user(user, self.connection, transaction):
                    raise WriteRejected(f"User insert affected no rows: {user.user_id}")

                if assignments and not await self.repository.insert_user_roles(
                    assignments, self.connection, transaction
                ):
                    raise WriteRejected(
                        f"Role assignments for user {user.user_id} were not all written"
                    )
        except Exception:
            logger.warning(
                "create_user rolled back",
                exc_info=True,
                extra={"operation": "create_user", "user_id": str(user.user_id)},
            )
            raise

        log_with_context(
            logger,
            "info",
            "User created",
            operation="create_user",
            user_id=str(user.user_id),
            batch_size=len(assignments),
        )
        return user

    async def get_all_users(self) -> List[User]:
        """
        Return every user on the context's connection.

        Outside a caller transaction the read runs in its own short
        transaction, so the connection is free for the next aggregate
        operation.
        """
        if self.connection.in_transaction():
            return await self.repository.get_all_users(self.connection)

        async with self.connection.begin():
            return await self.repository.get_all_users(self.connection)
