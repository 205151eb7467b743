"""
Concurrency token protocol for User writes.

A versioned write is a single INSERT/UPDATE ... RETURNING statement: the
store applies the mutation, assigns a new token, and reports that token
in the same round trip. Callers learn the persisted token without a
second statement in which another writer could interleave.

Conflict detection relies on the store serializing row writes under at
least read-committed isolation. Under weaker isolation two writers
holding the same token can both succeed; that is an isolation-level
dependency, not something this module can detect.
"""

from typing import Any, Dict, Optional

from sqlalchemy.sql.elements import TextClause
from sqlalchemy.ext.asyncio import AsyncConnection

from identity_store.models.user import User


def to_db_timestamp(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def user_write_params(user: User, *, expected_token: Optional[str] = None) -> Dict[str, Any]:
    """
    Bind a User to the named parameters of the user write statements.

    Args:
        user: Entity being written
        expected_token: Token the caller currently holds (updates only)

    Returns:
        Parameter dict with ids and timestamps rendered as text
    """
    params: Dict[str, Any] = {
        "user_id": str(user.user_id),
        "username": user.username,
        "email": user.email,
        "password_hash": user.password_hash,
        "deactivated_on": to_db_timestamp(user.deactivated_on),
        "gdpr_signed_on": to_db_timestamp(user.gdpr_signed_on),
    }
    if expected_token is not None:
        params["expected_token"] = expected_token
    return params


async def execute_versioned_write(
    connection: AsyncConnection,
    statement: TextClause,
    params: Dict[str, Any],
) -> Optional[str]:
    """
    Run a token-returning write and report the token the store assigned.

    Args:
        connection: Connection (already scoped to any caller transaction)
        statement: INSERT/UPDATE ending in ``RETURNING concurrency_token``
        params: Bound parameters

    Returns:
        The new token, or None when the statement matched no row

    Note:
        Zero matched rows is a normal outcome here, not an error. Store
        failures (constraint violations, lost connections) propagate.
    """
    result = await connection.execute(statement, params)
    row = result.first()
    if row is None:
        return None
    return str(row.concurrency_token)
