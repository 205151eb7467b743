"""
Statement table for the identity repository.

Maps operation names to parameterized SQL. Built once per dialect and
cached for the life of the process; callers must treat the returned
mapping as read-only.

User writes embed the store's token generator directly in the statement
and read the fresh token back with RETURNING, so the write and the token
read are one statement.
"""

from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause


# Expression evaluated by the store to produce a new concurrency token
TOKEN_EXPRESSIONS = {
    "sqlite": "lower(hex(randomblob(16)))",
    "postgresql": "md5(CAST(random() AS text) || CAST(clock_timestamp() AS text))",
}

_USER_COLUMNS = (
    "user_id, username, email, password_hash, "
    "deactivated_on, gdpr_signed_on, concurrency_token"
)


def _templates(token_expr: str) -> dict:
    return {
        "role_get_all": "SELECT role_id, type FROM roles",
        "role_get_by_id": "SELECT role_id, type FROM roles WHERE role_id = :role_id",
        "role_insert": "INSERT INTO roles (role_id, type) VALUES (:role_id, :type)",

        "user_get_all": f"SELECT {_USER_COLUMNS} FROM users",
        "user_get_by_id": f"SELECT {_USER_COLUMNS} FROM users WHERE user_id = :user_id",
        "user_insert": (
            "INSERT INTO users (user_id, username, email, password_hash, "
            "deactivated_on, gdpr_signed_on, concurrency_token) "
            "VALUES (:user_id, :username, :email, :password_hash, "
            f":deactivated_on, :gdpr_signed_on, {token_expr}) "
            "RETURNING concurrency_token"
        ),
        # The token predicate is the only conflict gate
        "user_update": (
            "UPDATE users SET username = :username, email = :email, "
            "password_hash = :password_hash, deactivated_on = :deactivated_on, "
            f"gdpr_signed_on = :gdpr_signed_on, concurrency_token = {token_expr} "
            "WHERE user_id = :user_id AND concurrency_token = :expected_token "
            "RETURNING concurrency_token"
        ),
        "user_get_by_id_with_roles": (
            "SELECT u.user_id, u.username, u.email, u.password_hash, "
            "u.deactivated_on, u.gdpr_signed_on, u.concurrency_token, "
            "r.role_id, r.type AS role_type "
            "FROM user_roles ur "
            "INNER JOIN users u ON ur.user_id = u.user_id "
            "INNER JOIN roles r ON r.role_id = ur.role_id "
            "WHERE u.user_id = :user_id"
        ),
        "user_name_projection_get_all": "SELECT user_id AS id, username AS name FROM users",

        "user_role_get_all": "SELECT user_id, role_id FROM user_roles",
    }


@lru_cache(maxsize=None)
def get_statements(dialect_name: str) -> Mapping[str, TextClause]:
    """
    Return the statement table for a SQLAlchemy dialect name.

    Args:
        dialect_name: ``connection.dialect.name`` ("sqlite" or "postgresql")

    Raises:
        ValueError: If the dialect has no token generator
    """
    try:
        token_expr = TOKEN_EXPRESSIONS[dialect_name]
    except KeyError:
        raise ValueError(
            f"Unsupported dialect for concurrency tokens: {dialect_name}. "
            f"Supported: {', '.join(sorted(TOKEN_EXPRESSIONS))}"
        ) from None

    return MappingProxyType({
        name: text(sql) for name, sql in _templates(token_expr).items()
    })
