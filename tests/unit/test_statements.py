"""
Unit tests for the statement table and write parameter binding.
"""

from datetime import datetime, timezone

import pytest

from identity_store.models import User
from identity_store.repositories.concurrency import user_write_params
from identity_store.repositories.statements import TOKEN_EXPRESSIONS, get_statements


class TestStatementTable:
    def test_statements_built_once_per_dialect(self):
        assert get_statements("sqlite") is get_statements("sqlite")

    def test_statement_table_is_read_only(self):
        statements = get_statements("sqlite")

        with pytest.raises(TypeError):
            statements["role_get_all"] = None

    def test_unsupported_dialect_rejected(self):
        with pytest.raises(ValueError) as exc_info:
            get_statements("mssql")

        assert "Unsupported dialect" in str(exc_info.value)

    @pytest.mark.parametrize("dialect", sorted(TOKEN_EXPRESSIONS))
    def test_user_writes_return_store_token(self, dialect):
        statements = get_statements(dialect)

        for name in ("user_insert", "user_update"):
            sql = str(statements[name])
            assert TOKEN_EXPRESSIONS[dialect] in sql
            assert sql.endswith("RETURNING concurrency_token")

    def test_update_is_gated_on_id_and_token(self):
        sql = str(get_statements("sqlite")["user_update"])

        assert "WHERE user_id = :user_id AND concurrency_token = :expected_token" in sql

    def test_joined_read_is_inner_join(self):
        sql = str(get_statements("postgresql")["user_get_by_id_with_roles"])

        assert sql.count("INNER JOIN") == 2
        assert "LEFT" not in sql


class TestUserWriteParams:
    def test_renders_ids_and_timestamps_as_text(self):
        signed = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
        user = User(username="neo", email="neo@matrix.com", password_hash="x", gdpr_signed_on=signed)

        params = user_write_params(user)

        assert params["user_id"] == str(user.user_id)
        assert params["gdpr_signed_on"] == signed.isoformat()
        assert params["deactivated_on"] is None
        assert "expected_token" not in params

    def test_includes_expected_token_for_updates(self):
        user = User(username="neo", email="neo@matrix.com", password_hash="x")

        params = user_write_params(user, expected_token="abc")

        assert params["expected_token"] == "abc"


class TestUserModel:
    def test_token_cannot_be_supplied_by_caller(self):
        with pytest.raises(TypeError):
            User(username="neo", email="neo@matrix.com", password_hash="x", concurrency_token="t")

    def test_new_users_get_distinct_identities(self):
        first = User(username="a", email="a@x.com", password_hash="x")
        second = User(username="a", email="a@x.com", password_hash="x")

        assert first.user_id != second.user_id
        assert first.concurrency_token is None
        assert first.roles == []
