"""Aggregate operations composed from repository calls."""

from identity_store.services.identity_context import IdentityContext, generate_password_hash

__all__ = ["IdentityContext", "generate_password_hash"]
