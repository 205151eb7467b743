"""
Repository layer for data access.

Provides data access abstractions following the Repository pattern,
isolating SQL from the aggregate operations that compose it.
"""

from identity_store.repositories.identity import IdentityRepository

__all__ = ["IdentityRepository"]
