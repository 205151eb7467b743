"""
Role entity.
"""

from dataclasses import dataclass, field
from uuid import UUID, uuid4


@dataclass
class Role:
    """
    A named role that users can be assigned to.

    Attributes:
        type: Role name (e.g. "Admin")
        role_id: Client-generated UUID identity, assigned at construction
    """

    type: str
    role_id: UUID = field(default_factory=uuid4)
