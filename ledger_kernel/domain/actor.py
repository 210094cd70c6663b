"""
Actor identity supplied by the external identity provider.

The kernel never issues or verifies identities; it only records who acted
and compares the actor's branch where an operation is branch-bound.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ActorRole(Enum):
    """Roles issued by the identity provider."""
    ADMIN = "admin"
    BRANCH = "branch"
    EMPLOYEE = "employee"


@dataclass(frozen=True)
class Actor:
    """The caller of an operation."""
    id: UUID
    role: ActorRole
    branch_id: UUID | None = None

    def belongs_to(self, branch_id: UUID) -> bool:
        return self.branch_id is not None and self.branch_id == branch_id
