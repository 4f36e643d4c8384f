"""
Access capability for session operations.

Every store call receives an AccessContext that states whose request it is
and whether ownership checks are bypassed. Bypassing requires a reason,
which is logged at the point of use.

Dependencies: None
System role: Explicit authorization capability threaded through the store
"""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class AccessContext:
    """
    Caller identity plus ownership-check mode.

    Attributes:
        user_id: Internal id of the acting user
        elevated: True when ownership checks are bypassed
        reason: Why checks are bypassed (required when elevated)
    """

    user_id: uuid.UUID
    elevated: bool = False
    reason: str | None = None

    def __post_init__(self) -> None:
        if self.elevated and not (self.reason and self.reason.strip()):
            raise ValueError("Elevated access requires a reason")

    @classmethod
    def owner(cls, user_id: uuid.UUID) -> "AccessContext":
        """Access restricted to sessions owned by user_id."""
        return cls(user_id=user_id)

    @classmethod
    def elevated_access(cls, user_id: uuid.UUID, reason: str) -> "AccessContext":
        """Access that skips ownership checks for an already-authorized caller."""
        return cls(user_id=user_id, elevated=True, reason=reason)

    def can_access(self, owner_id: uuid.UUID) -> bool:
        return self.elevated or owner_id == self.user_id
