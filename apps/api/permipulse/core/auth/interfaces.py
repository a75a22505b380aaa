"""
Authorization interfaces - Core abstractions.

The decision core depends only on these types. Storage is reached through
``UserLookup`` and ``PostLookup``; the actor is always an explicit
``Identity`` decoded from the request token, never ambient state.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Protocol

from .permissions import PermissionSet
from .roles import Role


# ============================================================
# IDENTITY
# ============================================================

@dataclass(frozen=True)
class Identity:
    """
    The authenticated actor of a request.

    Built from a verified access token. ``role`` is the role the token was
    issued for; grants are always re-read from storage.
    """
    id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


# ============================================================
# POLICY DECISION
# ============================================================

@dataclass
class PolicyDecision:
    """
    Result of a policy evaluation.

    Attributes:
        allowed: Whether the action is permitted
        reason: Human-readable explanation (for errors/logging)
        code: Machine-readable deny reason
        metadata: Additional data for tracing
    """
    allowed: bool
    reason: str | None = None
    code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def allow(cls, reason: str | None = None) -> "PolicyDecision":
        return cls(allowed=True, reason=reason)

    @classmethod
    def deny(
        cls,
        reason: str = "Permission denied",
        code: str = "forbidden",
    ) -> "PolicyDecision":
        return cls(allowed=False, reason=reason, code=code)

    def __bool__(self) -> bool:
        return self.allowed


# Deny codes
DENY_ROLE_REQUIRED = "role_required"
DENY_MISSING_PERMISSION = "missing_permission"
DENY_NOT_OWNER = "not_owner"
DENY_HIERARCHY = "hierarchy"
DENY_UNKNOWN_ACTOR = "unknown_actor"


# ============================================================
# RECORDS SEEN BY THE CORE
# ============================================================

class UserRecord(Protocol):
    """What the core needs from a stored user."""

    @property
    def id(self) -> int: ...

    @property
    def role(self) -> Role: ...

    @property
    def permission_set(self) -> PermissionSet: ...


class PostRecord(Protocol):
    """What the core needs from a stored post."""

    @property
    def id(self) -> int: ...

    @property
    def user_id(self) -> int: ...


# ============================================================
# LOOKUPS
# ============================================================

class UserLookup(ABC):
    """Fetch a user, with granted permissions, by id."""

    @abstractmethod
    async def get_user(self, user_id: int | str) -> UserRecord | None:
        """Return the user or ``None`` when it does not exist."""
        pass


class PostLookup(ABC):
    """Fetch a post, with its owning user id, by id."""

    @abstractmethod
    async def get_post(self, post_id: int | str) -> PostRecord | None:
        """Return the post or ``None`` when it does not exist."""
        pass
