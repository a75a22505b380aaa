"""
Static role hierarchy.

Three roles, strictly ordered ADMIN > SUB_ADMIN > USER. The order decides
which subjects an actor may target with administrative mutations
(update/delete another account):

    actor \\ target   ADMIN   SUB_ADMIN   USER
    ADMIN             yes     yes         yes
    SUB_ADMIN         no      no          yes
    USER              no      no          no

Nobody may elevate an account to ADMIN; the only way to get one is the
bootstrap signup while no ADMIN exists.
"""

from enum import Enum


class Role(str, Enum):
    """Account role."""

    ADMIN = "ADMIN"
    SUB_ADMIN = "SUB_ADMIN"
    USER = "USER"

    @property
    def level(self) -> int:
        return ROLE_LEVELS[self]

    def __str__(self) -> str:
        return self.value


ROLE_LEVELS: dict[Role, int] = {
    Role.USER: 10,
    Role.SUB_ADMIN: 50,
    Role.ADMIN: 100,
}

ADMIN_ROLES = frozenset({Role.ADMIN, Role.SUB_ADMIN})


class UnhandledRole(RuntimeError):
    """A Role member reached a decision point that does not handle it."""

    def __init__(self, role: Role):
        super().__init__(f"Unhandled role: {role!r}")
        self.role = role


def can_act_admin_on(actor_role: Role, target_role: Role) -> bool:
    """Check if ``actor_role`` may update or delete an account holding ``target_role``."""
    if actor_role is Role.ADMIN:
        return True
    if actor_role is Role.SUB_ADMIN:
        return target_role is Role.USER
    if actor_role is Role.USER:
        return False
    raise UnhandledRole(actor_role)


def can_assign_role(actor_role: Role, new_role: Role) -> bool:
    """
    Check if ``actor_role`` may set ``new_role`` on an existing account.

    Only an ADMIN changes roles, and never to ADMIN.
    """
    if new_role is Role.ADMIN:
        return False
    return actor_role is Role.ADMIN


def parse_role(value: "Role | str | None") -> Role | None:
    """Coerce a claim or column value into a Role, ``None`` if unknown."""
    if value is None:
        return None
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).upper())
    except ValueError:
        return None
