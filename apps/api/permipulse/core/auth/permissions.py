"""
Named permissions that an ADMIN can grant to SUB_ADMIN accounts.

The vocabulary is closed: a grant can only reference a ``PermissionName``
member, so a typo is rejected at the boundary instead of silently
creating a permission nothing checks.
"""

from enum import Enum
from typing import Iterable


class PermissionName(str, Enum):
    """Grantable capability."""

    CREATE_USER = "CREATE_USER"
    UPDATE_USER = "UPDATE_USER"
    DELETE_USER = "DELETE_USER"
    UPDATE_POST = "UPDATE_POST"
    DELETE_POST = "DELETE_POST"

    def __str__(self) -> str:
        return self.value


class UnknownPermission(ValueError):
    """Raised when a name is not part of the permission vocabulary."""

    def __init__(self, name: str):
        super().__init__(f"Unknown permission: {name!r}")
        self.name = name


def parse_permission(value: "PermissionName | str") -> PermissionName:
    """Resolve a permission name, raising UnknownPermission for anything else."""
    if isinstance(value, PermissionName):
        return value
    try:
        return PermissionName(value)
    except ValueError:
        raise UnknownPermission(str(value)) from None


class PermissionSet(frozenset):
    """
    Immutable set of PermissionName members.

    Names stored in the database that are no longer part of the
    vocabulary are dropped when the set is built.
    """

    def __new__(cls, names: Iterable["PermissionName | str"] = ()):
        members = []
        for name in names:
            try:
                members.append(parse_permission(name))
            except UnknownPermission:
                continue
        return super().__new__(cls, members)

    def sorted_names(self) -> list[str]:
        return sorted(p.value for p in self)

    def __repr__(self) -> str:
        return f"PermissionSet({self.sorted_names()})"
