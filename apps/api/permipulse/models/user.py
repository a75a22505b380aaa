"""
User model.
"""

from sqlalchemy import Enum as SAEnum, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from permipulse.core.auth.permissions import PermissionSet
from permipulse.core.auth.roles import Role

from .base import Base, TimestampMixin
from .permission import Permission, user_permissions


class User(Base, TimestampMixin):
    """User account model."""

    __tablename__ = "users"
    __table_args__ = (
        # At most one ADMIN row
        Index(
            "uq_users_single_admin",
            "role",
            unique=True,
            postgresql_where=text("role = 'ADMIN'"),
            sqlite_where=text("role = 'ADMIN'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[Role] = mapped_column(
        SAEnum(Role, name="user_role", native_enum=False, length=20),
        default=Role.USER,
        nullable=False,
        index=True,
    )

    # Grants (only meaningful for SUB_ADMIN)
    permissions: Mapped[list[Permission]] = relationship(
        Permission,
        secondary=user_permissions,
        lazy="selectin",
        order_by=Permission.name,
    )

    @property
    def permission_set(self) -> PermissionSet:
        return PermissionSet(p.name for p in self.permissions)

    @property
    def permission_names(self) -> list[str]:
        return self.permission_set.sorted_names()

    def __repr__(self) -> str:
        return f"<User {self.email} {self.role.value}>"
