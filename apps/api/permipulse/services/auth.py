"""
Authentication service.
"""

from dataclasses import dataclass
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from permipulse.core.auth.roles import Role
from permipulse.core.auth.tokens import create_access_token
from permipulse.core.errors import Conflict, Forbidden, Unauthenticated
from permipulse.models.user import User

logger = structlog.get_logger()

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    """Verify password against hash."""
    return pwd_context.verify(plain, hashed)


@dataclass
class LoginResult:
    """Issued access token and the user it belongs to."""
    access_token: str
    user: User
    token_type: str = "bearer"


class AuthService:
    """Signup and login."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def admin_exists(self) -> bool:
        stmt = select(User.id).where(User.role == Role.ADMIN).limit(1)
        return (await self.db.scalar(stmt)) is not None

    async def signup(
        self,
        name: str,
        email: str,
        password: str,
        role: Role = Role.USER,
    ) -> User:
        """
        Register a new account.

        ADMIN is only granted to the very first admin signup; sub-admins
        are created by the admin, never through signup.

        Raises:
            Conflict: an ADMIN already exists, or email already registered
            Forbidden: SUB_ADMIN requested
        """
        if role is Role.SUB_ADMIN:
            raise Forbidden(
                "Sub-admin accounts are created by an administrator",
                code="role_required",
            )
        if role is Role.ADMIN and await self.admin_exists():
            raise Conflict("An Admin already exists. Only one Admin is allowed.")

        stmt = select(User.id).where(User.email == email)
        if await self.db.scalar(stmt) is not None:
            raise Conflict("Email already registered")

        user = User(
            name=name,
            email=email,
            password_hash=hash_password(password),
            role=role,
            permissions=[],
        )
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # Lost a race on the email or single-admin unique index
            await self.db.rollback()
            raise Conflict("Account could not be created: email or admin slot taken") from e

        logger.info("auth.signup", user_id=user.id, role=user.role.value)
        return user

    async def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate and issue an access token.

        Raises:
            Unauthenticated: unknown email or wrong password
        """
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user or not verify_password(password, user.password_hash):
            logger.info("auth.failed", email=email)
            raise Unauthenticated("Invalid credentials")

        logger.info("auth.login", user_id=user.id)
        return LoginResult(
            access_token=create_access_token(user.id, user.role),
            user=user,
        )
