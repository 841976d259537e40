"""Password hashing, token issuance and credential checks for students and admins."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

import bcrypt
import jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.logging import get_logger
from app.db.models import Admin, Profile, User

logger = get_logger(__name__)

USER_TOKEN_TYPE = "user"
ADMIN_TOKEN_TYPE = "admin"


class AuthError(Exception):
    """Raised when credentials or tokens are rejected.

    ``status_code`` tells the route layer which HTTP status to use.
    """

    def __init__(self, message: str, status_code: int = 401, reason: str | None = None):
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)


class EmailAlreadyRegisteredError(AuthError):
    """Raised on signup with an email that already has an account."""

    def __init__(self):
        super().__init__("Email already registered", status_code=400)


def hash_password(password: str) -> str:
    """Hash a password with bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a password against a bcrypt hash."""
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        # Malformed hash in the store
        return False


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _encode(payload: dict[str, Any], secret: str, lifetime: timedelta) -> str:
    now = datetime.utcnow()
    claims = {**payload, "iat": now, "exp": now + lifetime}
    return jwt.encode(claims, secret, algorithm=settings.jwt_algorithm)


def create_user_token(user_id: str, expires_delta: timedelta | None = None) -> str:
    """Issue a student access token."""
    lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    return _encode(
        {"sub": str(user_id), "type": USER_TOKEN_TYPE},
        settings.jwt_secret_key,
        lifetime,
    )


def create_admin_token(
    admin_id: str, role: str, expires_delta: timedelta | None = None
) -> str:
    """Issue an admin console token, signed with the admin key."""
    lifetime = expires_delta or timedelta(minutes=settings.admin_token_expire_minutes)
    return _encode(
        {"sub": str(admin_id), "role": role, "type": ADMIN_TOKEN_TYPE},
        settings.effective_admin_jwt_secret,
        lifetime,
    )


def _decode(token: str, secret: str, token_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthError("Invalid token") from e

    if payload.get("type") != token_type or not payload.get("sub"):
        raise AuthError("Invalid token")
    return payload


def decode_user_token(token: str) -> dict[str, Any]:
    """Validate a student token and return its claims.

    Raises:
        AuthError: If the token is expired, malformed or not a student token.
    """
    return _decode(token, settings.jwt_secret_key, USER_TOKEN_TYPE)


def decode_admin_token(token: str) -> dict[str, Any]:
    """Validate an admin token and return its claims.

    Raises:
        AuthError: If the token is expired, malformed or not an admin token.
    """
    return _decode(token, settings.effective_admin_jwt_secret, ADMIN_TOKEN_TYPE)


class AuthService:
    """Account lookups behind the signup and login endpoints."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def signup(
        self,
        email: str,
        password: str,
        full_name: str,
        college: str,
        phone: str | None = None,
    ) -> User:
        """Create a student account with its profile.

        Raises:
            EmailAlreadyRegisteredError: If the email is taken.
        """
        email = normalize_email(email)
        result = await self.db.execute(select(User.id).where(User.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailAlreadyRegisteredError()

        user = User(email=email, password_hash=hash_password(password))
        user.profile = Profile(full_name=full_name, college=college, phone=phone)
        self.db.add(user)
        await self.db.flush()

        logger.info("user_registered", user_id=user.id)
        return user

    async def login_user(self, email: str, password: str) -> User:
        """Check student credentials and stamp the sign-in time.

        Raises:
            AuthError: 401 on bad credentials, 403 if the account is suspended.
        """
        result = await self.db.execute(
            select(User).where(User.email == normalize_email(email))
        )
        user = result.scalar_one_or_none()
        if user is None:
            raise AuthError("Invalid email or password")

        if user.is_suspended:
            raise AuthError(
                "Your account has been suspended",
                status_code=403,
                reason=user.suspension_reason
                or "Contact administrator for more information",
            )

        if not verify_password(password, user.password_hash):
            raise AuthError("Invalid email or password")

        user.last_sign_in = datetime.utcnow()
        await self.db.flush()
        return user

    async def login_admin(self, email: str, password: str) -> Admin:
        """Check admin credentials and stamp the login time.

        Raises:
            AuthError: 401 on bad credentials, 403 if the account is deactivated.
        """
        result = await self.db.execute(
            select(Admin).where(Admin.email == normalize_email(email))
        )
        admin = result.scalar_one_or_none()
        if admin is None or not verify_password(password, admin.password_hash):
            logger.info("admin_login_rejected")
            raise AuthError("Invalid credentials")

        if not admin.is_active:
            raise AuthError("Account is deactivated", status_code=403)

        admin.last_login = datetime.utcnow()
        await self.db.flush()
        return admin

    async def change_admin_password(
        self, admin: Admin, current_password: str, new_password: str
    ) -> None:
        """Replace an admin's password after checking the current one.

        Raises:
            AuthError: 400 if the current password is wrong.
        """
        if not verify_password(current_password, admin.password_hash):
            raise AuthError("Current password is incorrect", status_code=400)

        admin.password_hash = hash_password(new_password)
        await self.db.flush()
