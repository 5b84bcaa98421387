"""Authentication service for username/password login and JWT issuance."""

from datetime import timedelta

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from vetflow.config import settings
from vetflow.core.exceptions import UnauthorizedException
from vetflow.core.security import create_access_token, verify_password
from vetflow.schemas.auth import LoginResponse
from vetflow.schemas.users import UserResponse
from vetflow.services.user_service import PUBLIC_COLUMNS, UserService

logger = structlog.get_logger()


class AuthService:
    """Authentication service for staff logins."""

    def __init__(self, user_service: UserService | None = None):
        """Initialize auth service with the user service."""
        self.users = user_service or UserService()

    async def authenticate(self, db: AsyncSession, username: str, password: str) -> dict:
        """
        Verify a username/password pair.

        Args:
            db: Database session
            username: Login name
            password: Plain-text password

        Returns:
            The user without credentials

        Raises:
            UnauthorizedException: If the credentials are invalid or the account is inactive
        """
        user = await self.users.get_user_credentials(db, username)
        if not user or not verify_password(password, user["password_hash"]):
            logger.info("login_failed", username=username)
            raise UnauthorizedException("Invalid username or password")
        if not user["is_active"]:
            logger.info("login_rejected_inactive", username=username)
            raise UnauthorizedException("Invalid username or password")

        return {column.name: user[column.name] for column in PUBLIC_COLUMNS}

    async def login(self, db: AsyncSession, username: str, password: str) -> LoginResponse:
        """Authenticate and issue an access token."""
        user = await self.authenticate(db, username, password)
        user["last_login"] = await self.users.record_login(db, user["id"])

        expires_delta = timedelta(minutes=settings.access_token_expire_minutes)
        token = create_access_token(
            data={"sub": str(user["id"]), "username": user["username"], "role": user["role"]},
            expires_delta=expires_delta,
        )
        logger.info("login_succeeded", user_id=user["id"], role=user["role"])

        return LoginResponse(
            access_token=token,
            expires_in=int(expires_delta.total_seconds()),
            user=UserResponse.model_validate(user),
        )
