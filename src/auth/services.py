"""Authentication service layer.

Login, refresh-token rotation, logout and user administration. Tokens are
revoked by putting their ``jti`` on the Redis blocklist until they would
have expired anyway.
"""

import logging
from sqlmodel import select
from src.auth.models import User
from src.auth.schemas import LoginInput, LogoutInput, UserCreateInput

from sqlmodel.ext.asyncio.session import AsyncSession
from fastapi import HTTPException, status, Request, Response
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.exc import DatabaseError
from src.utils.auth import (
    verify_password_hash, generate_password_hash, create_token, decode_token,
    access_token_expiry, refresh_token_expiry,
)
from datetime import datetime, timezone
import uuid
from src.db.redis import add_jti_to_blocklist, jti_in_blocklist

logger = logging.getLogger(__name__)


class AuthServices:
    """Service class for authentication operations."""

    async def get_user_by_email(self, email: str, session: AsyncSession):
        """Retrieves User by email.

        Args:
            email: User email address (compared lower-case).
            session: Database session.

        Returns:
            User instance if found, None otherwise.
        """
        try:
            statement = select(User).where(User.email == email.lower())
            result = await session.exec(statement)
            return result.first()
        except DatabaseError as e:
            logger.error(f"Database error during user lookup: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Database error during user lookup: {str(e)}"
            )

    async def get_user_by_id(self, user_id: str, session: AsyncSession):
        statement = select(User).where(User.user_id == uuid.UUID(str(user_id)))
        result = await session.exec(statement)
        return result.first()

    async def check_user_exists(self, user_id: str, session: AsyncSession):
        """Reject the request if the token's user no longer exists or is disabled.

        Raises:
            HTTPException: 401 if the user is unknown or inactive.
        """
        user = await self.get_user_by_id(user_id, session)

        if not user or not user.is_active:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="You are not authorized to proceed"
            )
        return user

    async def create_user(self, user_input: UserCreateInput, session: AsyncSession):
        if await self.get_user_by_email(user_input.email, session):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A user with this email already exists"
            )

        new_user = User(
            email=user_input.email.lower(),
            full_name=user_input.full_name,
            password_hash=generate_password_hash(user_input.password),
            role=user_input.role,
        )
        session.add(new_user)

        try:
            await session.commit()
            await session.refresh(new_user)
            logger.info(f"User {new_user.email} created with role {new_user.role.value}")
            return new_user
        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to create user {user_input.email}: {e}")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user"
            )

    async def login(self, loginInput: LoginInput, session: AsyncSession):
        """Authenticate user and generate an access/refresh token pair.

        Returns:
            dict: User data with access_token and refresh_token included.

        Raises:
            HTTPException: 400 if the credentials are invalid or the user is
                disabled.
        """
        user = await self.get_user_by_email(loginInput.email, session)

        INVALID_CREDENTIALS = HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid Credentials"
        )

        if not user or not user.is_active:
            raise INVALID_CREDENTIALS

        if not verify_password_hash(loginInput.password, user.password_hash):
            logger.warning(f"Failed login attempt for {loginInput.email}")
            raise INVALID_CREDENTIALS

        user_dict = user.model_dump()
        access_token = create_token(user_dict, access_token_expiry, type="access")
        refresh_token = create_token(user_dict, refresh_token_expiry, type="refresh")

        return {
            **user_dict,
            'access_token': access_token,
            'refresh_token': refresh_token,
        }

    async def renewAccessToken(self, old_refresh_token_str: str, session: AsyncSession):
        """Renew access token using a refresh token, rotating the refresh token.

        Raises:
            HTTPException: If token invalid, expired, or already used.
        """
        old_refresh_token_decode = decode_token(old_refresh_token_str)

        if old_refresh_token_decode.get('type') != "refresh":
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid token type"
            )

        jti = old_refresh_token_decode.get('jti')
        if await self.is_token_blacklisted(jti):
            logger.warning(f"Refresh token {jti} reused")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Refresh token reused. Login required."
            )

        user = await self.get_user_by_id(old_refresh_token_decode.get("sub"), session)

        if not user or not user.is_active:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

        user_data = user.model_dump()

        new_token = create_token(user_data, expiry_delta=access_token_expiry, type="access")

        await self.add_token_to_blocklist(old_refresh_token_str)

        new_refresh_token = create_token(user_data, expiry_delta=refresh_token_expiry, type="refresh")

        return {
            "access_token": new_token,
            "refresh_token": new_refresh_token
        }

    async def add_token_to_blocklist(self, token):
        """Revokes token by adding its jti to the Redis blocklist."""
        token_decoded = decode_token(token)
        token_id = token_decoded.get('jti')
        exp_timestamp = token_decoded.get('exp')

        # Only blocklist until natural expiry
        current_time = datetime.now(timezone.utc).timestamp()
        time_to_live = int(exp_timestamp - current_time)

        if time_to_live > 0:
            await add_jti_to_blocklist(token_id, time_to_live)

    async def is_token_blacklisted(self, jti: str) -> bool:
        return await jti_in_blocklist(jti)

    async def logout(
        self,
        request: Request,
        response: Response,
        logout_input: LogoutInput,
        bearer_token: HTTPAuthorizationCredentials,
    ):
        """Logout user by revoking both tokens.

        Header clients send the access token as bearer and the refresh token
        in the body; browser clients send both as cookies.

        Raises:
            HTTPException: If no tokens found in either source.
        """
        if bearer_token:
            access_token = bearer_token.credentials
            refresh_token = logout_input.refresh_token
        else:
            access_token = request.cookies.get("access_token")
            refresh_token = request.cookies.get("refresh_token")

        if access_token is None and refresh_token is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Refresh token missing"
            )

        if access_token:
            await self.add_token_to_blocklist(access_token)
        if refresh_token:
            await self.add_token_to_blocklist(refresh_token)

        response.delete_cookie(key="access_token")
        response.delete_cookie(key="refresh_token")
