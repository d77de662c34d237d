"""Authentication API routes."""

from fastapi import APIRouter, Depends, status, Response, Request, HTTPException
from src.auth.services import AuthServices
from src.auth.schemas import (
    LoginInput,
    LoginResponse,
    RenewAccessTokenResponse,
    LogoutInput,
    LogoutResponse,
    UserCreateInput,
    UserResponse,
    User,
)
from sqlmodel.ext.asyncio.session import AsyncSession
from src.db.main import get_Session
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from src.config import Config
from src.utils.limiter import limiter
from src.utils.auth import get_current_user, role_required, access_token_expiry, refresh_token_expiry


authRouter = APIRouter()
authServices = AuthServices()
security = HTTPBearer(auto_error=False)

cookie_settings = {
    "httponly": True,
    "secure": Config.COOKIE_SECURE,
    "samesite": "none" if Config.COOKIE_SECURE else "lax"
}


def set_auth_cookies(response: Response, access_token: str, refresh_token: str):
    response.set_cookie(
        key="access_token",
        value=access_token,
        **cookie_settings,
        max_age=int(access_token_expiry.total_seconds())
    )
    response.set_cookie(
        key="refresh_token",
        value=refresh_token,
        **cookie_settings,
        max_age=int(refresh_token_expiry.total_seconds())
    )


@authRouter.post("/login", status_code=status.HTTP_200_OK, response_model=LoginResponse)
@limiter.limit("5/minute")
async def loginUser(
    loginInput: LoginInput,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_Session)
):
    """Authenticate a user.

    Tokens are set as httponly cookies for the dashboard and also returned
    in the body for header-based clients.
    """
    user = await authServices.login(loginInput, session)

    set_auth_cookies(response, user.get('access_token'), user.get('refresh_token'))

    return {
        "success": True,
        "message": "login successful",
        "data": user
    }


@authRouter.get("/me", status_code=status.HTTP_200_OK, response_model=UserResponse)
async def get_me(
    user_info: dict = Depends(get_current_user),
    session: AsyncSession = Depends(get_Session)
):
    """Get current authenticated user details."""
    user = await authServices.get_user_by_id(user_info.get("user_id"), session)

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return {
        "success": True,
        "message": "User details fetched successfully",
        "data": User.model_validate(user)
    }


@authRouter.post("/users", status_code=status.HTTP_201_CREATED, response_model=UserResponse)
@limiter.limit("20/minute")
async def create_user(
    request: Request,
    response: Response,
    user_input: UserCreateInput,
    session: AsyncSession = Depends(get_Session),
    user_details: dict = Depends(role_required(["admin"]))
):
    await authServices.check_user_exists(user_details.get("user_id"), session)

    new_user = await authServices.create_user(user_input, session)

    return {
        "success": True,
        "message": "user created successfully",
        "data": User.model_validate(new_user)
    }


@authRouter.post("/renew_access_token", status_code=status.HTTP_201_CREATED, response_model=RenewAccessTokenResponse)
@limiter.limit("5/minute")
async def renewAccessToken(
    request: Request,
    response: Response,
    bearer_token: HTTPAuthorizationCredentials = Depends(security),
    session: AsyncSession = Depends(get_Session)
):
    """Renew the access token using a refresh token.

    Cookie clients get the new pair as cookies and an empty body; header
    clients get the pair in the body.
    """
    bearer_raw = bearer_token.credentials if bearer_token else None
    cookie_raw = request.cookies.get('refresh_token')

    token = bearer_raw or cookie_raw
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token missing"
        )

    if token.count('.') != 2:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token format"
        )

    new_token = await authServices.renewAccessToken(token, session)

    if cookie_raw and not bearer_raw:
        set_auth_cookies(response, new_token.get('access_token'), new_token.get('refresh_token'))
        return {
            "success": True,
            "message": "access token renewed successfully",
            "data": {}
        }

    return {
        "success": True,
        "message": "access token renewed successfully",
        "data": new_token
    }


@authRouter.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    request: Request,
    response: Response,
    logout_input: LogoutInput,
    bearer_token: HTTPAuthorizationCredentials = Depends(security),
):
    """Logout user by revoking the access and refresh tokens."""
    await authServices.logout(request, response, logout_input, bearer_token)

    return {
        "success": True,
        "message": "Logged out successfully",
        "data": {}
    }
