"""Authentication utilities.

Password hashing and JSON Web Token helpers shared by the auth routes and
by every protected router. Every route that touches business data depends
on `get_current_user`, which is the single place a request is rejected with
401 when the bearer token is missing, malformed, expired or revoked.

Security notes:
- Passwords are hashed using bcrypt with a per-password salt.
- Tokens are signed with the symmetric key in `src.config.Config.JWT_KEY`.
"""

import bcrypt
from datetime import datetime, timedelta, timezone
import jwt
import logging
import uuid
from src.config import Config
from fastapi import HTTPException, status, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from src.db.redis import jti_in_blocklist

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)

access_token_expiry = timedelta(minutes=Config.ACCESS_TOKEN_EXPIRY_MINUTES)
refresh_token_expiry = timedelta(days=Config.REFRESH_TOKEN_EXPIRY_DAYS)


def generate_password_hash(password: str) -> str:
    """Return a bcrypt hash for the provided plaintext password.

    Args:
        password: Plaintext password to hash.

    Returns:
        The bcrypt hash as a utf-8 string.
    """
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password_hash(password: str, hashed_password: str) -> bool:
    """Check a plaintext password against a stored bcrypt hash."""
    return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))


def create_token(user_data: dict, expiry_delta: timedelta, type: str) -> str:
    current_time = datetime.now(timezone.utc)
    role = user_data.get('role')
    payload = {
        'iat': current_time,
        'jti': str(uuid.uuid4()),
        'role': str(getattr(role, "value", role)),
        'sub': str(user_data.get('user_id')),
        'exp': current_time + expiry_delta,
    }

    token_type = type.lower()
    payload['type'] = token_type

    if token_type == "access":
        payload['email'] = user_data.get('email')
        payload['name'] = user_data.get('full_name')

    return jwt.encode(
        payload=payload,
        key=Config.JWT_KEY,
        algorithm=Config.JWT_ALGORITHM
    )


def decode_token(token: str) -> dict:
    try:
        token_data = jwt.decode(
            jwt=token,
            key=Config.JWT_KEY,
            algorithms=[Config.JWT_ALGORITHM],
            leeway=10
        )

    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired"
        )
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token."
        )

    return token_data


async def get_current_user(request: Request, bearer_token: HTTPAuthorizationCredentials = Depends(security)):
    """Extract and validate the caller from the bearer token or cookie.

    Priority: Authorization header first, then the ``access_token`` cookie
    set by the login route.

    Returns:
        dict: ``user_id`` and ``user_role`` taken from the access token.

    Raises:
        HTTPException: 401 if no credentials are provided, or the token is
            invalid, expired, revoked or not an access token.
    """
    token = None

    if bearer_token and bearer_token.credentials:
        token = bearer_token.credentials
    if not token:
        token = request.cookies.get("access_token")

    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication credentials not provided"
        )

    token_decoded = decode_token(token)

    jti = token_decoded.get('jti')

    # Revoked on logout or refresh rotation
    if jti and await jti_in_blocklist(jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has been revoked (User logged out)"
        )

    if token_decoded.get('type') != 'access':
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token type. Access token required."
        )

    user_id = token_decoded.get("sub")
    user_role = token_decoded.get("role")
    if not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token missing user ID."
        )

    return {
        "user_id": user_id,
        "user_role": user_role
    }


def role_required(allowed_roles: list):
    """Dependency factory for role-based access control.

    Args:
        allowed_roles: List of roles permitted to access the route.

    Returns:
        Dependency function that validates the user's role.
    """
    async def role_checker(current_user: dict = Depends(get_current_user)):
        if current_user.get("user_role") not in allowed_roles:
            logger.warning(f"User {current_user.get('user_id')} denied; role {current_user.get('user_role')} not in {allowed_roles}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="You do not have permission to access this resource"
            )
        return current_user

    return role_checker
