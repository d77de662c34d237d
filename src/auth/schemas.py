"""Pydantic schemas for authentication API.

Request and response models for login, token renewal, logout and user
administration.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from datetime import datetime
import uuid
from typing import Optional
from src.auth.models import Role

# --- BASE MODELS (Used by multiple responses) ---

class User(BaseModel):
    """User as returned by the API (no password hash)."""
    model_config = ConfigDict(from_attributes=True)
    user_id: uuid.UUID
    email: str
    full_name: str
    role: Role
    is_active: bool
    created_at: datetime

class UserResponse(BaseModel):
    success: bool
    message: str
    data: User


# --- USER ADMINISTRATION ---

class UserCreateInput(BaseModel):
    """Payload for an admin creating a user."""
    email: EmailStr
    full_name: str = Field(min_length=1)
    password: str = Field(min_length=8)
    role: Role = Role.STAFF


# --- LOGIN ---

class LoginInput(BaseModel):
    """Payload for user login."""
    email: EmailStr
    password: str

class LoginData(BaseModel):
    """Data returned upon successful login."""
    user_id: uuid.UUID
    email: str
    full_name: str
    role: Role
    created_at: datetime
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None

class LoginResponse(BaseModel):
    """Response structure for successful login."""
    success: bool
    message: str
    data: LoginData


# --- TOKEN RENEWAL ---

class RenewAccessTokenInput(BaseModel):
    refresh_token: Optional[str] = None

class RenewAccessTokenResponse(BaseModel):
    success: bool
    message: str
    data: dict = {}

# --- LOGOUT ---

class LogoutInput(BaseModel):
    refresh_token: Optional[str] = None

class LogoutResponse(BaseModel):
    success: bool
    message: str
    data: dict = {}
