"""
User and authentication request bodies.

Self-registration may only pick `user` or `publisher`; `admin` is assignable
only through the admin-only users endpoints.
"""

from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field

SelfServiceRole = Literal["user", "publisher"]
AnyRole = Literal["user", "publisher", "admin"]


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: SelfServiceRole = "user"


class LoginRequest(BaseModel):
    # Optional so a missing field yields the login-specific 400 message
    email: Optional[str] = None
    password: Optional[str] = None


class UpdateDetailsRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=6)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(min_length=6)


class UserCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6)
    role: AnyRole = "user"


class UserUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    role: Optional[AnyRole] = None
