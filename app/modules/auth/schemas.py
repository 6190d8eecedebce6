from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from uuid import UUID
from datetime import datetime

from app.common.validators import validate_password_strength, validate_phone
from app.modules.auth.models import UserRole


def _check_password(v):
    error = validate_password_strength(v)
    if error:
        raise ValueError(error)
    return v


def _check_phone(v):
    if v is None or v.strip() == "":
        return None
    if not validate_phone(v):
        raise ValueError('Invalid phone number format')
    return v.strip()


class RegisterRequest(BaseModel):
    email_address: EmailStr
    business_name: str = Field(..., min_length=2, max_length=100)
    owner_name: str = Field(..., min_length=2, max_length=100)
    password: str
    confirm_password: str = Field(..., min_length=1)
    phone_number: Optional[str] = Field(None, max_length=20)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

    @field_validator('phone_number')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)

    @model_validator(mode='after')
    def passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords don't match")
        return self


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1, alias="refreshToken")

    class Config:
        populate_by_name = True


class UserCreate(BaseModel):
    """Alta de usuarios por un administrador."""
    email_address: EmailStr
    business_name: str = Field(..., min_length=2, max_length=100)
    owner_name: str = Field(..., min_length=2, max_length=100)
    password: str
    phone_number: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.EMPLOYEE

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _check_password(v)

    @field_validator('phone_number')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)

    class Config:
        use_enum_values = True


class UserUpdate(BaseModel):
    email_address: Optional[EmailStr] = None
    business_name: Optional[str] = Field(None, min_length=2, max_length=100)
    owner_name: Optional[str] = Field(None, min_length=2, max_length=100)
    password: Optional[str] = None
    phone_number: Optional[str] = Field(None, max_length=20)
    role: Optional[UserRole] = None

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if v is None:
            return v
        return _check_password(v)

    @field_validator('phone_number')
    @classmethod
    def validate_phone_number(cls, v):
        return _check_phone(v)

    class Config:
        use_enum_values = True


class UserOut(BaseModel):
    id: UUID
    email: str
    businessName: str
    ownerName: str
    phoneNumber: Optional[str] = None
    role: str
    createdAt: Optional[datetime] = None
    lastLogin: Optional[datetime] = None

    @classmethod
    def from_user(cls, user) -> "UserOut":
        return cls(
            id=user.user_id,
            email=user.email_address,
            businessName=user.business_name,
            ownerName=user.owner_name,
            phoneNumber=user.phone_number,
            role=user.role,
            createdAt=user.created_at,
            lastLogin=user.last_login,
        )


class AuthTokens(BaseModel):
    accessToken: str
    refreshToken: str
    expiresIn: int


class AuthResponse(BaseModel):
    user: UserOut
    tokens: AuthTokens


class AccessTokenResponse(BaseModel):
    accessToken: str
    expiresIn: int


# Auth context schemas
class AuthContext(BaseModel):
    user_id: UUID
    email: str
    name: str
    role: str
