from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime
from homeease.db.db_models import UserRole, UserStatus

MIN_PASSWORD_LENGTH = 6


# Signup Schemas
class SignupBase(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str
    confirm_password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None

    # Provider fields, ignored for customers
    profession: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0)
    pricing: Optional[float] = Field(None, ge=0)
    certifications: Optional[str] = None
    cnic: Optional[str] = None
    availability: Optional[str] = None
    bio: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("password")
    @classmethod
    def check_password_length(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v

    @model_validator(mode="after")
    def check_passwords_match(self):
        if self.confirm_password is not None and self.confirm_password != self.password:
            raise ValueError("Passwords do not match")
        return self


class SignupRequest(SignupBase):
    """Generic signup; admins cannot self-register."""
    role: UserRole = UserRole.CUSTOMER

    @field_validator("role")
    @classmethod
    def check_role(cls, v: UserRole) -> UserRole:
        if v == UserRole.ADMIN:
            raise ValueError("Role must be customer or provider")
        return v


class CustomerSignup(SignupBase):
    pass


class ProviderSignup(SignupBase):
    profession: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()


# Response Schemas
class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    status: str = UserStatus.ACTIVE.value
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    profession: Optional[str] = None
    experience: Optional[int] = None
    pricing: Optional[float] = None
    certifications: Optional[str] = None
    availability: Optional[str] = None
    bio: Optional[str] = None
    profile_image: Optional[str] = None
    rating: float = 0.0
    review_count: int = 0
    approval_status: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProviderProfile(UserResponse):
    """Provider's own profile, including identity details."""
    cnic: Optional[str] = None
    rejection_reason: Optional[str] = None


class AdminUserResponse(ProviderProfile):
    """Full account record for admin review."""
    approved_by: Optional[str] = None
    approval_date: Optional[datetime] = None
    rejected_by: Optional[str] = None
    rejection_date: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProviderRejection(BaseModel):
    reason: Optional[str] = None


class ProviderRating(BaseModel):
    id: str
    name: str
    email: str
    rating: float = 0.0
    review_count: int = 0

    class Config:
        from_attributes = True


class AuthResponse(BaseModel):
    token: str
    role: str
    user: UserResponse


# Update Schemas
class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    profile_image: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_not_null(cls, v: Optional[str]) -> str:
        # Explicit null would clear a required column
        if v is None:
            raise ValueError("Name cannot be null")
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class ProviderProfileUpdate(UserUpdate):
    profession: Optional[str] = None
    experience: Optional[int] = Field(None, ge=0)
    pricing: Optional[float] = Field(None, ge=0)
    certifications: Optional[str] = None
    cnic: Optional[str] = None
    availability: Optional[str] = None
    bio: Optional[str] = None


class AvailabilityUpdate(BaseModel):
    availability: str = Field(..., min_length=1)


class UserStatusUpdate(BaseModel):
    status: UserStatus
