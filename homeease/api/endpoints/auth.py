import logging
from typing import Any
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from homeease.core import security
from homeease.models.user import (
    AuthResponse, UserResponse, LoginRequest, SignupBase, SignupRequest,
    CustomerSignup, ProviderSignup, ProviderProfileUpdate,
)
from homeease.api import deps
from homeease.db.database import get_db
from homeease.db.db_models import User, UserRole, UserStatus, ApprovalStatus

logger = logging.getLogger(__name__)

router = APIRouter()

PROVIDER_FIELDS = ("profession", "experience", "pricing", "certifications", "cnic", "availability", "bio")


def _get_auth_response(user: User) -> AuthResponse:
    """Helper to create AuthResponse with user and token."""
    return AuthResponse(
        token=security.create_access_token(user.id, user.role),
        role=user.role,
        user=UserResponse.model_validate(user),
    )


async def _create_user(db: AsyncSession, user_in: SignupBase, role: UserRole) -> User:
    result = await db.execute(select(User).where(User.email == user_in.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already exists")

    new_user = User(
        name=user_in.name,
        email=user_in.email,
        password_hash=security.get_password_hash(user_in.password),
        role=role.value,
        status=UserStatus.ACTIVE.value,
        phone=user_in.phone,
        address=user_in.address,
        city=user_in.city,
    )
    if role == UserRole.PROVIDER:
        new_user.approval_status = ApprovalStatus.PENDING.value
        for field in PROVIDER_FIELDS:
            setattr(new_user, field, getattr(user_in, field))

    db.add(new_user)
    try:
        await db.flush()
    except IntegrityError:
        raise HTTPException(status_code=409, detail="Email already exists")
    await db.refresh(new_user)
    logger.info("New %s signed up: %s", role.value, new_user.email)
    return new_user


async def _authenticate(db: AsyncSession, login: LoginRequest, role: UserRole = None) -> User:
    result = await db.execute(select(User).where(User.email == login.email))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if not security.verify_password(login.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if role is not None and user.role != role.value:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This account is not registered as a {role.value}",
        )
    if user.status != UserStatus.ACTIVE.value:
        raise HTTPException(status_code=403, detail=f"Account is {user.status}")
    return user


@router.post("/signup", status_code=201)
async def signup(
    user_in: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Create a customer or provider account."""
    user = await _create_user(db, user_in, user_in.role)
    return {"message": "Signup successful", "user": UserResponse.model_validate(user)}


@router.post("/customer/signup", status_code=201)
async def customer_signup(
    user_in: CustomerSignup,
    db: AsyncSession = Depends(get_db),
) -> Any:
    user = await _create_user(db, user_in, UserRole.CUSTOMER)
    return {"message": "Signup successful", "user": UserResponse.model_validate(user)}


@router.post("/provider/signup", status_code=201)
async def provider_signup(
    user_in: ProviderSignup,
    db: AsyncSession = Depends(get_db),
) -> Any:
    user = await _create_user(db, user_in, UserRole.PROVIDER)
    return {"message": "Signup successful", "user": UserResponse.model_validate(user)}


@router.post("/login", response_model=AuthResponse)
async def login(
    login_in: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Login with any role; the client routes on the returned role."""
    return _get_auth_response(await _authenticate(db, login_in))


@router.post("/customer/signin", response_model=AuthResponse)
async def customer_signin(
    login_in: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    return _get_auth_response(await _authenticate(db, login_in, UserRole.CUSTOMER))


@router.post("/provider/signin", response_model=AuthResponse)
async def provider_signin(
    login_in: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    return _get_auth_response(await _authenticate(db, login_in, UserRole.PROVIDER))


@router.post("/admin/signin", response_model=AuthResponse)
async def admin_signin(
    login_in: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> Any:
    return _get_auth_response(await _authenticate(db, login_in, UserRole.ADMIN))


@router.get("/profile", response_model=UserResponse)
async def read_profile(
    current_user: User = Depends(deps.get_current_active_user),
) -> Any:
    """Get current user."""
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    user_update: ProviderProfileUpdate,
    current_user: User = Depends(deps.get_current_active_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Update current user; provider-only fields are ignored for other roles."""
    update_data = user_update.model_dump(exclude_unset=True)
    for field, value in update_data.items():
        if field in PROVIDER_FIELDS and current_user.role != UserRole.PROVIDER.value:
            continue
        setattr(current_user, field, value)

    await db.flush()
    await db.refresh(current_user)
    return current_user
