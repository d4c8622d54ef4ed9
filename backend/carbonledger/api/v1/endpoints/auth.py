from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from datetime import timedelta

from carbonledger.core.database import get_db
from carbonledger.core.security import (
    hash_password, verify_password, create_access_token, get_current_user
)
from carbonledger.core.logging import log_auth_event
from carbonledger.models.user import User, UserRole
from carbonledger.schemas.user import UserCreate, UserOut, UserLogin, Token
from carbonledger.core.config import settings

router = APIRouter()


def _client_ip(request: Request):
    return request.client.host if request.client else None


# ─────────────────────────────────────────────────────────────
# 🔐 Register new user (self-service, always the base role)
# ─────────────────────────────────────────────────────────────
@router.post("/register", response_model=UserOut, status_code=201)
async def register_user(
    user_data: UserCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    query = select(User).where(User.email == user_data.email)
    result = await db.execute(query)
    existing_user = result.scalar_one_or_none()

    if existing_user:
        log_auth_event("register", username=user_data.email, success=False,
                       error="Email already registered", ip_address=_client_ip(request))
        raise HTTPException(status_code=400, detail="Email already registered")

    new_user = User(
        email=user_data.email,
        full_name=user_data.full_name,
        company=user_data.company,
        hashed_password=hash_password(user_data.password),
        role=UserRole.user,
        is_active=True,
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    log_auth_event("register", user_id=new_user.id, username=new_user.email, ip_address=_client_ip(request))
    return new_user


# ─────────────────────────────────────────────────────────────
# 🔐 Login and return JWT token
# ─────────────────────────────────────────────────────────────
@router.post("/login", response_model=Token)
async def login(user_data: UserLogin, request: Request, db: AsyncSession = Depends(get_db)):
    query = select(User).where(User.email == user_data.email)
    result = await db.execute(query)
    user = result.scalar_one_or_none()

    if user is None or not verify_password(user_data.password, user.hashed_password):
        log_auth_event("login", username=user_data.email, success=False,
                       error="Incorrect email or password", ip_address=_client_ip(request))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        log_auth_event("login", user_id=user.id, username=user.email, success=False,
                       error="Inactive account", ip_address=_client_ip(request))
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        expires_delta=access_token_expires
    )

    log_auth_event("login", user_id=user.id, username=user.email, ip_address=_client_ip(request))
    return Token(access_token=access_token, token_type="bearer")


# ─────────────────────────────────────────────────────────────
# 🔎 Get current user profile
# ─────────────────────────────────────────────────────────────
@router.get("/me", response_model=UserOut)
async def get_my_profile(current_user: User = Depends(get_current_user)):
    return current_user
