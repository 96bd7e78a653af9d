from datetime import datetime
from typing import Any, Optional
from fastapi import APIRouter, Depends, status
from pydantic import EmailStr, Field
from sqlalchemy.orm import Session
from vidanalytica.core.database import get_db
from vidanalytica.core.rate_limit import auth_rate_limit
from vidanalytica.models.user import User
from vidanalytica.api.dependencies import get_current_user
from vidanalytica.services.auth_service import auth_service
from vidanalytica.types import CamelModel

router = APIRouter(prefix="/auth", tags=["auth"])


class UserCreate(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = None


class LoginRequest(CamelModel):
    # Missing fields are rejected by AuthService.login
    email: Optional[str] = None
    password: Optional[str] = None


class LogoutRequest(CamelModel):
    email: Optional[str] = None


class RefreshRequest(CamelModel):
    # Type is checked by AuthService.refresh
    refresh_token: Any = None


class UserResponse(CamelModel):
    id: int
    email: str
    name: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    last_login_at: Optional[datetime] = None


class LoginResponse(UserResponse):
    access_token: str
    refresh_token: str


class TokenPairResponse(CamelModel):
    access_token: str
    refresh_token: str


class RefreshResponse(CamelModel):
    success: bool
    data: TokenPairResponse


class MessageResponse(CamelModel):
    message: str


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(auth_rate_limit)])
async def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """Register a new user (does not log them in)"""
    return auth_service.register(db, user_data.email, user_data.password, user_data.name)


@router.post("/login", response_model=LoginResponse, dependencies=[Depends(auth_rate_limit)])
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Login and get an access/refresh token pair"""
    result = auth_service.login(db, credentials.email, credentials.password)
    profile = UserResponse.model_validate(result.user)
    return LoginResponse(
        **profile.model_dump(),
        access_token=result.tokens.access_token,
        refresh_token=result.tokens.refresh_token,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(data: Optional[LogoutRequest] = None, db: Session = Depends(get_db)):
    """End the session for an email; always succeeds"""
    message = auth_service.logout(db, data.email if data else None)
    return MessageResponse(message=message)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh(data: Optional[RefreshRequest] = None, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new token pair"""
    tokens = auth_service.refresh(db, data.refresh_token if data else None)
    return RefreshResponse(
        success=True,
        data=TokenPairResponse(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
        ),
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_user)):
    """Get current user information"""
    return current_user
