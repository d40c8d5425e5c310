from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import DuplicatePhone, InvalidCredentials, ProfileNotFound, SlugCollision
from app.core.security import create_access_token, get_current_user
from app.models import User
from app.schemas.auth import SignupRequest, LoginRequest, AuthResponse, MeResponse, UserResponse
from app.schemas.profile import ProfileResponse
from app.services.auth_service import AuthService
from app.services.profile_service import ProfileService

router = APIRouter()


def _auth_response(user, profile) -> AuthResponse:
    token, expires_at = create_access_token(user.id, user.phone)
    return AuthResponse(
        access_token=token,
        expires_at=expires_at.isoformat(),
        user=UserResponse.model_validate(user),
        profile=ProfileResponse.model_validate(profile),
    )


# ==================== SIGNUP ====================

@router.post("/signup", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    request: SignupRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Create an owner account and its storefront profile.

    The storefront slug is derived from full_name; a taken slug gets a random
    suffix once. Returns a bearer token plus the user and profile snapshot.
    """
    try:
        user, profile = await AuthService(db).register(
            phone=request.phone,
            password=request.password,
            full_name=request.full_name,
            country_code=request.country_code,
        )
    except DuplicatePhone:
        raise HTTPException(status_code=409, detail="Phone number is already registered")
    except SlugCollision as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _auth_response(user, profile)


# ==================== LOGIN ====================

@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Phone + password login."""
    try:
        user, profile = await AuthService(db).login(
            phone=request.phone,
            password=request.password,
            country_code=request.country_code,
        )
    except InvalidCredentials:
        raise HTTPException(status_code=401, detail="Invalid phone or password")
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return _auth_response(user, profile)


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Current owner and a fresh profile snapshot."""
    try:
        profile = await ProfileService(db).get_profile(current_user.business_id)
    except ProfileNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))

    return MeResponse(
        user=UserResponse.model_validate(current_user),
        profile=ProfileResponse.model_validate(profile),
    )
