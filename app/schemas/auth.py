from pydantic import Field

from app.models.enums import CountryCode
from app.schemas.base import CamelModel
from app.schemas.profile import ProfileResponse


class SignupRequest(CamelModel):
    phone: str = Field(..., min_length=4, max_length=30)
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field("", max_length=200)
    country_code: CountryCode = CountryCode.SA


class LoginRequest(CamelModel):
    phone: str = Field(..., min_length=4, max_length=30)
    password: str
    country_code: CountryCode = CountryCode.SA


class UserResponse(CamelModel):
    id: str
    phone: str
    business_id: str


class AuthResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: str
    user: UserResponse
    profile: ProfileResponse


class MeResponse(CamelModel):
    user: UserResponse
    profile: ProfileResponse
