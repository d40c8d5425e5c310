from app.schemas.base import CamelModel
from app.schemas.profile import (
    Product,
    FAQ,
    PublicProfileResponse,
    ProfileResponse,
    ProfileUpdate,
    ImageUploadResponse,
)
from app.schemas.auth import (
    SignupRequest,
    LoginRequest,
    UserResponse,
    AuthResponse,
    MeResponse,
)
from app.schemas.chat import (
    MessageResponse,
    MessageListResponse,
    SendMessageRequest,
    MarkReadResponse,
    SessionOpenRequest,
    ChatSessionResponse,
    SessionListResponse,
)
