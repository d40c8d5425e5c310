from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.database import get_db, get_session_factory
from app.core.errors import ProfileNotFound, SessionNotFound
from app.models import BusinessProfile
from app.schemas.chat import (
    ChatSessionResponse,
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
    SessionOpenRequest,
)
from app.services.chat_service import ChatService, run_auto_reply
from app.services.profile_service import ProfileService

router = APIRouter(prefix="/chat", tags=["Chat"])


async def _get_profile_or_404(db: AsyncSession, slug_or_id: str) -> BusinessProfile:
    try:
        return await ProfileService(db).resolve_public(slug_or_id)
    except ProfileNotFound:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="This store is not available"
        )


# ==================== OPEN SESSION ====================

@router.post("/{slug_or_id}/sessions", response_model=ChatSessionResponse)
async def open_session(
    slug_or_id: str,
    request: SessionOpenRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Open (or re-open) a customer's conversation with a business.

    The session id is the token the customer's browser minted for this
    business (sess_<ms>). Calling again refreshes last_active and stores the
    customer's name/phone from the lead form.

    Example:
        POST /api/v1/chat/my-shop/sessions
        {"sessionId": "sess_1718000000000", "customerName": "Sara", "customerPhone": "0500000000"}
    """
    profile = await _get_profile_or_404(db, slug_or_id)

    try:
        session = await ChatService(db).open_session(
            profile_id=profile.id,
            session_id=request.session_id,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
        )
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

    return ChatSessionResponse.model_validate(session)


# ==================== GET MESSAGES ====================

@router.get("/{slug_or_id}/sessions/{session_id}/messages", response_model=MessageListResponse)
async def get_messages(
    slug_or_id: str,
    session_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    All messages of the customer's thread, oldest first.

    Polled by the chat page. An empty thread returns a single greeting that
    is not stored.
    """
    profile = await _get_profile_or_404(db, slug_or_id)

    try:
        messages = await ChatService(db).fetch_messages(profile, session_id)
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error loading messages: {str(e)}"
        )

    return MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages]
    )


# ==================== SEND MESSAGE ====================

@router.post(
    "/{slug_or_id}/sessions/{session_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_message(
    slug_or_id: str,
    session_id: str,
    request: SendMessageRequest,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
):
    """
    Customer sends a message. Returns the stored message.

    If the business enabled the AI auto-responder, its reply is produced in
    the background after the response and shows up on the next poll.
    """
    profile = await _get_profile_or_404(db, slug_or_id)

    try:
        message = await ChatService(db).send(profile, session_id, request.text)
    except SessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error processing message: {str(e)}"
        )

    if profile.ai_enabled:
        background_tasks.add_task(run_auto_reply, session_factory, profile.id, session_id)

    return MessageResponse.model_validate(message)
