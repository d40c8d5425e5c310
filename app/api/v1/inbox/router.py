from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import SessionNotFound
from app.core.security import get_current_user
from app.models import User
from app.schemas.chat import (
    MarkReadResponse,
    MessageListResponse,
    MessageResponse,
    SendMessageRequest,
    SessionListResponse,
)
from app.services.chat_service import ChatService

router = APIRouter()


@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Owner inbox: sessions, most recently active first, with unread counts."""
    sessions = await ChatService(db).list_sessions(current_user.business_id)
    return SessionListResponse(sessions=sessions)


@router.get("/sessions/{session_id}/messages", response_model=MessageListResponse)
async def get_session_messages(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Messages of one session, oldest first.

    Opening a session in the dashboard counts as reading it: unread customer
    messages are marked read after they are loaded. The returned list shows
    their state as it was before marking.
    """
    chat_service = ChatService(db)

    try:
        await chat_service.get_session(session_id, current_user.business_id)
    except SessionNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    messages = await chat_service.list_messages(session_id)
    response = MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages]
    )
    await chat_service.mark_read(session_id)
    return response


@router.post("/sessions/{session_id}/read", response_model=MarkReadResponse)
async def mark_session_read(
    session_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    chat_service = ChatService(db)

    try:
        await chat_service.get_session(session_id, current_user.business_id)
    except SessionNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")

    return MarkReadResponse(marked=await chat_service.mark_read(session_id))


@router.post(
    "/sessions/{session_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
)
async def reply(
    session_id: str,
    request: SendMessageRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Owner reply to a customer."""
    try:
        message = await ChatService(db).reply(session_id, request.text, current_user.business_id)
    except SessionNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Session not found")
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    return MessageResponse.model_validate(message)
