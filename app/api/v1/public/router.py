from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.errors import ProfileNotFound
from app.schemas.profile import PublicProfileResponse
from app.services.profile_service import ProfileService

router = APIRouter()


@router.get("/profiles/{slug_or_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    slug_or_id: str,
    db: AsyncSession = Depends(get_db)
):
    """
    Storefront shown on the public chat page (#/chat/<slug-or-id>).

    Returns 404 "not available" when nothing matches; the page renders an
    unavailable state instead of the chat.
    """
    try:
        return await ProfileService(db).resolve_public(slug_or_id)
    except ProfileNotFound:
        raise HTTPException(status_code=404, detail="This store is not available")
